class ValuationError(Exception):
    """Base class for engine errors."""


class NoDataAvailable(ValuationError):
    """
    The historical corpus is empty or could not be fetched.
    Fatal for the call that needed it; callers must not substitute numbers.
    """


class UnparseableValue(ValuationError, ValueError):
    """
    A currency or percentage string could not be read as a number.
    Only the strict parsers raise it; scoring and aggregation recover locally.
    """

    def __init__(self, raw):
        super().__init__(f"Unparseable value: {raw!r}")
        self.raw = raw
