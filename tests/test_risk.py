import pytest

from casevalue.engine.risk import policy_exceedance_risk


@pytest.mark.parametrize("amount, expected", [
    (0, 5),
    (49_999, 5),
    (50_000, 15),
    (69_999, 15),
    (70_000, 35),
    (85_000, 60),
    (94_999, 60),
    (95_000, 85),
    (99_999, 85),
    (100_000, 95),
    (250_000, 95),
])
def test_bands_against_100k_limit(amount, expected):
    assert policy_exceedance_risk(amount, 100_000) == expected


def test_unknown_limit_has_no_risk():
    assert policy_exceedance_risk(500_000, None) == 0
    assert policy_exceedance_risk(500_000, 0) == 0
    assert policy_exceedance_risk(500_000, -1) == 0


def test_high_band_example():
    # ratio 0.933
    assert policy_exceedance_risk(280_000, 300_000) == 60


def test_monotonic_in_amount():
    risks = [policy_exceedance_risk(a, 300_000) for a in range(0, 450_001, 5_000)]
    assert risks == sorted(risks)
    assert set(risks) == {5, 15, 35, 60, 85, 95}
