import os
from pydantic import BaseModel

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")
    DEFAULT_CURRENCY: str = os.getenv("CURRENCY", "USD")

    # Weights cache (24h validity window)
    WEIGHTS_TTL_SECONDS: int = int(os.getenv("WEIGHTS_TTL_SECONDS", "86400"))

    # Comparable selection
    COMPARABLE_LIMIT: int = int(os.getenv("COMPARABLE_LIMIT", "25"))
    NEAREST_LIMIT: int = int(os.getenv("NEAREST_LIMIT", "5"))

    # Aggregation
    DEFAULT_POLICY: str = os.getenv("DEFAULT_POLICY", "median")  # median | weighted
    ROUNDING_INCREMENT: int = int(os.getenv("ROUNDING_INCREMENT", "500"))

    # Mediator
    PROPOSAL_VALID_DAYS: int = int(os.getenv("PROPOSAL_VALID_DAYS", "7"))

    # Fixed multipliers and slopes (conservative, defense-perspective)
    TBI_MILD_WEIGHT: float = float(os.getenv("TBI_MILD_WEIGHT", "0.8"))
    TBI_MODERATE_WEIGHT: float = float(os.getenv("TBI_MODERATE_WEIGHT", "1.1"))
    TBI_SEVERE_WEIGHT: float = float(os.getenv("TBI_SEVERE_WEIGHT", "1.4"))
    MEDICAL_SPECIALS_SLOPE: float = float(os.getenv("MEDICAL_SPECIALS_SLOPE", "0.7"))
    HOWELL_SPECIALS_SLOPE: float = float(os.getenv("HOWELL_SPECIALS_SLOPE", "0.9"))

    # Case repository
    REPOSITORY_PROVIDER: str = os.getenv("REPOSITORY_PROVIDER", "mock")  # mock | file | http
    REPOSITORY_PATH: str | None = os.getenv("REPOSITORY_PATH")
    REPOSITORY_BASE_URL: str | None = os.getenv("REPOSITORY_BASE_URL")
    REPOSITORY_TIMEOUT_SECONDS: float = float(os.getenv("REPOSITORY_TIMEOUT_SECONDS", "15"))
    MOCK_CORPUS_SIZE: int = int(os.getenv("MOCK_CORPUS_SIZE", "60"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
