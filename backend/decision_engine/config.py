"""Application settings

Business defaults for the decision engine are loaded once from environment
variables (or the project's .env file) and never mutated at runtime.
Scoring modules build their frozen config objects from this singleton.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Project root: the parent of backend/
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Environment-backed engine settings"""

    # Interest rate profiles (annual, fixed-rate assumption)
    RATE_CONSERVATIVE: float = 0.058   # stress-tested default
    RATE_STANDARD: float = 0.05        # close to current market
    RATE_OPTIMISTIC: float = 0.045     # internal planning only

    # Debt service ratio (Bank Negara style guideline)
    MAX_DSR_RATIO: float = 0.70
    CONSERVATIVE_DSR_RATIO: float = 0.60

    # Mortgage tenure
    MAX_TENURE_YEARS: int = 35
    MAX_AGE_AT_MATURITY: int = 65

    # Downpayment ratios
    FIRST_HOME_DOWNPAYMENT: float = 0.10
    SUBSEQUENT_HOME_DOWNPAYMENT: float = 0.20

    # Equity
    EQUITY_BUFFER_PERCENT: float = 0.20
    SELLING_COSTS_PERCENT: float = 0.03
    MISC_FEES_BUFFER: int = 5_000

    # Upgrade feasibility
    MIN_UPGRADE_UPLIFT: float = 0.20
    MONTHLY_INCREASE_TOLERANCE: float = 0.20

    # Logging (CLI entry points only)
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": str(_PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton instance
settings = Settings()
