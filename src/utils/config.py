"""Configuration management for the Cooking Success Prediction Service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Database URL: PostgreSQL connection string for production use.
        # When unset, a local SQLite file (SQLITE_DB_FILE) is used instead.
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
        self.SQLITE_DB_FILE: str = os.getenv("SQLITE_DB_FILE", "tmp/cooking_outcomes.db")
        # Maximum number of past outcomes loaded per user for feature extraction. Default: 50
        self.HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "50"))
        # Number of most recent outcomes evaluated by the metrics report. Default: 1000
        self.METRICS_WINDOW: int = int(os.getenv("METRICS_WINDOW", "1000"))
        # Number of most recent outcomes used for recent accuracy (drift signal). Default: 100
        self.RECENT_ACCURACY_WINDOW: int = int(os.getenv("RECENT_ACCURACY_WINDOW", "100"))
        # Fixed model confidence (0.0 - 1.0) used to size the confidence interval. Default: 0.8
        self.BASE_CONFIDENCE: float = float(os.getenv("BASE_CONFIDENCE", "0.8"))
        # Number of ranked key factors returned with a prediction. Default: 5
        self.MAX_KEY_FACTORS: int = int(os.getenv("MAX_KEY_FACTORS", "5"))
        # Maximum number of recommendations returned with a prediction. Default: 5
        self.MAX_RECOMMENDATIONS: int = int(os.getenv("MAX_RECOMMENDATIONS", "5"))
        # Alternative recipes: looked up only when the success score falls below the threshold
        self.ENABLE_ALTERNATIVES: bool = os.getenv("ENABLE_ALTERNATIVES", "true").lower() in ("true", "1", "yes")
        self.ALTERNATIVES_THRESHOLD: float = float(os.getenv("ALTERNATIVES_THRESHOLD", "0.6"))
        self.MAX_ALTERNATIVES: int = int(os.getenv("MAX_ALTERNATIVES", "3"))

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any value is outside its allowed range.
        """
        if not (1 <= self.HISTORY_LIMIT <= 50):
            raise ValueError(f"HISTORY_LIMIT must be between 1 and 50, got: {self.HISTORY_LIMIT}")
        if self.METRICS_WINDOW < 1:
            raise ValueError(f"METRICS_WINDOW must be at least 1, got: {self.METRICS_WINDOW}")
        if self.RECENT_ACCURACY_WINDOW < 1:
            raise ValueError(
                f"RECENT_ACCURACY_WINDOW must be at least 1, got: {self.RECENT_ACCURACY_WINDOW}"
            )
        if not (0.0 <= self.BASE_CONFIDENCE <= 1.0):
            raise ValueError(f"BASE_CONFIDENCE must be between 0.0 and 1.0, got: {self.BASE_CONFIDENCE}")
        if self.MAX_KEY_FACTORS < 1:
            raise ValueError(f"MAX_KEY_FACTORS must be at least 1, got: {self.MAX_KEY_FACTORS}")
        if self.MAX_RECOMMENDATIONS < 1:
            raise ValueError(f"MAX_RECOMMENDATIONS must be at least 1, got: {self.MAX_RECOMMENDATIONS}")
        if not (0.0 <= self.ALTERNATIVES_THRESHOLD <= 1.0):
            raise ValueError(
                f"ALTERNATIVES_THRESHOLD must be between 0.0 and 1.0, got: {self.ALTERNATIVES_THRESHOLD}"
            )
        if self.MAX_ALTERNATIVES < 0:
            raise ValueError(f"MAX_ALTERNATIVES must be non-negative, got: {self.MAX_ALTERNATIVES}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
