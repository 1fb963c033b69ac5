"""Configuration constants and environment settings for RateIt."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path.home() / ".local" / "state" / "rateit" / "rateit.db"

# Environment variables
ENV_DB_PATH = "RATEIT_DB_PATH"
ENV_USER = "RATEIT_USER"
ENV_DEV_BYPASS_AUTH = "RATEIT_DEV_BYPASS_AUTH"
ENV_ENVIRONMENT = "RATEIT_ENV"
ENV_TMDB_API_KEY = "RATEIT_TMDB_API_KEY"
ENV_RAWG_API_KEY = "RATEIT_RAWG_API_KEY"
ENV_GOOGLE_BOOKS_API_KEY = "RATEIT_GOOGLE_BOOKS_API_KEY"

# Scores
SCORE_MIN = 0.0
SCORE_MAX = 10.0
SCORE_STEP = 0.5
DEFAULT_SCORE = 5.0

# Profile widgets
MAX_PINNED = 5
MIN_RATINGS_FOR_DISTRIBUTION = 3
TOP_RATED_LIMIT = 5

# Trending and suggestions
TRENDING_LIMIT = 15
FRIENDS_TRENDING_DAYS = 7
FRIENDS_TRENDING_FETCH = 30
GLOBAL_TRENDING_DAYS = 30
GLOBAL_TRENDING_FETCH = 500
SUGGESTION_DAYS = 90
SUGGESTION_MIN_SCORE = 8.0
SUGGESTION_FETCH = 200

# Paging
PAGE_SIZE = 20

# Rating form
SAVE_DISMISS_SECONDS = 1.2

# Text limits
MAX_PRIVATE_NOTE_LENGTH = 500
MAX_ANYTHING_TITLE_LENGTH = 200
MAX_ANYTHING_DESCRIPTION_LENGTH = 500

# HTTP
HTTP_TIMEOUT = 15.0
USER_AGENT = "RateIt/1.0"
METADATA_LANGUAGE = "en-US"


@dataclass
class Settings:
    """Runtime settings resolved from the environment."""

    db_path: Path = DEFAULT_DB_PATH
    environment: str = "development"
    dev_bypass_auth: bool = False
    tmdb_api_key: str | None = None
    rawg_api_key: str | None = None
    google_books_api_key: str | None = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        db_path = env.get(ENV_DB_PATH)
        return cls(
            db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
            environment=env.get(ENV_ENVIRONMENT, "development"),
            dev_bypass_auth=env.get(ENV_DEV_BYPASS_AUTH, "").lower() in {"1", "true", "yes"},
            tmdb_api_key=env.get(ENV_TMDB_API_KEY) or None,
            rawg_api_key=env.get(ENV_RAWG_API_KEY) or None,
            google_books_api_key=env.get(ENV_GOOGLE_BOOKS_API_KEY) or None,
        )
