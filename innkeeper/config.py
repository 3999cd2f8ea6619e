from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import FrozenSet, List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./innkeeper.db",
        alias="DATABASE_URL"
    )

    # Currency and rounding (CNY has 2 minor-unit digits)
    currency: str = Field(default="CNY", alias="CURRENCY")
    currency_decimals: int = Field(default=2, ge=0, le=4, alias="CURRENCY_DECIMALS")

    # Weekend days used by weekend/weekday price rules without an explicit set
    # Format: comma-separated weekday numbers (Sunday=0, Saturday=6)
    weekend_days: str = Field(default="0,6", alias="WEEKEND_DAYS")

    # Booking policy
    # Dirty rooms block check-in on the arrival day; set this to also block booking
    dirty_blocks_booking: bool = Field(default=False, alias="DIRTY_BLOCKS_BOOKING")
    enforce_stay_rules: bool = Field(default=True, alias="ENFORCE_STAY_RULES")

    # Largest calendar window served in one request
    max_grid_days: int = Field(default=366, ge=1, alias="MAX_GRID_DAYS")

    # CORS - comma-separated list of allowed frontend origins
    allowed_origins: str = Field(default="", alias="ALLOWED_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    @field_validator('weekend_days')
    @classmethod
    def validate_weekend_days(cls, v: str) -> str:
        for d in v.split(","):
            d = d.strip()
            if not d:
                continue
            if not d.isdigit() or int(d) not in range(7):
                raise ValueError("WEEKEND_DAYS must be comma-separated numbers 0-6")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware, empty when unset.
        """
        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin:
                origins.append(origin)
        return origins

    @property
    def weekend_day_numbers(self) -> FrozenSet[int]:
        """
        Parse weekend days into a set of weekday numbers.
        Default: {0, 6} (Sunday, Saturday)
        """
        days = frozenset(int(d.strip()) for d in self.weekend_days.split(",") if d.strip())
        return days or frozenset({0, 6})

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
