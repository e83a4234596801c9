"""Runtime settings for the portfolio tracker."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Configuration read from ``PORTFOLIO_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    price_provider: Literal["yfinance", "stock_api"] = Field(
        default="yfinance",
        description="Backend used for quotes and historical closes.",
    )
    stock_api_base_url: str = Field(default="http://localhost:8080")
    stock_api_key: Optional[str] = Field(
        default=None,
        description="API key sent to the stock REST backend.",
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    quote_cache_ttl_seconds: int = Field(default=300, ge=0)
    data_dir: Path = Field(default=BASE_DIR / "data")
    log_level: str = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def dict_for_logging(self) -> dict[str, Any]:
        """Settings with secrets masked."""
        hidden = {"stock_api_key"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
