"""Application settings read from ``CARTREC_*`` environment variables.

Every setting has a default, so the service runs without any environment
configured. Invalid values raise at startup instead of on first request.
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cartrec.recommender.apriori import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_SUPPORT,
    MiningConfig,
)
from cartrec.recommender.catalog import DEFAULT_POPULAR_LIMIT
from cartrec.recommender.counting import SCAN
from cartrec.recommender.scorer import DEFAULT_LIMIT

ENV_PREFIX = "CARTREC_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, frozen=True)

    data_dir: str = "data"
    min_support: float = DEFAULT_MIN_SUPPORT
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    counting: str = SCAN
    recommendation_limit: int = DEFAULT_LIMIT
    popular_limit: int = DEFAULT_POPULAR_LIMIT
    enable_cache: bool = False
    log_level: str = "INFO"

    @field_validator("recommendation_limit", "popular_limit")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"must be non-negative, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _check_mining_parameters(self) -> "Settings":
        # Fails fast on invalid mining parameters
        self.mining_config()
        return self

    def mining_config(self) -> MiningConfig:
        return MiningConfig(
            min_support=self.min_support,
            min_confidence=self.min_confidence,
            counting=self.counting,
        )


@lru_cache
def get_settings() -> Settings:
    """Settings loaded once from the environment."""
    return Settings()
