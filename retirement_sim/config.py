import os
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)

ENV_PREFIX = "RETIREMENT_SIM_"

LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

_ENV_FIELDS = {
    "cors_origins": "CORS_ORIGINS",
    "host": "HOST",
    "port": "PORT",
    "log_level": "LOG_LEVEL",
    "default_contributions": "DEFAULT_CONTRIBUTIONS",
    "default_return_percent": "DEFAULT_RETURN_PERCENT",
}
_LIST_FIELDS = {"cors_origins", "default_contributions"}


class ConfigurationError(Exception):
    """Raised when the environment holds values the app cannot use."""


class AppConfig(BaseModel):
    """Settings for the HTTP app and the CLI defaults."""

    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    host: str = "127.0.0.1"
    port: int = Field(5000, ge=1, le=65535)
    log_level: str = "INFO"
    default_contributions: List[float] = Field(
        default_factory=lambda: [300.0, 500.0, 800.0],
        min_length=1,
        description="Monthly contribution offered for each scenario when the user leaves it blank.",
    )
    default_return_percent: float = Field(
        6.0,
        ge=-100.0,
        description="Average annual return, in percent, offered when the user leaves it blank.",
    )

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{v}'")
        return level

    @field_validator("default_contributions")
    @classmethod
    def check_contributions(cls, v: List[float]) -> List[float]:
        if any(amount <= 0 for amount in v):
            raise ValueError("default contributions must be greater than 0")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build settings from ``RETIREMENT_SIM_*`` variables over the defaults."""
        environ = os.environ if environ is None else environ
        data: Dict[str, object] = {}

        for field, name in _ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                continue
            if field in _LIST_FIELDS:
                data[field] = [item.strip() for item in raw.split(",") if item.strip()]
            else:
                data[field] = raw.strip()

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {ENV_PREFIX}* environment settings: {e}") from e
