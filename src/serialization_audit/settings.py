import logging
import os

from pydantic import BaseModel, field_validator
from rich.logging import RichHandler

_LOG_FORMAT = "%(message)s"


class Settings(BaseModel):
    log_level: str = "WARNING"
    max_workers: int | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @field_validator("max_workers")
    @classmethod
    def _positive(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("max_workers must be at least 1")
        return value


def get_settings() -> Settings:
    """Read settings from the environment; raises ``ValidationError`` on bad values."""
    return Settings.model_validate(
        {
            "log_level": os.getenv("SERIALIZATION_AUDIT_LOG_LEVEL", "WARNING"),
            "max_workers": os.getenv("SERIALIZATION_AUDIT_MAX_WORKERS") or None,
        }
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format=_LOG_FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
