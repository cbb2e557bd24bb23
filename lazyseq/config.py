"""
Evaluation settings for lazy sequences.

Settings are a pydantic model. A process-wide default is kept here and picked
up by every new source unless one is passed explicitly; derived stages inherit
the settings of the sequence they were built from.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_LEVEL_NAMES = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class EvaluationSettings(BaseModel):
    """Limits and logging options applied during terminal evaluation"""
    max_pulls: Optional[int] = Field(
        None,
        description="Maximum number of source pulls per evaluation (None disables the cap)",
        ge=1
    )
    enforce_bounds: bool = Field(
        True,
        description="Refuse exhaustive terminals on sequences flagged infinite"
    )
    log_level: str = Field(
        "WARNING",
        description="Level used by setup_logging()"
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "max_pulls": 1_000_000,
                "enforce_bounds": True,
                "log_level": "INFO"
            }
        }
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and check the logging level name"""
        level = str(v).strip().upper()
        if level not in _LEVEL_NAMES:
            raise ValueError(f"Unknown log level: {v}. Expected one of {', '.join(_LEVEL_NAMES)}")
        return level

    @classmethod
    def from_env(cls, prefix: str = "LAZYSEQ_",
                 environ: Optional[Mapping[str, str]] = None) -> "EvaluationSettings":
        """Build settings from ``<prefix>MAX_PULLS``, ``<prefix>ENFORCE_BOUNDS`` and ``<prefix>LOG_LEVEL``."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        max_pulls = env.get(f"{prefix}MAX_PULLS")
        if max_pulls is not None and max_pulls.strip():
            values["max_pulls"] = int(max_pulls)

        enforce = env.get(f"{prefix}ENFORCE_BOUNDS")
        if enforce is not None and enforce.strip():
            flag = enforce.strip().lower()
            if flag in _TRUE_VALUES:
                values["enforce_bounds"] = True
            elif flag in _FALSE_VALUES:
                values["enforce_bounds"] = False
            else:
                raise ValueError(f"Invalid boolean for {prefix}ENFORCE_BOUNDS: {enforce}")

        log_level = env.get(f"{prefix}LOG_LEVEL")
        if log_level is not None and log_level.strip():
            values["log_level"] = log_level

        return cls(**values)


_settings: Optional[EvaluationSettings] = None


def get_settings() -> EvaluationSettings:
    """Return the process-wide default settings, loading them from the environment once."""
    global _settings
    if _settings is None:
        _settings = EvaluationSettings.from_env()
    return _settings


def configure(**overrides) -> EvaluationSettings:
    """Replace the process-wide defaults, keeping fields that are not overridden."""
    global _settings
    current = get_settings()
    _settings = EvaluationSettings(**{**current.model_dump(), **overrides})
    logger.debug(f"Evaluation settings updated: {_settings.model_dump()}")
    return _settings


def reset_settings() -> None:
    """Forget configured defaults; the next get_settings() reloads from the environment."""
    global _settings
    _settings = None
