"""Runtime settings for diskmap."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from diskmap.layout import DEFAULT_INSET
from diskmap.scanner import DEFAULT_MAX_DEPTH
from diskmap.sizeprobe import CACHE_TTL

ENV_PREFIX = "DISKMAP_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Tunables shared by the CLI and the TUI."""

    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="Directory levels to materialize")
    max_workers: Optional[int] = Field(
        None, ge=1, description="Scanner thread cap (default: CPU count + 4, at most 32)"
    )
    cache_ttl: float = Field(
        CACHE_TTL, description="Seconds a measured directory size stays cached (<= 0 disables)"
    )
    inset: float = Field(DEFAULT_INSET, ge=0, description="Gap around each treemap rectangle")
    show_hidden: bool = Field(False, description="Include dot-prefixed entries")
    log_level: str = Field("WARNING", description="Minimum log level")

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level == "WARN":
            level = "WARNING"
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


# Setting name -> environment variable
ENV_VARS = {
    "max_depth": "DISKMAP_MAX_DEPTH",
    "max_workers": "DISKMAP_MAX_WORKERS",
    "cache_ttl": "DISKMAP_CACHE_TTL",
    "inset": "DISKMAP_INSET",
    "show_hidden": "DISKMAP_SHOW_HIDDEN",
    "log_level": "DISKMAP_LOG_LEVEL",
}


def load_settings(env: Optional[Mapping[str, str]] = None, **overrides) -> Settings:
    """
    Build settings from environment variables plus explicit overrides.

    Args:
        env: Mapping to read variables from (default: os.environ)
        **overrides: Values that win over the environment; None is ignored

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a value cannot be parsed
    """
    env = os.environ if env is None else env

    values: dict = {}
    for name, var in ENV_VARS.items():
        raw = env.get(var)
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()

    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**values)
