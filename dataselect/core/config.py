# dataselect/core/config.py
"""Environment driven settings for the data selection engine."""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Runtime settings read once from the environment."""

    metric_timeout: float = 5.0  # seconds
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from the environment (cached for the process)."""
    return Settings(
        metric_timeout=_float_env("DATASELECT_METRIC_TIMEOUT", 5.0),
        log_level=os.getenv("DATASELECT_LOG_LEVEL", "INFO").upper(),
    )
