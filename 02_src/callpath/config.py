"""Project-level configuration and path helpers."""

import logging
import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "callpath.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_SAMPLING_RATE = 1

_FALSE_VALUES = {"0", "false", "no", "off"}

logger = logging.getLogger(__name__)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_sampling_rate(env_value: str | int | None = None) -> int:
    """Resolve TRACER_RATE to a positive sampling rate.

    Missing, unparsable or non-positive values fall back to 1 (sample
    every call).
    """
    if env_value is None:
        env_value = os.getenv("TRACER_RATE")
    if env_value is None or str(env_value).strip() == "":
        return DEFAULT_SAMPLING_RATE

    try:
        rate = int(str(env_value).strip())
    except ValueError:
        logger.warning("Invalid TRACER_RATE %r, using %d", env_value, DEFAULT_SAMPLING_RATE)
        return DEFAULT_SAMPLING_RATE

    if rate < 1:
        logger.warning("Non-positive TRACER_RATE %d, using %d", rate, DEFAULT_SAMPLING_RATE)
        return DEFAULT_SAMPLING_RATE
    return rate


def resolve_tracing_enabled(env_value: str | bool | None = None) -> bool:
    """Resolve TRACER_ENABLED (enabled unless explicitly switched off)."""
    if isinstance(env_value, bool):
        return env_value
    if env_value is None:
        env_value = os.getenv("TRACER_ENABLED")
    if env_value is None:
        return True
    return env_value.strip().lower() not in _FALSE_VALUES
