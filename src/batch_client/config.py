"""
Batch client constants, re-exported from the authoritative ``config`` package.

All constants used across the engine modules are centralized here so that
config is separated from logic.  Values are defined once in
``config/portal_config.py`` and ``config/batch_params.py``.
"""

from config.batch_params import (
    BATCH_CAPACITY,
    DEFAULT_COMMAND_PREFIX,
    DEFAULT_SORT_DIRECTION,
    PAGE_SIZE,
    REQUEST_TIMEOUT_SECONDS,
)
from config.portal_config import (
    BATCH_METHOD,
    BATCH_RESULT_KEYS,
    HALT_ON_ERROR,
    PORTAL_WEBHOOK_URL_ENV,
    RESPONSE_FORMAT,
    RESULT_REFERENCE_PREFIX,
)

__all__ = [
    "BATCH_CAPACITY",
    "BATCH_METHOD",
    "BATCH_RESULT_KEYS",
    "DEFAULT_COMMAND_PREFIX",
    "DEFAULT_SORT_DIRECTION",
    "HALT_ON_ERROR",
    "PAGE_SIZE",
    "PORTAL_WEBHOOK_URL_ENV",
    "REQUEST_TIMEOUT_SECONDS",
    "RESPONSE_FORMAT",
    "RESULT_REFERENCE_PREFIX",
]
