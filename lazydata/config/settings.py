"""
Environment-backed settings.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from .schemas import AccessorSettings

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


@lru_cache()
def get_settings() -> AccessorSettings:
    """
    Get accessor settings from environment.

    Uses lru_cache for singleton pattern.
    """
    settings = AccessorSettings(
        max_depth=int(os.getenv("LAZYDATA_MAX_DEPTH", "12")),
        pending_grace_seconds=float(os.getenv("LAZYDATA_PENDING_GRACE_SECONDS", "1.0")),
        error_cooldown_seconds=float(os.getenv("LAZYDATA_ERROR_COOLDOWN_SECONDS", "10.0")),
        default_locale=os.getenv("LAZYDATA_DEFAULT_LOCALE", "en"),
        default_page_limit=int(os.getenv("LAZYDATA_DEFAULT_PAGE_LIMIT", "10")),
        id_field=os.getenv("LAZYDATA_ID_FIELD", "id"),
        apply_mutations_locally=_env_bool("LAZYDATA_APPLY_MUTATIONS_LOCALLY", True),
        structured_logging=_env_bool("LAZYDATA_STRUCTURED_LOGGING", False),
    )
    logger.debug(f"[settings] Loaded settings: {settings.model_dump()}")
    return settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
