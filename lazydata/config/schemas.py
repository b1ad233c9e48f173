"""
Configuration schemas for lazydata.

Settings are pydantic models for validation; collection classification is
a frozen dataclass because it is used as a cache key.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


class AccessorSettings(BaseModel):
    """
    Accessor-layer settings.

    The defaults match the behavior the layer was tuned for: a reentrancy
    ceiling of 12, a one-second grace period before a settled load can be
    restarted, and a ten-second cooldown after a failed load.
    """

    max_depth: int = Field(12, ge=1, description="Reentrancy ceiling for the resolution path")
    pending_grace_seconds: float = Field(
        1.0, ge=0, description="How long a settled load keeps absorbing repeat triggers"
    )
    error_cooldown_seconds: float = Field(
        10.0, ge=0, description="How long a load failure suppresses automatic retries"
    )
    default_locale: str = Field("en", description="Locale passed to loader callbacks")
    default_page_limit: int = Field(10, ge=1, description="Page size when none is given")
    id_field: str = Field("id", description="Entry identity key for local mutation results")
    apply_mutations_locally: bool = Field(
        True, description="Apply successful mutation results to the raw collection"
    )
    structured_logging: bool = Field(False, description="Emit load events as JSON lines")

    class Config:
        extra = "forbid"


@dataclass(frozen=True, slots=True)
class CollectionClassification:
    """
    Host-supplied metadata for one collection.

    Local/static data (files, inline documents) is neither mutable nor
    paginable. Externally backed collections set the flags and a kind that
    selects the mutation handler.
    """

    is_mutable_collection: bool = False
    is_paginable: bool = False
    kind: str = "local"


LOCAL_COLLECTION = CollectionClassification()
