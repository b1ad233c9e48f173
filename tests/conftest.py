"""
Pytest configuration and fixtures for lazydata tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from lazydata.runtime import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from lazydata import (  # noqa: E402
    AccessorContext,
    AccessorSettings,
    CollectionClassification,
    InMemorySharedStore,
    MemoryCollectionLoader,
)


class FakeClock:
    """Manually advanced wall clock for cooldown tests."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    """Settings with a short grace period so tests don't wait a second."""
    return AccessorSettings(pending_grace_seconds=0.05, error_cooldown_seconds=10.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_items():
    return [{"id": 1, "title": "First"}, {"id": 2, "title": "Second"}]


@pytest.fixture
def sample_settings_doc():
    return {
        "site": {"name": "Demo", "tagline": ""},
        "theme": {"colors": ["red", "green"], "dark": False},
        "count": 3,
    }


@pytest.fixture
def memory_loader(sample_items, sample_settings_doc):
    return MemoryCollectionLoader(
        {
            "items": sample_items,
            "settings": sample_settings_doc,
            "empty": [],
        }
    )


@pytest.fixture
def store():
    return InMemorySharedStore()


@pytest.fixture
def ctx(memory_loader, store, settings, clock):
    """Context over an empty store; collections load from memory_loader."""
    context = AccessorContext(
        load_collection=memory_loader,
        store=store,
        settings=settings,
        clock=clock,
    )
    yield context
    context.close()


@pytest.fixture
def tasks_classification():
    return CollectionClassification(is_mutable_collection=True, is_paginable=True, kind="table")


@pytest.fixture
def classify(tasks_classification):
    """Only 'tasks' is an externally backed collection."""

    def classify_collection(name: str) -> CollectionClassification:
        if name == "tasks":
            return tasks_classification
        return CollectionClassification()

    return classify_collection
