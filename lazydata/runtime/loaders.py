"""
Collection Loaders.

Ready-made implementations of the loader callback
``(name, locale) -> Awaitable[data | None]`` consumed by the single-flight
loader. A loader returns the collection's raw data; the single-flight
loader writes it into the shared store. A callback that writes into the
store itself may return None instead.

Design Principle:
    Start simple, scale as needed.
    - Testing: MemoryCollectionLoader (in-memory, call recording)
    - Static data: FileCollectionLoader (JSON/YAML/CSV files)
    - Remote data: HttpCollectionLoader (JSON over HTTP)

Usage:
    # Memory (testing)
    loader = MemoryCollectionLoader({"items": [{"id": 1}]})

    # Files, with per-locale overrides merged over the default document
    loader = FileCollectionLoader("data/", default_locale="en")

    # HTTP
    loader = HttpCollectionLoader("https://api.example.com/collections")

    ctx = AccessorContext(load_collection=loader)
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
import random
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
import yaml

from lazydata.errors import LoadFailure

logger = logging.getLogger(__name__)


# =============================================================================
# Locale merging
# =============================================================================


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def deep_merge_with_fallback(current: Any, fallback: Any) -> Any:
    """
    Merge localized data over default-locale data.

    - Missing, None and "" values in ``current`` fall back to ``fallback``
    - Mappings merge key by key, lists merge index by index
    - Keys starting with "_" (metadata) always come from ``current``
    - Other mismatched types prefer ``current``

    Neither input is modified.
    """
    if fallback is None:
        return current
    if current is None:
        return fallback

    if isinstance(current, list) and isinstance(fallback, list):
        merged = []
        for index in range(max(len(current), len(fallback))):
            if index < len(current) and index < len(fallback):
                merged.append(deep_merge_with_fallback(current[index], fallback[index]))
            elif index < len(current):
                merged.append(current[index])
            else:
                merged.append(fallback[index])
        return merged

    if isinstance(current, Mapping) and isinstance(fallback, Mapping):
        result = dict(fallback)
        for key, value in current.items():
            if isinstance(key, str) and key.startswith("_"):
                result[key] = value
            elif not _is_blank(value):
                result[key] = deep_merge_with_fallback(value, fallback.get(key))
        return result

    return fallback if _is_blank(current) else current


# =============================================================================
# CSV
# =============================================================================

_ID_LIKE = re.compile(r"^\d+$")


def _set_nested(target: dict[str, Any], dotted: str, value: Any) -> None:
    keys = dotted.split(".")
    current = target
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[keys[-1]] = value


def parse_csv(text: str, locale: str | None = None, delimiter: str = ",") -> Any:
    """
    Parse CSV text into collection data.

    Tabular files (first column "id", three or more columns, id-like
    values) become a list of row dicts. Anything else is read as key/value
    rows: the first column is a dotted key path, the value comes from the
    ``locale`` column when present, otherwise the second column, which is
    also the fallback for blank localized cells.

    Raises:
        ValueError: Empty file, or fewer than two columns in key/value mode
    """
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    headers = list(reader.fieldnames or [])
    rows = [row for row in reader if any(not _is_blank(v) for v in row.values())]
    if not headers or not rows:
        raise ValueError("CSV file is empty or has no data rows")

    key_column = headers[0]
    if len(headers) > 2 and key_column.lower() == "id":
        sample = rows[:5]
        id_like = [
            row
            for row in sample
            if row.get(key_column)
            and (_ID_LIKE.match(row[key_column]) or (len(row[key_column]) < 20 and "." not in row[key_column]))
        ]
        if len(id_like) >= len(sample) * 0.6:
            return [{header: row.get(header) for header in headers} for row in rows]

    if len(headers) < 2:
        raise ValueError("CSV file must have at least two columns (key and value)")

    fallback_column = headers[1]
    value_column = locale if locale and locale in headers else fallback_column

    result: dict[str, Any] = {}
    for row in rows:
        key = row.get(key_column)
        if not key:
            continue
        value = row.get(value_column)
        if _is_blank(value) and value_column != fallback_column:
            value = row.get(fallback_column)
        _set_nested(result, key, value)
    return result


# =============================================================================
# Memory
# =============================================================================


class MemoryCollectionLoader:
    """
    In-memory loader for testing and static data.

    Records every call, can simulate latency and failures.

    Usage:
        loader = MemoryCollectionLoader({"items": [{"id": 1}]}, delay=0.01)
        loader.set("users", [...])
        loader.fail("broken", RuntimeError("boom"))

        ctx = AccessorContext(load_collection=loader)
        ...
        assert loader.calls == [("items", "en")]
    """

    def __init__(
        self,
        collections: dict[str, Any] | None = None,
        *,
        localized: dict[str, dict[str, Any]] | None = None,
        delay: float = 0.0,
    ):
        self._collections: dict[str, Any] = dict(collections or {})
        self._localized: dict[str, dict[str, Any]] = {
            locale: dict(data) for locale, data in (localized or {}).items()
        }
        self._failures: dict[str, Exception] = {}
        self._delay = delay
        self.calls: list[tuple[str, str]] = []

    def set(self, name: str, data: Any, locale: str | None = None) -> None:
        if locale is None:
            self._collections[name] = data
        else:
            self._localized.setdefault(locale, {})[name] = data
        self._failures.pop(name, None)

    def fail(self, name: str, error: Exception) -> None:
        """Make loads of ``name`` raise ``error`` until set() is called for it."""
        self._failures[name] = error

    def call_count(self, name: str) -> int:
        return sum(1 for called, _ in self.calls if called == name)

    async def __call__(self, name: str, locale: str) -> Any:
        self.calls.append((name, locale))
        if self._delay:
            await asyncio.sleep(self._delay)

        error = self._failures.get(name)
        if error is not None:
            raise error

        localized = self._localized.get(locale, {})
        if name in localized:
            return deep_merge_with_fallback(localized[name], self._collections.get(name))
        if name not in self._collections:
            raise LoadFailure(f"Unknown collection: {name}", name)
        return self._collections[name]

    def clear(self) -> None:
        self._collections.clear()
        self._localized.clear()
        self._failures.clear()
        self.calls.clear()


# =============================================================================
# Files
# =============================================================================


class FileCollectionLoader:
    """
    Loads collections from JSON/YAML/CSV files in a directory.

    Layout:
        data/
        ├── products.json        # default document
        ├── products.fr.json     # French overrides (merged over default)
        ├── settings.yaml
        └── inventory.csv        # tabular -> list of rows

    For a locale other than the default, ``<name>.<locale>.<ext>`` is merged
    over ``<name>.<ext>`` with deep_merge_with_fallback. CSV files carry
    their locales as columns instead.

    Usage:
        loader = FileCollectionLoader("data/", default_locale="en")
        products = await loader("products", "fr")
    """

    EXTENSIONS = (".json", ".yaml", ".yml", ".csv")

    def __init__(
        self,
        base_dir: str | Path,
        *,
        default_locale: str = "en",
        encoding: str = "utf-8",
    ):
        """
        Initialize loader.

        Args:
            base_dir: Directory holding the collection files
            default_locale: Locale whose document is the merge fallback
            encoding: Text encoding of the files
        """
        self._base_dir = Path(base_dir)
        self._default_locale = default_locale
        self._encoding = encoding

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _find(self, stem: str) -> Path | None:
        for extension in self.EXTENSIONS:
            candidate = self._base_dir / f"{stem}{extension}"
            if candidate.is_file():
                return candidate
        return None

    def _read(self, path: Path, name: str, locale: str) -> Any:
        try:
            text = path.read_text(encoding=self._encoding)
            if path.suffix == ".json":
                return json.loads(text)
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(text)
            return parse_csv(text, locale)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"[file_loader] Failed to load {path}: {e}")
            raise LoadFailure(f"Failed to load {path.name}: {e}", name) from e

    async def __call__(self, name: str, locale: str) -> Any:
        default_path = self._find(name)
        localized_path = self._find(f"{name}.{locale}") if locale else None

        if default_path is None and localized_path is None:
            logger.warning(f"[file_loader] No file for collection {name} in {self._base_dir}")
            raise LoadFailure(f"No data file for collection '{name}'", name)

        if localized_path is None:
            return self._read(default_path, name, locale)

        localized = self._read(localized_path, name, locale)
        if default_path is None or locale == self._default_locale:
            return localized

        logger.debug(f"[file_loader] Merging {localized_path.name} over {default_path.name}")
        return deep_merge_with_fallback(localized, self._read(default_path, name, locale))


# =============================================================================
# HTTP
# =============================================================================


class HttpCollectionLoader:
    """
    Loads collections as JSON over HTTP with httpx.

    GET ``{base_url}/{name}?locale={locale}`` (or a per-collection URL from
    ``urls``). Non-2xx responses raise LoadFailure; timeouts, network
    errors and 5xx responses are retried with exponential backoff.

    Usage:
        loader = HttpCollectionLoader("https://api.example.com/collections")
        try:
            ctx = AccessorContext(load_collection=loader)
            ...
        finally:
            await loader.close()
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        urls: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._urls = dict(urls or {})
        self._headers = {"Accept": "application/json", **dict(headers or {})}
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=self._headers)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client (only if this loader created it)."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def url_for(self, name: str) -> str:
        return self._urls.get(name) or f"{self._base_url}/{name}"

    def _backoff(self, attempt: int) -> float:
        base_delay = self._retry_delay * (2**attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return min(base_delay + jitter, 30.0)

    async def __call__(self, name: str, locale: str) -> Any:
        client = await self._get_client()
        url = self.url_for(name)
        params = {"locale": locale} if locale else None

        for attempt in range(self._max_retries + 1):
            retry_reason: str
            try:
                response = await client.get(url, params=params)
            except httpx.TimeoutException as e:
                retry_reason = f"timeout: {e}"
            except httpx.HTTPError as e:
                retry_reason = f"network error: {e}"
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise LoadFailure(
                            f"Invalid JSON from {url}", name, status_code=response.status_code
                        ) from e
                if response.status_code < 500:
                    logger.warning(f"[http_loader] {name}: HTTP {response.status_code} from {url}")
                    raise LoadFailure(
                        f"HTTP {response.status_code} loading {name}",
                        name,
                        status_code=response.status_code,
                    )
                retry_reason = f"HTTP {response.status_code}"

            if attempt >= self._max_retries:
                logger.warning(f"[http_loader] {name}: giving up after {attempt + 1} attempts ({retry_reason})")
                raise LoadFailure(f"Failed to load {name}: {retry_reason}", name)

            backoff = self._backoff(attempt)
            logger.info(
                f"[http_loader] Retry {attempt + 1}/{self._max_retries} for {name} "
                f"after {backoff:.2f}s ({retry_reason})"
            )
            await asyncio.sleep(backoff)

        raise LoadFailure(f"Failed to load {name}", name)
