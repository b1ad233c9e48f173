"""
Tests for the bundled collection loaders.
"""

import json

import httpx
import pytest

from lazydata.errors import LoadFailure
from lazydata.runtime import (
    FileCollectionLoader,
    HttpCollectionLoader,
    MemoryCollectionLoader,
    deep_merge_with_fallback,
    parse_csv,
)


# =============================================================================
# Locale merging
# =============================================================================


class TestDeepMergeWithFallback:
    def test_blank_values_fall_back(self):
        current = {"title": "Bonjour", "subtitle": "", "footer": None}
        fallback = {"title": "Hello", "subtitle": "Welcome", "footer": "Bye", "extra": 1}

        assert deep_merge_with_fallback(current, fallback) == {
            "title": "Bonjour",
            "subtitle": "Welcome",
            "footer": "Bye",
            "extra": 1,
        }

    def test_nested_mappings_and_lists(self):
        current = {"menu": [{"label": "Accueil"}, {"label": ""}]}
        fallback = {"menu": [{"label": "Home", "href": "/"}, {"label": "About"}, {"label": "Blog"}]}

        merged = deep_merge_with_fallback(current, fallback)

        assert merged["menu"] == [
            {"label": "Accueil", "href": "/"},
            {"label": "About"},
            {"label": "Blog"},
        ]

    def test_metadata_keys_come_from_current(self):
        merged = deep_merge_with_fallback({"_draft": None}, {"_draft": True})
        assert merged == {"_draft": None}

    def test_none_sides(self):
        assert deep_merge_with_fallback(None, [1]) == [1]
        assert deep_merge_with_fallback([1], None) == [1]

    def test_inputs_not_modified(self):
        current = {"a": {"b": ""}}
        fallback = {"a": {"b": "x"}}
        deep_merge_with_fallback(current, fallback)

        assert current == {"a": {"b": ""}}
        assert fallback == {"a": {"b": "x"}}


# =============================================================================
# CSV
# =============================================================================


class TestParseCsv:
    def test_tabular_rows(self):
        text = "id,name,price\n1,Widget,10\n2,Gadget,25\n"

        assert parse_csv(text) == [
            {"id": "1", "name": "Widget", "price": "10"},
            {"id": "2", "name": "Gadget", "price": "25"},
        ]

    def test_key_value_with_locale_columns(self):
        text = "key,en,fr\nsite.title,Hello,Bonjour\nsite.subtitle,Welcome,\ncount,3,3\n"

        assert parse_csv(text, "fr") == {
            "site": {"title": "Bonjour", "subtitle": "Welcome"},
            "count": "3",
        }
        assert parse_csv(text)["site"]["title"] == "Hello"
        assert parse_csv(text, "de")["site"]["title"] == "Hello"

    def test_blank_rows_skipped(self):
        assert parse_csv("key,value\n,\na,1\n") == {"a": "1"}

    def test_invalid_files(self):
        with pytest.raises(ValueError):
            parse_csv("")
        with pytest.raises(ValueError):
            parse_csv("key\na\n")


# =============================================================================
# Memory
# =============================================================================


class TestMemoryCollectionLoader:
    @pytest.mark.asyncio
    async def test_returns_data_and_records_calls(self):
        loader = MemoryCollectionLoader({"items": [1]})

        assert await loader("items", "en") == [1]
        assert loader.calls == [("items", "en")]
        assert loader.call_count("items") == 1

    @pytest.mark.asyncio
    async def test_unknown_collection(self):
        with pytest.raises(LoadFailure):
            await MemoryCollectionLoader()("nope", "en")

    @pytest.mark.asyncio
    async def test_failure_until_set(self):
        loader = MemoryCollectionLoader()
        loader.fail("items", RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await loader("items", "en")

        loader.set("items", [])
        assert await loader("items", "en") == []

    @pytest.mark.asyncio
    async def test_localized_data_merged_over_default(self):
        loader = MemoryCollectionLoader(
            {"copy": {"title": "Hello", "body": "Text"}},
            localized={"fr": {"copy": {"title": "Bonjour", "body": ""}}},
        )

        assert await loader("copy", "fr") == {"title": "Bonjour", "body": "Text"}
        assert await loader("copy", "en") == {"title": "Hello", "body": "Text"}


# =============================================================================
# Files
# =============================================================================


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "products.json").write_text(
        json.dumps([{"id": 1, "name": "Widget", "desc": "A widget"}])
    )
    (tmp_path / "products.fr.json").write_text(json.dumps([{"id": 1, "name": "Bidule", "desc": ""}]))
    (tmp_path / "settings.yaml").write_text("site:\n  name: Demo\n  tags: [a, b]\n")
    (tmp_path / "inventory.csv").write_text("id,sku,qty\n1,W-1,4\n2,G-2,0\n")
    (tmp_path / "broken.json").write_text("{not json")
    return tmp_path


class TestFileCollectionLoader:
    @pytest.mark.asyncio
    async def test_json(self, data_dir):
        loader = FileCollectionLoader(data_dir)

        assert await loader("products", "en") == [{"id": 1, "name": "Widget", "desc": "A widget"}]

    @pytest.mark.asyncio
    async def test_locale_file_merged_over_default(self, data_dir):
        loader = FileCollectionLoader(data_dir)

        assert await loader("products", "fr") == [{"id": 1, "name": "Bidule", "desc": "A widget"}]
        assert (await loader("products", "de"))[0]["name"] == "Widget"

    @pytest.mark.asyncio
    async def test_yaml(self, data_dir):
        loader = FileCollectionLoader(data_dir)

        assert await loader("settings", "en") == {"site": {"name": "Demo", "tags": ["a", "b"]}}

    @pytest.mark.asyncio
    async def test_csv(self, data_dir):
        rows = await FileCollectionLoader(data_dir)("inventory", "en")

        assert rows[0] == {"id": "1", "sku": "W-1", "qty": "4"}

    @pytest.mark.asyncio
    async def test_missing_file(self, data_dir):
        with pytest.raises(LoadFailure) as exc_info:
            await FileCollectionLoader(data_dir)("nope", "en")

        assert exc_info.value.collection == "nope"

    @pytest.mark.asyncio
    async def test_invalid_json(self, data_dir):
        with pytest.raises(LoadFailure, match="broken.json"):
            await FileCollectionLoader(data_dir)("broken", "en")


# =============================================================================
# HTTP
# =============================================================================


def http_loader(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpCollectionLoader("https://api.test/collections/", client=client, **kwargs), client


class TestHttpCollectionLoader:
    @pytest.mark.asyncio
    async def test_success_sends_locale(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"id": 1}])

        loader, client = http_loader(handler)

        assert await loader("items", "fr") == [{"id": 1}]
        assert seen[0].url.path == "/collections/items"
        assert seen[0].url.params["locale"] == "fr"
        await client.aclose()

    def test_per_collection_url(self):
        loader = HttpCollectionLoader("https://api.test", urls={"menu": "https://cdn.test/menu.json"})

        assert loader.url_for("menu") == "https://cdn.test/menu.json"
        assert loader.url_for("items") == "https://api.test/items"

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        loader, client = http_loader(handler, retry_delay=0)

        with pytest.raises(LoadFailure) as exc_info:
            await loader("items", "en")

        assert exc_info.value.status_code == 404
        assert len(calls) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        responses = [httpx.Response(503), httpx.Response(200, json={"ok": True})]

        def handler(request):
            return responses.pop(0)

        loader, client = http_loader(handler, max_retries=1, retry_delay=0)

        assert await loader("items", "en") == {"ok": True}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_errors_give_up_after_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        loader, client = http_loader(handler, max_retries=2, retry_delay=0)

        with pytest.raises(LoadFailure, match="network error"):
            await loader("items", "en")

        assert len(calls) == 3
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        loader, client = http_loader(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(LoadFailure, match="Invalid JSON"):
            await loader("items", "en")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        loader, client = http_loader(lambda request: httpx.Response(200, json=[]))

        await loader.close()

        assert not client.is_closed
        await client.aclose()
