"""
lazydata Usage Examples.

Shows how page templates (or any synchronous reader) consume collections
that arrive asynchronously, without ever checking "is it loaded yet?".

Architecture:
    ┌─────────────────┐      ┌──────────────────┐      ┌─────────────────┐
    │   Template      │ ──▶  │ AccessorContext  │ ──▶  │  Shared store   │
    │   (sync reads)  │      │ (resolve + view) │      │  (host owned)   │
    └─────────────────┘      └──────────────────┘      └─────────────────┘
                                      │
                                      ▼
                             ┌──────────────────┐
                             │ Loader callback  │
                             │ (Memory/File/API)│
                             └──────────────────┘

The key insight: a read before the data exists returns a chain-safe
placeholder, and the same read afterwards returns a view that stays
identical until the data changes.
"""

import asyncio
import json
import tempfile
from pathlib import Path


# =============================================================================
# Example 1: Reading Before and After a Load
# =============================================================================

async def example_placeholder_to_view():
    """
    Reads never raise, even deep into data that has not arrived.
    """
    from lazydata import AccessorContext, MemoryCollectionLoader

    loader = MemoryCollectionLoader(
        {"products": [{"id": 1, "name": "Widget", "price": 10}]},
        delay=0.05,
    )

    async with AccessorContext(load_collection=loader) as ctx:
        products = ctx.get("products")
        print(f"Before load: ready={products.ready}, first name={products[0].name!r}")

        await ctx.load("products")

        products = ctx.get("products")
        print(f"After load: ready={products.ready}, first name={products[0].name!r}")
        print(f"Identity stable: {ctx.get('products') is products}")


# =============================================================================
# Example 2: Local Query and Search
# =============================================================================

async def example_query_and_search():
    """
    search/query/route are always available on array views.
    """
    from lazydata import AccessorContext, MemoryCollectionLoader

    loader = MemoryCollectionLoader(
        {
            "products": [
                {"id": 1, "name": "Widget", "price": 10, "slug": "widget"},
                {"id": 2, "name": "Gadget", "price": 25, "slug": "gadget"},
                {"id": 3, "name": "Gizmo", "price": None, "slug": "gizmo"},
            ]
        }
    )

    async with AccessorContext(load_collection=loader) as ctx:
        products = await ctx.load("products")

        by_price = products.query([["isNotNull", "price"], ["orderDesc", "price"]])
        print(f"By price: {[p.name for p in by_price]}")

        print(f"Search 'gi': {[p.name for p in products.search('gi', fields=['name'])]}")

        page = products.route("slug", "/shop/gadget")
        print(f"Route /shop/gadget -> {page.name}")


# =============================================================================
# Example 3: Files with Locale Overrides
# =============================================================================

async def example_file_loader_with_locales():
    """
    Localized files are merged over the default document.

    Directory structure:
        data/
        ├── copy.json       # {"title": "Hello", "subtitle": "Welcome"}
        └── copy.fr.json    # {"title": "Bonjour", "subtitle": ""}
    """
    from lazydata import AccessorContext, FileCollectionLoader

    with tempfile.TemporaryDirectory() as directory:
        data_dir = Path(directory)
        (data_dir / "copy.json").write_text(json.dumps({"title": "Hello", "subtitle": "Welcome"}))
        (data_dir / "copy.fr.json").write_text(json.dumps({"title": "Bonjour", "subtitle": ""}))

        async with AccessorContext(load_collection=FileCollectionLoader(data_dir)) as ctx:
            copy = await ctx.load("copy")
            print(f"en: {copy.title} / {copy.subtitle}")

            await ctx.set_locale("fr")
            copy = ctx.get("copy")
            print(f"fr: {copy.title} / {copy.subtitle}")


# =============================================================================
# Example 4: Mutations and Pagination for Backed Collections
# =============================================================================

async def example_backed_collection():
    """
    Collections the host classifies as externally backed gain
    create/update/delete/duplicate and first/next/prev/page.
    """
    from lazydata import (
        AccessorContext,
        CapabilityUnavailable,
        CollectionClassification,
        MemoryCollectionLoader,
    )

    backend = [{"id": 1, "title": "Write docs", "done": False}]

    def classify(name):
        if name == "tasks":
            return CollectionClassification(is_mutable_collection=True, is_paginable=True, kind="table")
        return CollectionClassification()

    async def mutate(operation, name, payload):
        if operation.value == "create":
            entry = {"id": len(backend) + 1, **payload}
            backend.append(entry)
            return entry
        return None

    async def paginate(direction, name, cursor, limit):
        return {"items": backend[:limit], "total": len(backend), "has_more": len(backend) > limit}

    async with AccessorContext(
        load_collection=MemoryCollectionLoader({"tasks": list(backend), "pages": []}),
        classify_collection=classify,
        mutation_handlers={"table": mutate},
        pagination_handler=paginate,
    ) as ctx:
        tasks = await ctx.load("tasks")
        await tasks.create({"title": "Ship release", "done": False})
        print(f"Tasks: {[t.title for t in ctx.get('tasks')]}")

        page = await ctx.get("tasks").first(limit=1)
        print(f"First page: {[t.title for t in page.items]} has_more={page.has_more}")

        pages = await ctx.load("pages")
        try:
            await pages.create({"title": "About"})
        except CapabilityUnavailable as e:
            print(f"Static collection: {e}")


# =============================================================================
# Main: Run Examples
# =============================================================================

async def main():
    """Run examples."""
    print("=" * 60)
    print("Example 1: Placeholder to View")
    print("=" * 60)
    await example_placeholder_to_view()

    print("\n" + "=" * 60)
    print("Example 2: Query and Search")
    print("=" * 60)
    await example_query_and_search()

    print("\n" + "=" * 60)
    print("Example 3: Files with Locale Overrides")
    print("=" * 60)
    await example_file_loader_with_locales()

    print("\n" + "=" * 60)
    print("Example 4: Backed Collections")
    print("=" * 60)
    await example_backed_collection()


if __name__ == "__main__":
    asyncio.run(main())
