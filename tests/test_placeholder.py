"""
Tests for loading placeholders.
"""

import pytest

from lazydata.views import ArrayView, Placeholder, is_placeholder


@pytest.fixture
def placeholder(ctx):
    """Placeholder for a collection nobody has loaded (no event loop running)."""
    return ctx.get("pending")


# =============================================================================
# Chain safety
# =============================================================================


class TestChainSafety:
    def test_deep_attribute_chain_never_raises(self, placeholder):
        value = placeholder.a.b.c.d.e
        assert is_placeholder(value)

    def test_item_and_attribute_mix(self, placeholder):
        assert is_placeholder(placeholder[0].title["x"].y)

    def test_children_are_chain_stable(self, placeholder):
        assert placeholder.a is placeholder.a
        assert placeholder.a.b is placeholder.a.b
        assert placeholder[0] is placeholder[0]

    def test_top_level_is_identity_stable(self, ctx, placeholder):
        assert ctx.get("pending") is placeholder

    def test_calls_chain(self, placeholder):
        assert placeholder.whatever() is placeholder.whatever
        assert is_placeholder(placeholder.a.b().c)

    def test_unhashable_keys(self, placeholder):
        assert is_placeholder(placeholder[["a"]])

    def test_dunder_and_private_names_raise(self, placeholder):
        assert not hasattr(placeholder, "__html__")
        with pytest.raises(AttributeError):
            placeholder._private


# =============================================================================
# Benign defaults
# =============================================================================


class TestBenignDefaults:
    def test_protocols(self, placeholder):
        assert list(placeholder) == []
        assert len(placeholder) == 0
        assert bool(placeholder) is False
        assert str(placeholder) == ""
        assert "x" not in placeholder
        assert repr(placeholder) == "<Placeholder pending>"

    def test_sequence_methods_return_empty_views(self, placeholder):
        filtered = placeholder.filter(lambda item: True)
        assert isinstance(filtered, ArrayView)
        assert filtered == []
        assert placeholder.query([["equal", "id", 1]]) == []
        assert placeholder.search("x") == []
        assert placeholder[1:3] == []

    def test_empty_view_keeps_capabilities(self, placeholder):
        assert placeholder.search("x").query([]) == []

    def test_terminal_defaults(self, placeholder):
        assert placeholder.map(lambda item: item) == []
        assert placeholder.find(lambda item: True) is None
        assert placeholder.find_index(lambda item: True) == -1
        assert placeholder.some(lambda item: True) is False
        assert placeholder.every(lambda item: True) is False
        assert placeholder.includes(1) is False
        assert placeholder.join(", ") == ""
        assert placeholder.reduce(lambda acc, item: acc, 5) == 5
        assert placeholder.get("key", "default") == "default"
        assert placeholder.keys() == []

    def test_method_names_still_chain_as_fields(self, placeholder):
        # A data field called "items" must remain chain-safe
        assert is_placeholder(placeholder.items.first.title)

    def test_route_returns_fallback(self, ctx, placeholder):
        assert placeholder.route("slug", "/a/b") is ctx.fallback


# =============================================================================
# Live state
# =============================================================================


class TestPlaceholderState:
    def test_state_keys_report_load_state(self, ctx, placeholder):
        assert placeholder.ready is False
        assert placeholder.loading is False
        assert placeholder.error is None

        ctx.store.mark_failed("pending", "offline")
        assert placeholder.error == "offline"
        assert placeholder.a.b.error == "offline"

    def test_fallback_state(self, ctx):
        fallback = ctx.fallback
        assert isinstance(fallback, Placeholder)
        assert fallback.ready is False
        assert fallback.loading is False
        assert is_placeholder(fallback.anything.at.all)

    @pytest.mark.asyncio
    async def test_loading_reported_while_fetching(self, ctx, memory_loader):
        memory_loader.set("slow", [1])
        placeholder = ctx.get("slow")

        assert placeholder.loading is True
        await ctx.load("slow")
        assert placeholder.loading is False

    def test_discarded_after_resolution(self, ctx, store):
        placeholder = ctx.get("late")
        store.set_shared("late", [1, 2])

        view = ctx.get("late")

        assert isinstance(view, ArrayView)
        assert view is not placeholder
        assert "late" not in ctx.placeholders
