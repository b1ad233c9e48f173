"""
Tests for the shape classifier.
"""

from collections import UserList

from lazydata.shape import Shape, classify, classify_shape, is_array_like, to_list


class ArrayLike:
    """Host-style wrapper: integer length and indexing, not a Sequence."""

    def __init__(self, *items):
        self._items = list(items)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, index):
        return self._items[index]


class KeyedOnly:
    """Has __len__ and __getitem__ but is not integer-indexed."""

    def __len__(self):
        return 1

    def __getitem__(self, key):
        raise KeyError(key)


class Opaque:
    pass


# =============================================================================
# is_array_like
# =============================================================================


class TestIsArrayLike:
    def test_native_sequences(self):
        assert is_array_like([1, 2])
        assert is_array_like((1, 2))
        assert is_array_like(UserList([1]))

    def test_empty_list_is_array_like(self):
        assert is_array_like([])

    def test_text_is_not_array_like(self):
        assert not is_array_like("abc")
        assert not is_array_like(b"abc")

    def test_mapping_is_not_array_like(self):
        assert not is_array_like({"0": "a"})

    def test_structural_array_like(self):
        assert is_array_like(ArrayLike("a", "b"))
        assert is_array_like(ArrayLike())

    def test_non_integer_indexing_rejected(self):
        assert not is_array_like(KeyedOnly())

    def test_none_and_objects(self):
        assert not is_array_like(None)
        assert not is_array_like(Opaque())


# =============================================================================
# classify
# =============================================================================


class TestClassify:
    def test_empty_sequence_is_array(self):
        assert classify([]) is Shape.ARRAY

    def test_mapping_is_object(self):
        assert classify({"a": 1}) is Shape.OBJECT

    def test_primitives_are_scalar(self):
        for value in (1, 2.5, True, "text", b"bytes"):
            assert classify(value) is Shape.SCALAR

    def test_structural_array_like_is_array(self):
        assert classify(ArrayLike(1)) is Shape.ARRAY

    def test_ambiguous_value_defaults_to_scalar(self):
        assert classify_shape(Opaque()) is Shape.UNKNOWN
        assert classify(Opaque()) is Shape.SCALAR

    def test_none_is_unknown(self):
        assert classify_shape(None) is Shape.UNKNOWN


class TestToList:
    def test_list_is_returned_as_is(self):
        items = [1, 2]
        assert to_list(items) is items

    def test_tuple_and_array_like(self):
        assert to_list((1, 2)) == [1, 2]
        assert to_list(ArrayLike("a", "b")) == ["a", "b"]
