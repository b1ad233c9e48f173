"""
Tests for the reentrancy guard.
"""

import pytest

from lazydata.runtime import ReentrancyGuard


class TestReentrancyGuard:
    def test_rejects_invalid_ceiling(self):
        with pytest.raises(ValueError):
            ReentrancyGuard(max_depth=0)

    def test_depth_tracks_nesting(self):
        guard = ReentrancyGuard(max_depth=3)

        with guard.enter() as overflow:
            assert overflow is False
            assert guard.depth == 1
            with guard.enter():
                assert guard.depth == 2

        assert guard.depth == 0
        assert guard.peak == 2

    def test_overflow_past_ceiling(self):
        guard = ReentrancyGuard(max_depth=2)
        seen = []

        def recurse():
            with guard.enter() as overflow:
                seen.append(overflow)
                if not overflow:
                    recurse()

        recurse()

        assert seen == [False, False, True]
        assert guard.trips == 1
        assert guard.depth == 0

    def test_depth_restored_after_exception(self):
        guard = ReentrancyGuard()

        with pytest.raises(RuntimeError):
            with guard.enter():
                with guard.enter():
                    raise RuntimeError("boom")

        assert guard.depth == 0

    def test_reset(self):
        guard = ReentrancyGuard(max_depth=1)
        with guard.enter():
            with guard.enter():
                pass

        guard.reset()
        assert guard.peak == 0
        assert guard.trips == 0

    def test_reset_refused_while_entered(self):
        guard = ReentrancyGuard()
        with guard.enter():
            with pytest.raises(RuntimeError):
                guard.reset()
