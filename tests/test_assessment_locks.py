"""Tests for the per-assessment lock registry."""

import threading

from cso_assessment.utils.assessment_locks import AssessmentLockRegistry


class TestAssessmentLockRegistry:
    """Keyed, re-entrant locks."""

    def test_entry_lives_while_held(self):
        """One entry per held assessment; released entries are dropped."""
        registry = AssessmentLockRegistry()
        with registry.hold("a1"):
            with registry.hold("a2"):
                assert len(registry) == 2
            assert len(registry) == 1
        assert len(registry) == 0

    def test_reentrant(self):
        """The holder can re-acquire its own lock."""
        registry = AssessmentLockRegistry()
        with registry.hold("a1"):
            with registry.hold("a1"):
                assert len(registry) == 1
            assert len(registry) == 1
        assert len(registry) == 0

    def test_released_on_error(self):
        """An exception inside the block still releases and drops the entry."""
        registry = AssessmentLockRegistry()
        try:
            with registry.hold("a1"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(registry) == 0

    def test_other_assessment_not_blocked(self):
        """Holding one assessment's lock does not block another."""
        registry = AssessmentLockRegistry()
        acquired = threading.Event()

        def worker():
            with registry.hold("a2"):
                acquired.set()

        with registry.hold("a1"):
            thread = threading.Thread(target=worker)
            thread.start()
            assert acquired.wait(timeout=2)
            thread.join()

    def test_waiter_serialized_until_last_holder_leaves(self):
        """A waiting thread keeps the entry and only enters after the holder exits."""
        registry = AssessmentLockRegistry()
        waiting = threading.Event()
        entered = threading.Event()

        def worker():
            waiting.set()
            with registry.hold("a1"):
                entered.set()

        with registry.hold("a1"):
            thread = threading.Thread(target=worker)
            thread.start()
            assert waiting.wait(timeout=2)
            assert not entered.wait(timeout=0.2)
            assert len(registry) == 1

        assert entered.wait(timeout=2)
        thread.join()
        assert len(registry) == 0
