"""
Per-assessment write lock registry.

Problem: suggestion regeneration deletes then inserts a report's suggestions.
Two concurrent regenerations for the same assessment can interleave and
leave duplicates or a lost update.

Solution: a shared, thread-safe registry of locks keyed by assessment id.
Different assessments never block each other. An entry lives only while
some thread holds or waits on it, so the registry stays as small as the
number of assessments being regenerated right now.

Usage:
    from cso_assessment.utils.assessment_locks import assessment_locks

    with assessment_locks.hold(assessment_id):
        ...
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class _LockEntry:
    lock: threading.RLock = field(default_factory=threading.RLock)
    holders: int = 0  # threads holding or waiting, re-entries included


class AssessmentLockRegistry:
    """
    Thread-safe registry of re-entrant locks, one per assessment.
    """

    def __init__(self):
        self._locks: Dict[str, _LockEntry] = {}
        self._master_lock = threading.Lock()

    def _acquire_entry(self, assessment_id: str) -> _LockEntry:
        with self._master_lock:
            entry = self._locks.get(assessment_id)
            if entry is None:
                entry = self._locks[assessment_id] = _LockEntry()
            entry.holders += 1
            return entry

    def _release_entry(self, assessment_id: str, entry: _LockEntry) -> None:
        with self._master_lock:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(assessment_id, None)

    @contextmanager
    def hold(self, assessment_id: str):
        """Hold the assessment's lock for the duration of the block."""
        # Registered before blocking on the lock, so a waiter keeps the entry alive
        entry = self._acquire_entry(assessment_id)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(assessment_id, entry)

    def __len__(self) -> int:
        """Number of assessments currently held or waited on."""
        with self._master_lock:
            return len(self._locks)


# Singleton instance - shared by every engine in the process
assessment_locks = AssessmentLockRegistry()
