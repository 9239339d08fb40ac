"""
Aggregation store for resolved per-student statistics.

Keyed by student id, last write wins. A missing key means "unknown or failed",
which is distinct from a known zero. Writes that would not change the stored
value are swallowed so listeners never recompute for nothing.
"""

import logging
from typing import Callable, Dict, List, Optional

from tracker.data_models.stats import StatEntry

logger = logging.getLogger(__name__)

ChangeListener = Callable[[int], None]


class AggregationStore:
    """Latest solved count and composite score per student."""

    def __init__(self):
        self._entries: Dict[int, StatEntry] = {}
        self._listeners: List[ChangeListener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, student_id: int) -> bool:
        return student_id in self._entries

    def add_listener(self, listener: ChangeListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update(self, student_id: int, entry: Optional[StatEntry]) -> bool:
        """
        Replace the entry for a student, or clear it when entry is None.

        Returns:
            True if the stored value changed and listeners were notified
        """
        current = self._entries.get(student_id)
        if current == entry:
            return False

        if entry is None:
            del self._entries[student_id]
        else:
            self._entries[student_id] = entry

        for listener in list(self._listeners):
            try:
                listener(student_id)
            except Exception as e:
                logger.error(f"Aggregation listener failed for student {student_id}: {e}", exc_info=True)
        return True

    def discard(self, student_id: int):
        """Drop an entry without notifying, used when a binding is torn down."""
        self._entries.pop(student_id, None)

    def get(self, student_id: int) -> Optional[StatEntry]:
        return self._entries.get(student_id)

    def solved(self, student_id: int) -> Optional[int]:
        entry = self._entries.get(student_id)
        return entry.solved if entry else None

    def snapshot(self) -> Dict[int, StatEntry]:
        return dict(self._entries)

    def clear(self):
        self._entries.clear()
