from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from .diagram import Diagram, State

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


@dataclass(frozen=True)
class StateRecord:
    id: int
    label: str
    x: float
    y: float
    is_start: bool
    is_accept: bool


@dataclass(frozen=True)
class TransitionRecord:
    from_id: int
    to_id: int
    symbols: Tuple[str, ...]
    curved: bool


@dataclass(frozen=True)
class HistoryEntry:
    """Value copy of a diagram; nothing in here points back at live objects."""

    states: Tuple[StateRecord, ...]
    transitions: Tuple[TransitionRecord, ...]
    start_id: Optional[int]
    accept_ids: FrozenSet[int]
    next_id: int
    action: str
    timestamp: float

    @classmethod
    def capture(cls, diagram: Diagram, action: str) -> "HistoryEntry":
        return cls(
            states=tuple(
                StateRecord(s.id, s.label, s.x, s.y, s.is_start, s.is_accept) for s in diagram.states
            ),
            transitions=tuple(
                TransitionRecord(t.from_id, t.to_id, tuple(t.symbols), t.curved) for t in diagram.transitions
            ),
            start_id=diagram.start_id,
            accept_ids=diagram.accept_ids,
            next_id=diagram.next_id,
            action=action,
            timestamp=time.time(),
        )

    def to_diagram(self) -> Diagram:
        diagram = Diagram()
        for record in self.states:
            diagram.insert_state(
                State(
                    id=record.id,
                    label=record.label,
                    x=record.x,
                    y=record.y,
                    is_start=record.id == self.start_id,
                    is_accept=record.id in self.accept_ids,
                ),
                record=False,
            )
        for record in self.transitions:
            diagram.add_transition(
                record.from_id, record.to_id, list(record.symbols), record.curved, record=False
            )
        diagram.reserve_ids(self.next_id)
        return diagram


class History:
    """Linear undo/redo stack over one diagram.

    Entry ``i`` holds the diagram as it stood after action ``i``; entry 0 is the
    oldest retained one. Snapshots are requested *before* a mutation, so the
    entry under the cursor is refreshed from the live diagram whenever the
    cursor is about to leave it (a new snapshot, undo or redo). That refresh is
    what makes redo return the post-mutation diagram.
    """

    def __init__(self, diagram: Diagram, limit: int = HISTORY_LIMIT) -> None:
        if limit < 2:
            raise ValueError("History needs room for at least two entries.")
        self._diagram = diagram
        self._limit = limit
        self._entries: List[HistoryEntry] = []
        self._cursor = -1
        self._restoring = False
        diagram.set_snapshot_hook(self.snapshot)
        self.snapshot("initial state")

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def snapshot(self, action: str = "action") -> Optional[HistoryEntry]:
        if self._restoring:
            return None
        self._refresh_current()
        entry = HistoryEntry.capture(self._diagram, action)
        del self._entries[self._cursor + 1:]
        self._entries.append(entry)
        self._cursor += 1
        if len(self._entries) > self._limit:
            self._entries.pop(0)
            self._cursor -= 1
        logger.debug("Snapshot %r (%d/%d)", action, self._cursor + 1, len(self._entries))
        return entry

    def _refresh_current(self) -> None:
        if self._cursor < 0:
            return
        stale = self._entries[self._cursor]
        fresh = HistoryEntry.capture(self._diagram, stale.action)
        self._entries[self._cursor] = dataclasses.replace(fresh, timestamp=stale.timestamp)

    def undo(self) -> Optional[HistoryEntry]:
        """Step back one entry; returns the entry of the action that was undone, or None."""
        if not self.can_undo:
            return None
        self._refresh_current()
        undone = self._entries[self._cursor]
        self._cursor -= 1
        self._restore(self._entries[self._cursor])
        return undone

    def redo(self) -> Optional[HistoryEntry]:
        """Step forward one entry; returns the entry of the action that was redone, or None."""
        if not self.can_redo:
            return None
        self._refresh_current()
        self._cursor += 1
        entry = self._entries[self._cursor]
        self._restore(entry)
        return entry

    def _restore(self, entry: HistoryEntry) -> None:
        self._restoring = True
        try:
            self._diagram.adopt(entry.to_diagram(), action=entry.action, record=False)
        finally:
            self._restoring = False

    def reset(self) -> None:
        """Forget every entry; the live diagram becomes the new initial state."""
        self._entries.clear()
        self._cursor = -1
        self.snapshot("initial state")
