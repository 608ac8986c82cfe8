"""
Studio Kernel — History Store

Linear undo log of applied batches with a movable cursor.

  entries:        [B0, B1, B2, B3]
  current_index:        ^ (B1 is the latest applied batch)

Rolling back moves the cursor left and marks the skipped entries
applied=False without deleting them, so redo can move right again.
Pushing a new batch cuts everything right of the cursor.

Retention is bounded; the oldest entries are evicted first and the
cursor is rebased onto what survives.

The store never touches the live document. Rollback returns the entries
involved; the caller restores entry.snapshot_before (redo: snapshot_after).
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from studio.config import settings
from studio.kernel.labels import humanize_path, keywords
from studio.kernel.types import Batch, ChangeRecord, new_id, now_iso

logger = logging.getLogger(__name__)


class HistoryStore:
    """Bounded batch history for one editing session."""

    def __init__(self, limit: int | None = None) -> None:
        self.limit = settings.HISTORY_LIMIT if limit is None else limit
        if self.limit < 1:
            raise ValueError("History limit must be at least 1")
        self._entries: list[Batch] = []
        self._current_index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[Batch]:
        return list(self._entries)

    @property
    def current_index(self) -> int:
        return self._current_index

    # -----------------------------------------------------------------------
    # Recording
    # -----------------------------------------------------------------------

    def push_batch(
        self,
        snapshot_before: dict[str, Any],
        changes: list[ChangeRecord],
        *,
        snapshot_after: dict[str, Any] | None = None,
        batch_id: str | None = None,
        description: str | None = None,
        user_prompt: str = "",
    ) -> Batch:
        """
        Record a batch as the newest applied entry.

        Any entries beyond the cursor (a stale redo future) are discarded.
        Snapshots are deep-copied so later edits cannot reach them.
        """
        batch = Batch(
            id=new_id("action"),
            timestamp=now_iso(),
            batch_id=batch_id or new_id("batch"),
            description=description or "Modification IA",
            user_prompt=user_prompt,
            changes=list(changes),
            snapshot_before=copy.deepcopy(snapshot_before),
            snapshot_after=copy.deepcopy(snapshot_after) if snapshot_after is not None else None,
            applied=True,
        )

        dropped = len(self._entries) - (self._current_index + 1)
        if dropped:
            logger.debug("history: discarding %d redoable entries", dropped)
        self._entries = self._entries[: self._current_index + 1]
        self._entries.append(batch)

        overflow = len(self._entries) - self.limit
        if overflow > 0:
            self._entries = self._entries[overflow:]
        self._current_index = len(self._entries) - 1

        return batch

    def clear(self) -> None:
        self._entries = []
        self._current_index = -1

    # -----------------------------------------------------------------------
    # Rollback / redo
    # -----------------------------------------------------------------------

    def rollback_last(self) -> Batch | None:
        """Undo the latest applied batch. None when there is nothing to undo."""
        if self._current_index < 0:
            return None
        entry = self._entries[self._current_index]
        entry.applied = False
        self._current_index -= 1
        return entry

    def rollback_multiple(self, count: int) -> list[Batch]:
        """Undo up to `count` batches. Returns them most recent first."""
        rolled: list[Batch] = []
        for _ in range(max(count, 0)):
            entry = self.rollback_last()
            if entry is None:
                break
            rolled.append(entry)
        return rolled

    def rollback_all(self) -> list[Batch]:
        """Undo every applied batch. The last element holds the initial snapshot."""
        return self.rollback_multiple(self._current_index + 1)

    def rollback_to_batch(self, batch_id: str) -> list[Batch] | None:
        """
        Undo the batch `batch_id` and everything applied after it.

        Returns the undone entries oldest first, so result[0].snapshot_before
        is the state to restore. Empty if that batch was already undone.
        None if no entry has this batch_id (or id), e.g. it was evicted.
        """
        target = self._find(batch_id)
        if target is None:
            return None

        rolled = self._entries[target : self._current_index + 1]
        for entry in self._entries[target:]:
            entry.applied = False
        self._current_index = min(self._current_index, target - 1)
        return rolled

    def redo(self) -> Batch | None:
        """Re-apply the next undone batch. None when there is nothing to redo."""
        if self._current_index >= len(self._entries) - 1:
            return None
        self._current_index += 1
        entry = self._entries[self._current_index]
        entry.applied = True
        return entry

    def can_rollback(self) -> bool:
        return self._current_index >= 0

    def can_redo(self) -> bool:
        return self._current_index < len(self._entries) - 1

    # -----------------------------------------------------------------------
    # Read-only views
    # -----------------------------------------------------------------------

    def get_last_action(self) -> Batch | None:
        return self._entries[self._current_index] if self._current_index >= 0 else None

    def get_recent_actions(self, count: int = 5) -> list[Batch]:
        """Up to `count` latest applied batches, oldest first."""
        if count <= 0:
            return []
        start = max(0, self._current_index - count + 1)
        return self._entries[start : self._current_index + 1]

    def get_history_summary(self) -> list[dict[str, Any]]:
        """Compact view of the applied batches, for the assistant's context."""
        return [
            {
                "description": b.description,
                "user_prompt": b.user_prompt,
                "changes_count": len(b.changes),
                "timestamp": b.timestamp,
            }
            for b in self._entries[: self._current_index + 1]
        ]

    def get_initial_snapshot(self) -> dict[str, Any] | None:
        """Document state before the oldest retained batch."""
        return self._entries[0].snapshot_before if self._entries else None

    def find_by_description(self, text: str) -> Batch | None:
        """
        Most recent applied batch whose description, prompt, or changed
        paths mention `text` (case-insensitive).

        The whole phrase is tried first. Failing that, any of its keywords
        will do, so "le changement de couleur" finds "Couleur principale".
        """
        needle = (text or "").lower().strip()
        if not needle:
            return None
        applied = [(entry, self._search_text(entry)) for entry in reversed(self._entries[: self._current_index + 1])]

        for entry, haystack in applied:
            if needle in haystack:
                return entry

        words = keywords(needle)
        for entry, haystack in applied:
            if any(w in haystack for w in words):
                return entry
        return None

    @staticmethod
    def _search_text(entry: Batch) -> str:
        parts = [entry.description, entry.user_prompt]
        for change in entry.changes:
            parts.append(change.path)
            parts.append(humanize_path(change.path))
        return "\n".join(p or "" for p in parts).lower()

    def _find(self, batch_id: str) -> int | None:
        for i, entry in enumerate(self._entries):
            if entry.batch_id == batch_id or entry.id == batch_id:
                return i
        return None
