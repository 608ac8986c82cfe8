"""
History store tests.

Covers:
  - push/rollback cursor movement and applied flags
  - pushing after a rollback discards the redo future
  - bounded retention evicts oldest entries
  - rollback_multiple / rollback_all / rollback_to_batch
  - redo
  - summaries and lookups
  - snapshots are isolated from later edits
"""

import pytest

from studio.kernel.history import HistoryStore
from studio.kernel.types import Batch, ChangeRecord


def change(path="hero.title", old="a", new="b"):
    return ChangeRecord(path, old, new)


def push_states(store, states, **kwargs):
    """Push one batch per consecutive pair of states. Returns the batches."""
    batches = []
    for i, (before, after) in enumerate(zip(states, states[1:])):
        batches.append(
            store.push_batch(
                before,
                [change("hero.title", before["hero"]["title"], after["hero"]["title"])],
                snapshot_after=after,
                description=f"Étape {i + 1}",
                user_prompt=f"prompt {i + 1}",
                **kwargs,
            )
        )
    return batches


def docs(*titles):
    return [{"hero": {"title": t}} for t in titles]


# ============================================================================
# Recording
# ============================================================================


class TestPush:
    def test_empty_store(self):
        store = HistoryStore()
        assert len(store) == 0
        assert store.current_index == -1
        assert not store.can_rollback()
        assert not store.can_redo()
        assert store.get_last_action() is None
        assert store.get_initial_snapshot() is None

    def test_push_sets_cursor_to_newest(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C"))
        assert store.current_index == 1
        assert store.get_last_action() is batches[-1]
        assert all(b.applied for b in batches)

    def test_push_defaults(self):
        store = HistoryStore()
        batch = store.push_batch({"a": 1}, [change()])
        assert batch.description == "Modification IA"
        assert batch.batch_id.startswith("batch-")
        assert batch.id.startswith("action-")
        assert batch.id != batch.batch_id
        assert batch.timestamp.endswith("Z")

    def test_batch_id_is_kept(self):
        store = HistoryStore()
        batch = store.push_batch({}, [change()], batch_id="batch-42")
        assert batch.batch_id == "batch-42"

    def test_snapshots_are_isolated(self):
        store = HistoryStore()
        before = {"hero": {"title": "A"}}
        after = {"hero": {"title": "B"}}
        batch = store.push_batch(before, [change()], snapshot_after=after)
        before["hero"]["title"] = "mutated"
        after["hero"]["title"] = "mutated"
        assert batch.snapshot_before == {"hero": {"title": "A"}}
        assert batch.snapshot_after == {"hero": {"title": "B"}}

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            HistoryStore(limit=0)

    def test_clear(self):
        store = HistoryStore()
        push_states(store, docs("A", "B"))
        store.clear()
        assert len(store) == 0
        assert store.current_index == -1


# ============================================================================
# Retention
# ============================================================================


class TestRetention:
    def test_limit_evicts_oldest(self):
        store = HistoryStore(limit=50)
        push_states(store, docs(*[f"T{i}" for i in range(61)]))
        assert len(store) == 50
        assert store.current_index == 49
        assert store.entries[0].description == "Étape 11"

    def test_initial_snapshot_follows_eviction(self):
        store = HistoryStore(limit=2)
        push_states(store, docs("A", "B", "C", "D"))
        assert store.get_initial_snapshot() == {"hero": {"title": "B"}}

    def test_eviction_keeps_cursor_consistent(self):
        store = HistoryStore(limit=3)
        push_states(store, docs("A", "B", "C", "D", "E"))
        undone = store.rollback_all()
        assert len(undone) == 3
        assert undone[-1].snapshot_before == {"hero": {"title": "B"}}

    def test_evicted_batch_is_unreachable(self):
        store = HistoryStore(limit=2)
        batches = push_states(store, docs("A", "B", "C", "D"))
        evicted = batches[0]

        assert store.rollback_to_batch(evicted.batch_id) is None
        assert store.rollback_to_batch(evicted.id) is None
        assert store.current_index == 1
        assert all(b.applied for b in store.entries)


# ============================================================================
# Rollback
# ============================================================================


class TestRollback:
    def test_scenario_c_two_batches(self):
        store = HistoryStore()
        s0, s1, s2 = docs("X", "Y", "Z")
        push_states(store, [s0, s1, s2])

        b2 = store.rollback_last()
        assert b2.snapshot_before == s1
        assert store.current_index == 0
        b1 = store.rollback_last()
        assert b1.snapshot_before == s0
        assert store.current_index == -1
        assert store.rollback_last() is None

    def test_rolled_back_entries_are_kept_but_unapplied(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C"))
        store.rollback_last()
        assert len(store) == 2
        assert batches[1].applied is False
        assert batches[0].applied is True

    def test_push_after_rollback_discards_redo_future(self):
        store = HistoryStore()
        push_states(store, docs("A", "B", "C"))
        store.rollback_last()
        store.push_batch({"hero": {"title": "B"}}, [change()], description="Nouvelle branche")
        assert len(store) == 2
        assert store.entries[-1].description == "Nouvelle branche"
        assert not store.can_redo()

    def test_rollback_multiple_returns_most_recent_first(self):
        store = HistoryStore()
        push_states(store, docs("A", "B", "C", "D"))
        rolled = store.rollback_multiple(2)
        assert [b.description for b in rolled] == ["Étape 3", "Étape 2"]
        assert rolled[-1].snapshot_before == {"hero": {"title": "B"}}
        assert store.current_index == 0

    def test_rollback_multiple_stops_at_start(self):
        store = HistoryStore()
        push_states(store, docs("A", "B"))
        assert len(store.rollback_multiple(5)) == 1
        assert store.rollback_multiple(1) == []

    def test_rollback_all(self):
        store = HistoryStore()
        push_states(store, docs("A", "B", "C", "D"))
        rolled = store.rollback_all()
        assert len(rolled) == 3
        assert rolled[-1].snapshot_before == {"hero": {"title": "A"}}
        assert not store.can_rollback()
        assert all(not b.applied for b in store.entries)

    def test_rollback_to_batch(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C", "D"))
        rolled = store.rollback_to_batch(batches[1].batch_id)
        assert [b.description for b in rolled] == ["Étape 2", "Étape 3"]
        assert rolled[0].snapshot_before == {"hero": {"title": "B"}}
        assert store.current_index == 0
        assert [b.applied for b in store.entries] == [True, False, False]

    def test_rollback_to_batch_by_entry_id(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C"))
        rolled = store.rollback_to_batch(batches[1].id)
        assert rolled == [batches[1]]

    def test_rollback_to_unknown_batch(self):
        store = HistoryStore()
        push_states(store, docs("A", "B"))
        assert store.rollback_to_batch("batch-nope") is None
        assert store.current_index == 0

    def test_rollback_to_already_undone_batch(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C"))
        store.rollback_last()
        assert store.rollback_to_batch(batches[1].batch_id) == []
        assert store.current_index == 0


# ============================================================================
# Redo
# ============================================================================


class TestRedo:
    def test_redo_moves_cursor_forward(self):
        store = HistoryStore()
        batches = push_states(store, docs("A", "B", "C"))
        store.rollback_multiple(2)
        assert store.can_redo()

        entry = store.redo()
        assert entry is batches[0]
        assert entry.applied is True
        assert entry.snapshot_after == {"hero": {"title": "B"}}
        assert store.current_index == 0

    def test_redo_at_head(self):
        store = HistoryStore()
        push_states(store, docs("A", "B"))
        assert store.redo() is None


# ============================================================================
# Views
# ============================================================================


class TestViews:
    def test_history_summary_lists_applied_batches(self):
        store = HistoryStore()
        push_states(store, docs("A", "B", "C"))
        store.rollback_last()
        summary = store.get_history_summary()
        assert len(summary) == 1
        assert summary[0]["description"] == "Étape 1"
        assert summary[0]["user_prompt"] == "prompt 1"
        assert summary[0]["changes_count"] == 1
        assert "timestamp" in summary[0]

    def test_recent_actions(self):
        store = HistoryStore()
        push_states(store, docs(*"ABCDEFG"))
        recent = store.get_recent_actions(3)
        assert [b.description for b in recent] == ["Étape 4", "Étape 5", "Étape 6"]
        assert store.get_recent_actions(0) == []

    def test_find_by_description(self):
        store = HistoryStore()
        store.push_batch({}, [change("theme", {}, {})], description="Palette océan")
        store.push_batch({}, [change("hero.title")], description="Nouveau titre")
        assert store.find_by_description("PALETTE").description == "Palette océan"

    def test_find_by_humanized_path(self):
        store = HistoryStore()
        store.push_batch({}, [change("theme.primaryColor", "#000", "#fff")], description="Retouche")
        store.push_batch({}, [change("hero.subtitle")], description="Autre")
        assert store.find_by_description("couleur principale").description == "Retouche"

    def test_find_prefers_most_recent(self):
        store = HistoryStore()
        store.push_batch({}, [change()], description="Titre v1")
        store.push_batch({}, [change()], description="Titre v2")
        assert store.find_by_description("titre").description == "Titre v2"

    def test_find_ignores_undone_batches(self):
        store = HistoryStore()
        store.push_batch({}, [change()], description="Titre")
        store.rollback_last()
        assert store.find_by_description("titre") is None
        assert store.find_by_description("   ") is None

    def test_batch_dict_round_trip(self):
        store = HistoryStore()
        batch = store.push_batch({"a": 1}, [change()], snapshot_after={"a": 2}, description="D")
        assert Batch.from_dict(batch.to_dict()) == batch
