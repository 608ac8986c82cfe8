"""
Studio Kernel — Shared Types

Data classes used across paths, executor, history, intent and session.
These are the contracts that bind the kernel together.

The Action union itself lives in studio.models.actions (pydantic, since it
is the wire shape produced by forms and the assistant). Everything here is
internal and plain.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Document layout
# ---------------------------------------------------------------------------

SECTIONS: tuple[str, ...] = (
    "header",
    "hero",
    "services",
    "about",
    "testimonials",
    "faq",
    "cta",
    "contact",
    "footer",
)

# Sections whose list of items is not stored under "items"
LIST_FIELDS: dict[str, str] = {
    "about": "values",
}

DEFAULT_LIST_FIELD = "items"


# ---------------------------------------------------------------------------
# Theme presets
# ---------------------------------------------------------------------------

THEME_PRESETS: dict[str, dict[str, str]] = {
    "forest": {"name": "Forêt", "primary": "#2D5A3D", "secondary": "#E5B94E"},
    "ocean": {"name": "Océan", "primary": "#1E3A5F", "secondary": "#4ECDC4"},
    "sunset": {"name": "Coucher", "primary": "#D4451A", "secondary": "#FFB347"},
    "lavender": {"name": "Lavande", "primary": "#6B5B95", "secondary": "#E8B4CB"},
    "midnight": {"name": "Minuit", "primary": "#1A1A2E", "secondary": "#E94560"},
    "minimal": {"name": "Minimal", "primary": "#333333", "secondary": "#666666"},
}

# Theme keys written by apply_preset / update_theme
THEME_PRIMARY_KEY = "primaryColor"
THEME_SECONDARY_KEY = "secondaryColor"


# ---------------------------------------------------------------------------
# Rollback intent types
# ---------------------------------------------------------------------------

ROLLBACK_TYPES: set[str] = {"last", "multiple", "toBatch", "reset", "partial"}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ChangeRecord:
    """One successfully executed mutation. Feeds diff previews."""

    path: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "old_value": self.old_value, "new_value": self.new_value}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ChangeRecord:
        return cls(path=d["path"], old_value=d.get("old_value"), new_value=d.get("new_value"))


@dataclass
class ActionResult:
    """Outcome of one attempted action. Failures carry "CODE: message"."""

    success: bool
    label: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"success": self.success, "label": self.label}
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class ExecuteResult:
    """
    Result of executing a list of actions.
    The executor never raises; it always returns one of these.
    """

    results: list[ActionResult]
    updated_content: dict[str, Any]
    changes: list[ChangeRecord] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failures(self) -> list[ActionResult]:
        return [r for r in self.results if not r.success]


@dataclass
class Batch:
    """
    One history entry: a group of actions applied together, undoable as a unit.

    snapshot_before / snapshot_after are deep copies owned by the history
    store. Only `applied` changes after creation.
    """

    id: str
    timestamp: str  # ISO 8601 UTC
    batch_id: str
    description: str
    user_prompt: str
    changes: list[ChangeRecord]
    snapshot_before: dict[str, Any]
    snapshot_after: dict[str, Any] | None = None
    applied: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "batch_id": self.batch_id,
            "description": self.description,
            "user_prompt": self.user_prompt,
            "changes": [c.to_dict() for c in self.changes],
            "snapshot_before": self.snapshot_before,
            "snapshot_after": self.snapshot_after,
            "applied": self.applied,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Batch:
        return cls(
            id=d["id"],
            timestamp=d["timestamp"],
            batch_id=d["batch_id"],
            description=d.get("description", ""),
            user_prompt=d.get("user_prompt", ""),
            changes=[ChangeRecord.from_dict(c) for c in d.get("changes", [])],
            snapshot_before=d["snapshot_before"],
            snapshot_after=d.get("snapshot_after"),
            applied=d.get("applied", True),
        )


@dataclass
class RollbackIntent:
    """Classification of a user message as a rollback request (or not)."""

    is_rollback: bool
    type: str | None = None
    count: int = 1
    target: str | None = None
    keep: str | None = None
    match: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.is_rollback:
            return {"is_rollback": False}
        return {
            "is_rollback": True,
            "type": self.type,
            "count": self.count,
            "target": self.target,
            "keep": self.keep,
        }


@dataclass
class Proposal:
    """
    What an action producer hands to the session: a form submit or a parsed
    assistant response. `actions` holds raw dicts or Action models.
    """

    message: str
    actions: list[Any] = field(default_factory=list)
    batch_id: str | None = None
    requires_confirmation: bool = False
    options: list[dict[str, Any]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def list_field_for(section: str) -> str:
    """Name of the array field holding a section's items."""
    return LIST_FIELDS.get(section, DEFAULT_LIST_FIELD)


def new_id(prefix: str) -> str:
    """Collision-free id such as 'item-3f9c1a2b7d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
