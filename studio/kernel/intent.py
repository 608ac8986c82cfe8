"""
Studio Kernel — Rollback Intent

Classifies a user message as a rollback request before it reaches the
assistant. Best-effort phrase matching, not language understanding:
anything unmatched is treated as a normal edit request.

Rules are tried in order and the first match wins. Specific rules
(counted undo, keep-X-undo-the-rest, reset, undo-to-target) come before
the generic "undo" phrases that would otherwise swallow them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from studio.kernel.types import ROLLBACK_TYPES, RollbackIntent


@dataclass(frozen=True)
class RollbackRule:
    """A pattern and the rollback type it signals.

    Named groups feed the intent: `count` (multiple), `target` (toBatch),
    `keep` (partial).
    """

    pattern: re.Pattern[str]
    type: str

    def __post_init__(self) -> None:
        if self.type not in ROLLBACK_TYPES:
            raise ValueError(f"Unknown rollback type: {self.type}")


def _rule(pattern: str, type: str) -> RollbackRule:
    return RollbackRule(re.compile(pattern), type)


DEFAULT_RULES: tuple[RollbackRule, ...] = (
    # Counted: "annule les 3 derniers changements", "undo the last 2 changes"
    _rule(
        r"\bannule[rz]?\s+les?\s+(?P<count>\d+)\s+derni(?:er|ère|ere)s?\s+"
        r"(?:changements?|modifs?|modifications?|actions?)\b",
        "multiple",
    ),
    _rule(r"\bundo\s+(?:the\s+)?last\s+(?P<count>\d+)\s+(?:changes?|edits?|actions?)\b", "multiple"),
    # Keep part of the last batch: "garde juste le titre, annule le reste"
    _rule(
        r"\bgarde\s+(?:juste|seulement|que)\s+(?P<keep>.+?)\s*,?\s*(?:et\s+)?annule\s+(?:le\s+reste|les\s+autres)\b",
        "partial",
    ),
    _rule(r"\bkeep\s+(?:only|just)\s+(?P<keep>.+?)\s*,?\s*(?:and\s+)?undo\s+the\s+rest\b", "partial"),
    # Start over
    _rule(r"\brecommence\s+(?:depuis\s+le\s+début|à\s+zéro|tout)\b", "reset"),
    _rule(r"\b(?:start\s+over|undo\s+everything)\b", "reset"),
    # Back to before a named change: "reviens à avant le changement de couleur"
    _rule(r"\breviens?\s+(?:à|au)\s+avant\s+(?:(?:les|le|la|l')\s*)?(?P<target>.+)$", "toBatch"),
    _rule(r"\bgo\s+back\s+to\s+before\s+(?:the\s+)?(?P<target>.+)$", "toBatch"),
    # Generic single undo
    _rule(r"^(?:annule|annuler|undo|cancel)\s*[.!]*$", "last"),
    _rule(r"\bannule[rz]?\s+(?:ça|ca|le\s+dernier|ton\s+dernier|cette\s+modif(?:ication)?)\b", "last"),
    _rule(r"\breviens?\s+(?:en\s+arrière|avant)\s*[.!]*$", "last"),
    _rule(r"\bdéfais?\s+(?:ça|ca|le\s+dernier)\b", "last"),
    _rule(r"^non\s*,?\s*(?:finalement|en\s+fait)\b", "last"),
    _rule(r"\bc'était\s+mieux\s+avant\b", "last"),
    _rule(r"^undo\s+(?:that|it|the\s+last\s+change)\s*[.!]*$", "last"),
)


class IntentParser(Protocol):
    """Anything that can turn a message into a RollbackIntent."""

    def classify(self, text: str) -> RollbackIntent: ...


def normalize(text: str) -> str:
    """Lower-case, trim, collapse whitespace, straighten apostrophes."""
    text = text.replace("\u2019", "'").replace("\u00a0", " ")
    return re.sub(r"\s+", " ", text).strip().lower()


class RegexIntentParser:
    """Ordered rule-table classifier. First matching rule wins."""

    def __init__(self, rules: tuple[RollbackRule, ...] | list[RollbackRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def classify(self, text: str) -> RollbackIntent:
        if not isinstance(text, str):
            return RollbackIntent(is_rollback=False)
        normalized = normalize(text)
        if not normalized:
            return RollbackIntent(is_rollback=False)

        for rule in self.rules:
            m = rule.pattern.search(normalized)
            if m is None:
                continue
            groups = m.groupdict()
            count = int(groups["count"]) if groups.get("count") else 1
            target = (groups.get("target") or "").strip(" .!?") or None
            keep = (groups.get("keep") or "").strip(" .!?,") or None
            return RollbackIntent(
                is_rollback=True,
                type=rule.type,
                count=count,
                target=target if rule.type == "toBatch" else None,
                keep=keep if rule.type == "partial" else None,
                match=m.group(0),
            )

        return RollbackIntent(is_rollback=False)


_default_parser = RegexIntentParser()


def classify(text: str) -> RollbackIntent:
    """Classify with the default French/English rule table."""
    return _default_parser.classify(text)
