"""
Studio Kernel — Editing Session

Coordinates executor, history, intent parser and conversation log for one
site being edited. This is the layer the UI talks to; everything below it
is pure.

Turn protocol:

  IDLE ──submit──▶ AWAITING_RESULT
  AWAITING_RESULT ──rollback detected──▶ ROLLBACK_APPLIED ──▶ IDLE
  AWAITING_RESULT ──actions, needs confirmation──▶ ACTIONS_PROPOSED
  ACTIONS_PROPOSED ──confirm(subset)──▶ ACTIONS_APPLIED ──push──▶ IDLE
  ACTIONS_PROPOSED ──cancel──▶ IDLE            (no mutation, no history)
  AWAITING_RESULT ──actions──▶ ACTIONS_APPLIED ──push──▶ IDLE
  AWAITING_RESULT ──error──▶ ERROR_REPORTED ──▶ IDLE   (document unchanged)

Manual edits (apply), undo and redo start from IDLE. Only one turn is in
flight at a time; calls from the wrong state raise SessionStateError.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from studio.errors import SessionStateError
from studio.kernel.conversation import ConversationLog
from studio.kernel.executor import ActionExecutor
from studio.kernel.history import HistoryStore
from studio.kernel.intent import IntentParser, RegexIntentParser
from studio.kernel.labels import humanize_path, keywords
from studio.kernel.response import parse_assistant_response, proposal_from_dict
from studio.kernel.types import (
    ActionResult,
    Batch,
    ChangeRecord,
    Proposal,
    RollbackIntent,
)
from studio.models.actions import UpdateAction

logger = logging.getLogger(__name__)

_INDEXED_PATH = re.compile(r"\[\d+\]$")


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_RESULT = "awaiting_result"
    ACTIONS_PROPOSED = "actions_proposed"
    ACTIONS_APPLIED = "actions_applied"
    ROLLBACK_APPLIED = "rollback_applied"
    ERROR_REPORTED = "error_reported"


@dataclass
class TurnOutcome:
    """
    What a session call did.

    kind: applied | proposed | message | rollback | redo | cancelled | error | noop
    """

    kind: str
    message: str
    results: list[ActionResult] = field(default_factory=list)
    changes: list[ChangeRecord] = field(default_factory=list)
    batch: Batch | None = None
    rolled_back: list[Batch] = field(default_factory=list)
    intent: RollbackIntent | None = None
    proposal: Proposal | None = None


class EditingSession:
    """
    Document + history + conversation for one editing session.

    Sessions share nothing; construct as many as needed.
    """

    def __init__(
        self,
        document: dict[str, Any],
        *,
        history: HistoryStore | None = None,
        executor: ActionExecutor | None = None,
        intent_parser: IntentParser | None = None,
        conversation: ConversationLog | None = None,
    ) -> None:
        self._document = copy.deepcopy(document)
        self.history = history or HistoryStore()
        self.executor = executor or ActionExecutor()
        self.intent_parser = intent_parser or RegexIntentParser()
        self.conversation = conversation or ConversationLog()
        self._state = SessionState.IDLE
        self._pending: Proposal | None = None
        self._prompt = ""
        self.last_transitions: list[SessionState] = [SessionState.IDLE]

    @property
    def document(self) -> dict[str, Any]:
        """Current document. Treat as read-only; edits go through the session."""
        return self._document

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def pending(self) -> Proposal | None:
        return self._pending

    # -----------------------------------------------------------------------
    # Assistant turn
    # -----------------------------------------------------------------------

    def submit(self, text: str) -> TurnOutcome | None:
        """
        Start a turn with a user message.

        Rollback phrases are handled right here and the outcome returned.
        Otherwise returns None: the caller asks the assistant and hands the
        reply to receive_proposal / receive_response, or calls report_error.
        """
        self._require(SessionState.IDLE, "submit")
        text = (text or "").strip()
        if not text:
            return TurnOutcome(kind="noop", message="")

        self._begin_turn()
        self._transition(SessionState.AWAITING_RESULT)
        self._prompt = text
        self.conversation.add_message("user", text)

        intent = self.intent_parser.classify(text)
        if intent.is_rollback:
            logger.info("session: rollback intent %s (count=%d)", intent.type, intent.count)
            return self._rollback(intent)
        return None

    def receive_response(self, text: str) -> TurnOutcome:
        """Parse a raw assistant reply and continue the turn with it."""
        return self.receive_proposal(parse_assistant_response(text))

    def receive_proposal(self, proposal: Proposal | dict[str, Any]) -> TurnOutcome:
        self._require(SessionState.AWAITING_RESULT, "receive_proposal")
        if isinstance(proposal, dict):
            proposal = proposal_from_dict(proposal)

        if not proposal.actions:
            self.conversation.add_message("assistant", proposal.message, options=proposal.options)
            self._transition(SessionState.IDLE)
            return TurnOutcome(kind="message", message=proposal.message, proposal=proposal)

        if proposal.requires_confirmation:
            self._pending = proposal
            self.conversation.add_message(
                "assistant",
                proposal.message,
                has_pending_actions=True,
                actions_count=len(proposal.actions),
            )
            self._transition(SessionState.ACTIONS_PROPOSED)
            return TurnOutcome(kind="proposed", message=proposal.message, proposal=proposal)

        return self._apply(proposal.actions, description=proposal.message, batch_id=proposal.batch_id)

    def confirm(self, indexes: list[int] | None = None) -> TurnOutcome:
        """Apply the pending proposal, or only the actions at `indexes`."""
        self._require(SessionState.ACTIONS_PROPOSED, "confirm")
        proposal = self._pending
        if proposal is None:
            raise SessionStateError("confirm() has no pending proposal")

        if indexes is None:
            selected = list(proposal.actions)
        else:
            wanted = set(indexes)
            selected = [a for i, a in enumerate(proposal.actions) if i in wanted]
        if not selected:
            return TurnOutcome(kind="noop", message="Sélectionne au moins une modification à appliquer")

        self._pending = None
        return self._apply(selected, description=proposal.message, batch_id=proposal.batch_id)

    def cancel(self) -> TurnOutcome:
        """Drop the pending proposal. Nothing is applied or recorded."""
        self._require(SessionState.ACTIONS_PROPOSED, "cancel")
        proposal = self._pending
        self._pending = None
        message = "Pas de souci ! Qu'est-ce que tu voudrais faire à la place ?"
        self.conversation.add_message("assistant", message)
        self._transition(SessionState.IDLE)
        return TurnOutcome(kind="cancelled", message=message, proposal=proposal)

    def report_error(self, error: str | Exception) -> TurnOutcome:
        """The assistant call failed. The document is left as it was."""
        self._require(SessionState.AWAITING_RESULT, "report_error")
        logger.warning("session: assistant call failed: %s", error)
        message = f"Erreur: {error or 'Réessaie dans quelques secondes.'}"
        self.conversation.add_message("assistant", message, retry_prompt=self._prompt)
        self._transition(SessionState.ERROR_REPORTED)
        self._transition(SessionState.IDLE)
        return TurnOutcome(kind="error", message=message)

    # -----------------------------------------------------------------------
    # Manual edits and navigation
    # -----------------------------------------------------------------------

    def apply(
        self,
        actions: list[Any],
        *,
        description: str | None = None,
        batch_id: str | None = None,
    ) -> TurnOutcome:
        """Apply actions from a form, without an assistant turn."""
        self._require(SessionState.IDLE, "apply")
        self._begin_turn()
        self._prompt = ""
        return self._apply(actions, description=description or "Modification manuelle", batch_id=batch_id)

    def undo(self) -> TurnOutcome:
        self._require(SessionState.IDLE, "undo")
        self._begin_turn()
        return self._rollback(RollbackIntent(is_rollback=True, type="last"))

    def redo(self) -> TurnOutcome:
        self._require(SessionState.IDLE, "redo")
        self._begin_turn()
        entry = self.history.redo()
        if entry is None:
            return TurnOutcome(kind="noop", message="Rien à rétablir.")
        if entry.snapshot_after is None:
            # Entry recorded without a post-batch state: put the cursor back.
            self.history.rollback_last()
            logger.warning("session: batch %s has no snapshot_after, cannot redo", entry.batch_id)
            return TurnOutcome(kind="noop", message="Impossible de rétablir cette modification.")

        self._restore(entry.snapshot_after)
        logger.info("session: redid batch %s", entry.batch_id)
        return TurnOutcome(kind="redo", message=f'Rétabli : "{entry.description}"', batch=entry)

    def can_undo(self) -> bool:
        return self.history.can_rollback()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _require(self, state: SessionState, operation: str) -> None:
        if self._state != state:
            raise SessionStateError(f"{operation}() requires state {state.value}, session is {self._state.value}")

    def _begin_turn(self) -> None:
        self.last_transitions = [self._state]

    def _transition(self, state: SessionState) -> None:
        logger.debug("session: %s -> %s", self._state.value, state.value)
        self._state = state
        self.last_transitions.append(state)

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._document = copy.deepcopy(snapshot)

    def _apply(self, actions: list[Any], *, description: str, batch_id: str | None) -> TurnOutcome:
        self._transition(SessionState.ACTIONS_APPLIED)
        before = self._document
        result = self.executor.execute(actions, before)

        batch = None
        if result.changes:
            self._document = result.updated_content
            batch = self.history.push_batch(
                before,
                result.changes,
                snapshot_after=result.updated_content,
                batch_id=batch_id,
                description=description,
                user_prompt=self._prompt,
            )
            logger.info(
                "session: applied batch %s (%d/%d actions, %d changes)",
                batch.batch_id,
                result.success_count,
                len(result.results),
                len(result.changes),
            )

        message = f"{result.success_count} modification(s) appliquée(s)"
        self.conversation.add_message(
            "assistant",
            message,
            actions=[r.to_dict() for r in result.results],
            can_rollback=batch is not None,
        )
        self._transition(SessionState.IDLE)
        return TurnOutcome(
            kind="applied",
            message=message,
            results=result.results,
            changes=result.changes,
            batch=batch,
        )

    def _rollback(self, intent: RollbackIntent) -> TurnOutcome:
        if not self.history.can_rollback():
            return self._rollback_noop(intent, "Rien à annuler ! Aucune modification à défaire.")

        if intent.type == "multiple":
            rolled = self.history.rollback_multiple(intent.count)
            restore = rolled[-1].snapshot_before if rolled else None
        elif intent.type == "reset":
            rolled = self.history.rollback_all()
            restore = rolled[-1].snapshot_before if rolled else None
        elif intent.type == "toBatch":
            target = self.history.find_by_description(intent.target or "")
            if target is None:
                return self._rollback_noop(intent, f'Je ne retrouve pas "{intent.target}" dans l\'historique.')
            rolled = self.history.rollback_to_batch(target.id) or []
            restore = rolled[0].snapshot_before if rolled else None
        elif intent.type == "partial":
            return self._rollback_partial(intent)
        else:
            entry = self.history.rollback_last()
            rolled = [entry] if entry is not None else []
            restore = entry.snapshot_before if entry is not None else None

        if restore is None:
            return self._rollback_noop(intent, "Rien à annuler !")

        self._transition(SessionState.ROLLBACK_APPLIED)
        self._restore(restore)
        if len(rolled) == 1:
            message = f'J\'ai annulé : "{rolled[0].description}"'
        else:
            message = f"J'ai annulé {len(rolled)} modifications"
        self.conversation.add_message("assistant", message, rolled_back=True)
        logger.info("session: rolled back %d batch(es) (%s)", len(rolled), intent.type)
        self._transition(SessionState.IDLE)
        return TurnOutcome(kind="rollback", message=message, rolled_back=rolled, intent=intent)

    def _rollback_partial(self, intent: RollbackIntent) -> TurnOutcome:
        """Undo the last batch, then re-apply only the changes named by `keep`."""
        last = self.history.get_last_action()
        if last is None:
            return self._rollback_noop(intent, "Rien à annuler !")
        words = keywords(intent.keep)

        kept: list[ChangeRecord] = []
        for change in last.changes:
            if _INDEXED_PATH.search(change.path):
                continue
            haystack = f"{change.path} {humanize_path(change.path)}".lower()
            if words and any(w in haystack for w in words):
                kept.append(change)

        self.history.rollback_last()
        self._transition(SessionState.ROLLBACK_APPLIED)
        self._restore(last.snapshot_before)

        batch = None
        if kept:
            result = self.executor.execute(
                [UpdateAction(path=c.path, value=c.new_value) for c in kept],
                self._document,
            )
            if result.changes:
                before = self._document
                self._document = result.updated_content
                batch = self.history.push_batch(
                    before,
                    result.changes,
                    snapshot_after=result.updated_content,
                    description=f"{last.description} (partiel)",
                    user_prompt=self._prompt,
                )

        message = f'J\'ai annulé "{last.description}" en gardant {len(kept)} modification(s)'
        self.conversation.add_message("assistant", message, rolled_back=True)
        logger.info("session: partial rollback of %s, kept %d change(s)", last.batch_id, len(kept))
        self._transition(SessionState.IDLE)
        return TurnOutcome(
            kind="rollback",
            message=message,
            changes=batch.changes if batch else [],
            batch=batch,
            rolled_back=[last],
            intent=intent,
        )

    def _rollback_noop(self, intent: RollbackIntent, message: str) -> TurnOutcome:
        self.conversation.add_message("assistant", message)
        self._transition(SessionState.IDLE)
        return TurnOutcome(kind="noop", message=message, intent=intent)
