"""
Studio Kernel — the mutation and versioning engine.

Components:
  paths     — dotted-path get/set over a site document (pure)
  executor  — (actions, document) → ExecuteResult  (pure, best-effort)
  history   — bounded batch log with undo/redo cursor
  intent    — rollback-phrase classifier
  response  — assistant reply text → Proposal
  labels    — French labels for paths and actions
  conversation — bounded message log fed back to the assistant
  session   — coordinates the above for one editing session
"""

from studio.kernel.executor import ActionExecutor, execute
from studio.kernel.history import HistoryStore
from studio.kernel.intent import IntentParser, RegexIntentParser, classify
from studio.kernel.paths import get_path, set_path
from studio.kernel.response import parse_assistant_response
from studio.kernel.session import EditingSession, SessionState, TurnOutcome

__all__ = [
    "get_path",
    "set_path",
    "ActionExecutor",
    "execute",
    "HistoryStore",
    "IntentParser",
    "RegexIntentParser",
    "classify",
    "parse_assistant_response",
    "EditingSession",
    "SessionState",
    "TurnOutcome",
]
