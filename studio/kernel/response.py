"""
Assistant response parser.

Turns the raw text of an assistant reply into a Proposal. Replies are
meant to be a single JSON object:

  {"message": "...", "actions": [...], "requiresConfirmation": false,
   "batchId": "...", "options": [...]}

Models do not always comply. The parser strips markdown fences, pulls
the outermost object out of surrounding prose, repairs trailing commas
and a few known slips, and falls back to a message-only proposal with a
warning when nothing parses.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from studio.config import settings
from studio.kernel.types import Proposal, new_id

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "C'est fait !"

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_OBJECT = re.compile(r"\{[\s\S]*\}")
_MESSAGE_FIELD = re.compile(r'"message"\s*:\s*"([^"]+)"')


def clean_text(text: Any) -> str:
    """Strip markdown emphasis and unescape literal \\n and \\" sequences. Non-strings give ""."""
    if not text or not isinstance(text, str):
        return ""
    return text.replace("**", "").replace("*", "").replace("\\n", "\n").replace('\\"', '"').strip()


def _repair(json_str: str) -> str:
    json_str = re.sub(r"Date\.now\(\)", '"' + new_id("batch") + '"', json_str)
    json_str = re.sub(r":\s*true/false", ": false", json_str)
    json_str = re.sub(r",\s*}", "}", json_str)
    json_str = re.sub(r",\s*]", "]", json_str)
    return json_str


def extract_json(text: str) -> str:
    """Best guess at the JSON object inside an assistant reply."""
    clean = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text.strip())).strip()
    if not clean.startswith("{"):
        m = _OBJECT.search(clean)
        if m:
            clean = m.group(0)
    return _repair(clean)


def parse_assistant_response(text: str) -> Proposal:
    """
    Parse an assistant reply into a Proposal.

    Never raises. Actions are passed through as raw dicts; the executor
    validates each one individually.
    """
    text = text or ""
    try:
        parsed = json.loads(extract_json(text))
    except json.JSONDecodeError:
        logger.warning("response_parser: reply is not valid JSON: %r", text[:200])
        m = _MESSAGE_FIELD.search(text)
        message = m.group(1) if m else clean_text(text)[:200]
        return Proposal(message=message or DEFAULT_MESSAGE, batch_id=new_id("batch"))

    if not isinstance(parsed, dict):
        logger.warning("response_parser: reply JSON is not an object: %r", text[:200])
        return Proposal(message=DEFAULT_MESSAGE, batch_id=new_id("batch"))

    actions = parsed.get("actions") or []
    if not isinstance(actions, list):
        logger.warning("response_parser: 'actions' is not a list, ignoring it")
        actions = []

    options = parsed.get("options") or []
    if not isinstance(options, list):
        options = []

    requires_confirmation = bool(
        parsed.get("requiresConfirmation") or parsed.get("requires_confirmation")
    ) or len(actions) > settings.CONFIRMATION_THRESHOLD

    batch_id = parsed.get("batchId") or parsed.get("batch_id")
    return Proposal(
        message=clean_text(parsed.get("message")) or DEFAULT_MESSAGE,
        actions=actions,
        batch_id=str(batch_id) if batch_id else new_id("batch"),
        requires_confirmation=requires_confirmation,
        options=[o for o in options if isinstance(o, dict)],
    )


def proposal_from_dict(d: dict[str, Any]) -> Proposal:
    """Build a Proposal from an already-decoded producer payload (e.g. a form)."""
    actions = d.get("actions") or []
    if not isinstance(actions, list):
        logger.warning("response_parser: 'actions' is not a list, ignoring it")
        actions = []
    message = d.get("message")
    options = d.get("options") or []
    batch_id = d.get("batchId") or d.get("batch_id")
    return Proposal(
        message=message if isinstance(message, str) and message else DEFAULT_MESSAGE,
        actions=list(actions),
        batch_id=str(batch_id) if batch_id else new_id("batch"),
        requires_confirmation=bool(d.get("requiresConfirmation") or d.get("requires_confirmation")),
        options=[o for o in options if isinstance(o, dict)] if isinstance(options, list) else [],
    )
