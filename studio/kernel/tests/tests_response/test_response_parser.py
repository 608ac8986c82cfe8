"""
Assistant response parser tests.

Well-formed replies, the usual model slips (fences, prose, trailing
commas, Date.now()), and the message-only fallback when nothing parses.
"""

import json
import logging

from studio.kernel.response import (
    DEFAULT_MESSAGE,
    clean_text,
    extract_json,
    parse_assistant_response,
    proposal_from_dict,
)

TITLE = {"type": "update", "path": "hero.title", "value": "Y"}


# ============================================================================
# Well-formed replies
# ============================================================================


class TestWellFormed:
    def test_plain_json(self):
        p = parse_assistant_response(
            json.dumps({"message": "Titre modifié", "actions": [TITLE], "batchId": "batch-1"})
        )
        assert p.message == "Titre modifié"
        assert p.actions == [TITLE]
        assert p.batch_id == "batch-1"
        assert p.requires_confirmation is False

    def test_fenced_json(self):
        p = parse_assistant_response("```json\n" + json.dumps({"message": "ok", "actions": [TITLE]}) + "\n```")
        assert p.actions == [TITLE]

    def test_json_inside_prose(self):
        p = parse_assistant_response('Voici ma réponse : {"message": "ok", "actions": []} Bonne journée')
        assert p.message == "ok"
        assert p.actions == []

    def test_missing_batch_id_is_generated(self):
        p = parse_assistant_response('{"message": "ok"}')
        assert p.batch_id.startswith("batch-")

    def test_confirmation_flag(self):
        p = parse_assistant_response('{"message": "ok", "actions": [], "requiresConfirmation": true}')
        assert p.requires_confirmation is True

    def test_many_actions_require_confirmation(self):
        p = parse_assistant_response(json.dumps({"message": "ok", "actions": [TITLE] * 4}))
        assert p.requires_confirmation is True

    def test_few_actions_do_not(self):
        p = parse_assistant_response(json.dumps({"message": "ok", "actions": [TITLE] * 3}))
        assert p.requires_confirmation is False

    def test_options_keep_objects_only(self):
        p = parse_assistant_response(
            json.dumps({"message": "Lequel ?", "options": [{"label": "Océan"}, "Forêt"]})
        )
        assert p.options == [{"label": "Océan"}]

    def test_message_markdown_is_cleaned(self):
        p = parse_assistant_response(json.dumps({"message": "**Fait** !\\nÀ toi"}))
        assert p.message == "Fait !\nÀ toi"


# ============================================================================
# Repairs
# ============================================================================


class TestRepairs:
    def test_trailing_commas(self):
        p = parse_assistant_response('{"message": "ok", "actions": [{"type": "update", "path": "a.b", "value": 1},],}')
        assert len(p.actions) == 1

    def test_date_now_batch_id(self):
        p = parse_assistant_response('{"message": "ok", "batchId": Date.now()}')
        assert p.batch_id.startswith("batch-")

    def test_true_false_placeholder(self):
        p = parse_assistant_response('{"message": "ok", "requiresConfirmation": true/false}')
        assert p.requires_confirmation is False

    def test_extract_json_strips_fences(self):
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'


# ============================================================================
# Fallbacks
# ============================================================================


class TestFallbacks:
    def test_invalid_json_keeps_message_field(self, caplog):
        with caplog.at_level(logging.WARNING, logger="studio.kernel.response"):
            p = parse_assistant_response('{"message": "Presque du JSON", "actions": [oops]}')
        assert p.message == "Presque du JSON"
        assert p.actions == []
        assert "not valid JSON" in caplog.text

    def test_plain_text_becomes_message(self):
        p = parse_assistant_response("Bonjour **toi**, que veux-tu changer ?")
        assert p.message == "Bonjour toi, que veux-tu changer ?"
        assert p.actions == []
        assert p.batch_id.startswith("batch-")

    def test_empty_reply(self):
        assert parse_assistant_response("").message == DEFAULT_MESSAGE
        assert parse_assistant_response(None).message == DEFAULT_MESSAGE

    def test_non_object_json(self):
        p = parse_assistant_response("[1, 2, 3]")
        assert p.message == DEFAULT_MESSAGE
        assert p.actions == []

    def test_actions_not_a_list(self):
        p = parse_assistant_response('{"message": "ok", "actions": {"type": "update"}}')
        assert p.actions == []

    def test_non_string_message(self):
        assert parse_assistant_response('{"message": 5, "actions": []}').message == DEFAULT_MESSAGE
        assert parse_assistant_response('{"message": ["a", "b"]}').message == DEFAULT_MESSAGE
        assert parse_assistant_response('{"message": null, "actions": []}').message == DEFAULT_MESSAGE

    def test_clean_text(self):
        assert clean_text(None) == ""
        assert clean_text('  dit \\"oui\\"  ') == 'dit "oui"'


# ============================================================================
# proposal_from_dict
# ============================================================================


class TestProposalFromDict:
    def test_form_payload(self):
        p = proposal_from_dict({"message": "Formulaire", "actions": [TITLE], "batch_id": "batch-9"})
        assert p.message == "Formulaire"
        assert p.actions == [TITLE]
        assert p.batch_id == "batch-9"
        assert p.requires_confirmation is False

    def test_malformed_fields(self):
        p = proposal_from_dict({"message": 5, "actions": {"type": "update"}, "options": "x", "batchId": 7})
        assert p.message == DEFAULT_MESSAGE
        assert p.actions == []
        assert p.options == []
        assert p.batch_id == "7"

    def test_defaults(self):
        p = proposal_from_dict({})
        assert p.message == DEFAULT_MESSAGE
        assert p.actions == []
        assert p.batch_id.startswith("batch-")
