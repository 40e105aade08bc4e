"""
Tests for assistant orchestration: gate, responder, fallback.
"""
from unittest.mock import Mock, patch

import pytest

from memory_vault.assistant.domain_gate import OUT_OF_SCOPE_RESPONSE, POLICY_TAG
from memory_vault.assistant.fallback import ONBOARDING_SCRIPT
from memory_vault.assistant.responders import BaseResponder, NullResponder, ResponderError
from memory_vault.assistant.service import SOURCE_FALLBACK, SOURCE_POLICY, AssistantService


@pytest.fixture
def mock_responder():
    responder = Mock(spec=BaseResponder)
    responder.provider = "openai"
    responder.model_name = "test-model"
    responder.generate.return_value = "Your vault has 2 memories."
    return responder


class TestAssistantService:

    def test_out_of_scope_skips_rankers(self, mock_responder):
        service = AssistantService(knowledge=(), responder=mock_responder)

        with patch('memory_vault.assistant.context.rank_notes') as rank_notes, \
                patch('memory_vault.assistant.context.rank_knowledge') as rank_knowledge:
            reply = service.answer("hello", [], "Ana")

        assert reply.response == OUT_OF_SCOPE_RESPONSE
        assert reply.source == SOURCE_POLICY
        assert reply.policy == POLICY_TAG
        rank_notes.assert_not_called()
        rank_knowledge.assert_not_called()
        mock_responder.generate.assert_not_called()

    def test_responder_answer(self, mock_responder, make_note, sample_knowledge):
        service = AssistantService(knowledge=sample_knowledge, responder=mock_responder)
        notes = [make_note(title="Math class")]

        reply = service.answer("summarize my memories", notes, "Ana")

        assert reply.response == "Your vault has 2 memories."
        assert reply.source == "openai"
        assert reply.model == "test-model"
        assert reply.note is None

        message, display_name, note_context, knowledge_context = mock_responder.generate.call_args[0]
        assert message == "summarize my memories"
        assert display_name == "Ana"
        assert note_context.startswith("Memory Vault summary")
        assert knowledge_context.startswith("Verified Memory Vault knowledge:")

    def test_responder_failure_falls_back(self, mock_responder):
        mock_responder.generate.side_effect = ResponderError("OpenAI HTTP 500")
        service = AssistantService(knowledge=(), responder=mock_responder)

        reply = service.answer("how do i get started with memory vault", [], "Ana")

        assert reply.source == SOURCE_FALLBACK
        assert reply.response == ONBOARDING_SCRIPT
        assert reply.note == "Using local AI (OpenAI HTTP 500)"
        assert reply.knowledge_hits == 0

    def test_default_responder_is_null(self, sample_knowledge):
        service = AssistantService(knowledge=sample_knowledge)
        assert isinstance(service.responder, NullResponder)

        reply = service.answer("how to change the pin", [], "Ana")
        assert reply.source == SOURCE_FALLBACK
        assert reply.response == "Set a 4-6 digit PIN"
        assert reply.knowledge_hits == 1

    def test_fallback_recomputes_rankings(self, make_note):
        service = AssistantService()
        notes = [make_note(title="Trip to Rome", category="cultural", timestamp=None)]

        reply = service.fallback("find memories about rome", notes, "Ana", "boom")

        assert reply.source == SOURCE_FALLBACK
        assert reply.note == "Using local AI (boom)"
        assert reply.response.startswith("I found related memories: Trip to Rome.")

    def test_note_scan_limit_keeps_most_recent(self, mock_responder, make_note):
        service = AssistantService(responder=mock_responder, note_scan_limit=2)
        notes = [make_note(title=f"vault {i}", days_old=i) for i in range(5)]

        with patch('memory_vault.assistant.service.build_note_context') as build:
            build.return_value = Mock(text="ctx", relevant_notes=[])
            service.answer("vault summary", notes, "Ana")

        scanned = build.call_args[0][1]
        assert [n.title for n in scanned] == ["vault 0", "vault 1"]
