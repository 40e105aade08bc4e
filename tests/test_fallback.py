"""
Tests for the local rule-based fallback answers.
"""
import re

import pytest

from memory_vault.assistant.fallback import (
    FALLBACK_RULES,
    GENERIC_ANSWER,
    ONBOARDING_SCRIPT,
    PRODUCT_DESCRIPTION,
    USAGE_GUIDE,
    WRITING_GUIDE,
    build_fallback_context,
    generate_fallback_response,
    select_rule,
)


@pytest.fixture
def some_notes(make_note):
    return [
        make_note(title="Math class", category="learning", timestamp=None),
        make_note(title="Physics lab", category="learning", timestamp=None),
        make_note(title="Chemistry quiz", category="learning", timestamp=None),
        make_note(title="Trip to Rome", category="cultural", timestamp=None),
    ]


class TestFallbackRules:

    def test_rule_order(self):
        assert [rule.name for rule in FALLBACK_RULES] == [
            'onboarding', 'knowledge', 'product', 'usage', 'writing',
            'identity', 'counts', 'recent', 'related',
        ]

    def test_onboarding_for_new_user(self):
        response = generate_fallback_response("how do i get started", [], "Ana")
        assert response == ONBOARDING_SCRIPT
        assert len(re.findall(r"\d\) ", response)) == 4

    def test_onboarding_beats_knowledge(self, sample_knowledge):
        response = generate_fallback_response("how do i get started", [], "Ana", knowledge=sample_knowledge)
        assert response == ONBOARDING_SCRIPT

    def test_no_onboarding_once_user_has_notes(self, some_notes):
        response = generate_fallback_response("how do i get started", some_notes, "Ana")
        assert response != ONBOARDING_SCRIPT

    def test_counts(self, some_notes):
        response = generate_fallback_response("how many memories do I have", some_notes, "Ana")
        assert "4 memories: 3 learning, 1 cultural, 0 personal, and 0 future." in response

    def test_counts_with_singular_memory(self, some_notes):
        response = generate_fallback_response("how many memory entries", some_notes, "Ana")
        assert response.startswith("You have 4 memories")

    def test_knowledge_answer_verbatim(self, sample_knowledge, some_notes):
        response = generate_fallback_response("what is the export format", some_notes, "Ana", knowledge=sample_knowledge)
        assert response == "Export memories as CSV or TXT."

    def test_user_data_intent_skips_knowledge(self, sample_knowledge):
        response = generate_fallback_response("show my pin", [], "Ana", knowledge=sample_knowledge)
        assert response == GENERIC_ANSWER

    def test_product_description(self, some_notes):
        assert generate_fallback_response("What is Memory Vault?", some_notes, "Ana") == PRODUCT_DESCRIPTION

    def test_usage_guide(self, some_notes):
        assert generate_fallback_response("how do i use this app", some_notes, "Ana") == USAGE_GUIDE

    def test_writing_guide(self, some_notes):
        assert generate_fallback_response("tips to write a better memory", some_notes, "Ana") == WRITING_GUIDE

    def test_identity(self, some_notes):
        response = generate_fallback_response("what is your name", some_notes, "Ana")
        assert "Your profile name is Ana." in response
        assert "4 stored memories" in response

    def test_recent_uses_snapshot_order(self, some_notes):
        response = generate_fallback_response("show recent entries", some_notes, "Ana")
        assert response == "Your recent memories are: Math class, Physics lab, Chemistry quiz."

    def test_recent_with_no_notes(self):
        response = generate_fallback_response("what did i save recently", [], "Ana")
        assert response == "Your recent memories are: none yet."

    def test_related_titles(self, some_notes):
        response = generate_fallback_response("find notes about rome", some_notes, "Ana")
        assert response.startswith("I found related memories: Trip to Rome.")

    def test_generic_when_nothing_matches(self):
        assert generate_fallback_response("vault tips please", [], "Ana") == GENERIC_ANSWER

    def test_precomputed_rankings_are_used(self, some_notes):
        response = generate_fallback_response(
            "show things about anything", some_notes, "Ana", relevant_notes=[some_notes[1]], relevant_knowledge=[],
        )
        assert response.startswith("I found related memories: Physics lab.")


class TestFallbackContext:

    def test_phrases_match_lowercased_raw_message(self, some_notes):
        ctx = build_fallback_context("Do I have notes?", some_notes, "Ana")
        assert ctx.has_user_data_intent()
        # No word boundary: "ai" does not contain " i "
        assert not build_fallback_context("ai help", some_notes, "Ana").has_user_data_intent()

    def test_leading_i_is_user_data(self, some_notes):
        assert build_fallback_context("I need help", some_notes, "Ana").has_user_data_intent()

    def test_select_rule_none_for_generic(self):
        ctx = build_fallback_context("vault tips please", [], "Ana")
        assert select_rule(ctx) is None
