"""
Deterministic local answers used when the external responder is unavailable.

Rules are evaluated in order and the first whose predicate matches builds the
answer. Phrase checks run against the lower-cased raw message, so spacing and
punctuation still count (" i " matches "do i have" but not "ai").
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .ranking import rank_knowledge, rank_notes
from ..core.schema import KnowledgeEntry, Note, NoteCounts

ONBOARDING_PHRASES = (
    'new user', 'first time', 'getting started', 'get started', 'how to start',
    'how do i start', 'how to use', 'how do i use', 'use memory vault',
)
USER_DATA_PHRASES = ('my ', ' i ', 'how many', 'recent', 'saved', 'find', 'show')
USAGE_PHRASES = ('how to use', 'how do i use', 'use memory vault')
WRITING_PHRASES = ('how to write memories', 'how do i write memories')
LOOKUP_PHRASES = ('about', 'find', 'show')

ONBOARDING_SCRIPT = " ".join([
    'Welcome to Memory Vault. Quick start:',
    '1) Sign in and pick a vault (personal, learning, cultural, or future).',
    '2) Add your first memory with a clear title and meaningful content.',
    '3) Mark important memories so they are easier to revisit.',
    '4) Open AI Assistant and ask: "summarize my memories" or "help me organize entries".',
])
PRODUCT_DESCRIPTION = (
    'Memory Vault is your personal knowledge and reflection app. It helps you save life notes, '
    'learning insights, cultural stories, and future goals in one place, then lets AI help you explore them.'
)
USAGE_GUIDE = (
    'Use Memory Vault in 3 steps: sign in, choose a vault type (personal, learning, cultural, or future), '
    'and add entries with title and content. Then open AI Assistant to ask for summaries, trends, '
    'or specific memory lookups.'
)
WRITING_GUIDE = (
    'To write a strong memory: give it a clear title, describe what happened, include what you learned '
    'or felt, and mark it important if needed. Keep one memory per entry so AI can find and summarize '
    'it accurately.'
)
GENERIC_ANSWER = (
    'I can answer general Memory Vault questions, help you write better entries, and assist with memory '
    'search and summaries. Ask me what you want to do next.'
)

RECENT_TITLE_COUNT = 3
RELATED_TITLE_COUNT = 3


@dataclass
class FallbackContext:
    """Everything the rules look at, computed once per question."""
    message: str
    notes: Sequence[Note]
    display_name: str
    relevant_notes: List[Note]
    relevant_knowledge: List[KnowledgeEntry]
    counts: NoteCounts

    @property
    def recent_titles(self) -> List[str]:
        # Snapshot order, not timestamp order
        return [note.title for note in list(self.notes)[:RECENT_TITLE_COUNT]]

    @property
    def relevant_titles(self) -> List[str]:
        return [note.title for note in self.relevant_notes[:RELATED_TITLE_COUNT]]

    @property
    def top_knowledge(self) -> Optional[KnowledgeEntry]:
        return self.relevant_knowledge[0] if self.relevant_knowledge else None

    def mentions(self, *phrases: str) -> bool:
        return any(phrase in self.message for phrase in phrases)

    def has_user_data_intent(self) -> bool:
        return self.mentions(*USER_DATA_PHRASES) or self.message.startswith('i ')

    def has_onboarding_intent(self) -> bool:
        return self.mentions(*ONBOARDING_PHRASES)


@dataclass
class FallbackRule:
    name: str
    matches: Callable[[FallbackContext], bool]
    build: Callable[[FallbackContext], str]


def _identity_answer(ctx: FallbackContext) -> str:
    return (
        f'I am your Memory Vault assistant. Your profile name is {ctx.display_name}. '
        f'I can help with your {ctx.counts.total} stored memories across all vaults.'
    )


def _counts_answer(ctx: FallbackContext) -> str:
    c = ctx.counts
    return (
        f'You have {c.total} memories: {c.learning} learning, {c.cultural} cultural, '
        f'{c.personal} personal, and {c.future} future.'
    )


def _recent_answer(ctx: FallbackContext) -> str:
    titles = ctx.recent_titles
    return f"Your recent memories are: {', '.join(titles) if titles else 'none yet'}."


def _related_answer(ctx: FallbackContext) -> str:
    return f"I found related memories: {', '.join(ctx.relevant_titles)}. Ask a follow-up and I can summarize them."


FALLBACK_RULES: List[FallbackRule] = [
    FallbackRule(
        'onboarding',
        lambda ctx: ctx.counts.total == 0 and ctx.has_onboarding_intent(),
        lambda ctx: ONBOARDING_SCRIPT,
    ),
    FallbackRule(
        'knowledge',
        lambda ctx: bool(ctx.top_knowledge and ctx.top_knowledge.answer) and not ctx.has_user_data_intent(),
        lambda ctx: ctx.top_knowledge.answer,
    ),
    FallbackRule(
        'product',
        lambda ctx: ctx.mentions('what is memory vault') or (ctx.mentions('what is') and ctx.mentions('memory vault')),
        lambda ctx: PRODUCT_DESCRIPTION,
    ),
    FallbackRule(
        'usage',
        lambda ctx: ctx.mentions(*USAGE_PHRASES),
        lambda ctx: USAGE_GUIDE,
    ),
    FallbackRule(
        'writing',
        lambda ctx: ctx.mentions(*WRITING_PHRASES) or (ctx.mentions('write') and ctx.mentions('memory')),
        lambda ctx: WRITING_GUIDE,
    ),
    FallbackRule(
        'identity',
        lambda ctx: ctx.mentions('name', 'who are you'),
        _identity_answer,
    ),
    FallbackRule(
        'counts',
        lambda ctx: ctx.mentions('how many') and ctx.mentions('memory', 'memories'),
        _counts_answer,
    ),
    FallbackRule(
        'recent',
        lambda ctx: ctx.mentions('recent', 'saved'),
        _recent_answer,
    ),
    FallbackRule(
        'related',
        lambda ctx: ctx.mentions(*LOOKUP_PHRASES) and bool(ctx.relevant_titles),
        _related_answer,
    ),
]


def build_fallback_context(message: str, notes: Sequence[Note], display_name: str,
                           knowledge: Sequence[KnowledgeEntry] = (),
                           relevant_notes: Optional[List[Note]] = None,
                           relevant_knowledge: Optional[List[KnowledgeEntry]] = None) -> FallbackContext:
    """Assemble rule inputs, ranking notes/knowledge here when the caller has not already done so."""
    if relevant_notes is None:
        relevant_notes = rank_notes(message, notes)
    if relevant_knowledge is None:
        relevant_knowledge = rank_knowledge(message, knowledge)

    return FallbackContext(
        message=str(message or '').lower(),
        notes=notes,
        display_name=display_name,
        relevant_notes=relevant_notes,
        relevant_knowledge=relevant_knowledge,
        counts=NoteCounts.from_notes(list(notes)),
    )


def select_rule(ctx: FallbackContext, rules: Sequence[FallbackRule] = FALLBACK_RULES) -> Optional[FallbackRule]:
    for rule in rules:
        if rule.matches(ctx):
            return rule
    return None


def generate_fallback_response(message: str, notes: Sequence[Note], display_name: str,
                               knowledge: Sequence[KnowledgeEntry] = (),
                               relevant_notes: Optional[List[Note]] = None,
                               relevant_knowledge: Optional[List[KnowledgeEntry]] = None) -> str:
    ctx = build_fallback_context(message, notes, display_name, knowledge, relevant_notes, relevant_knowledge)
    rule = select_rule(ctx)
    return rule.build(ctx) if rule else GENERIC_ANSWER
