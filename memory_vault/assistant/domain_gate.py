"""
Decides whether a question belongs to the assistant's domain.
"""

from .text import normalize

POLICY_TAG = "memory-vault-only"

PRODUCT_PHRASE = "memory vault"

DOMAIN_KEYWORDS = frozenset([
    'memory', 'memories', 'vault', 'vaults', 'entry', 'entries', 'diary', 'pin',
    'personal', 'learning', 'cultural', 'future', 'wisdom', 'knowledge',
    'favorite', 'favorites', 'search', 'filter', 'export', 'csv', 'txt',
    'signin', 'signup', 'login', 'logout', 'auth', 'token', 'jwt',
    'openai', 'assistant', 'chat', 'backend', 'frontend', 'api',
    'users', 'account', 'health', 'sync', 'offline', 'retry', 'connection',
])

OUT_OF_SCOPE_RESPONSE = (
    "I can only answer Memory Vault-related questions. Ask about your memories, "
    "vaults, account, AI assistant, or Memory Vault features."
)


def is_in_scope(message: str) -> bool:
    normalized = normalize(message)
    if not normalized:
        return False

    if PRODUCT_PHRASE in normalized:
        return True

    # Raw split, no stop-word or length filtering
    return any(token in DOMAIN_KEYWORDS for token in normalized.split(" "))


def get_out_of_scope_response() -> str:
    return OUT_OF_SCOPE_RESPONSE
