"""
Text normalization and tokenization shared by the rankers and the domain gate.
"""

import re
from typing import List, Optional

STOP_WORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'but', 'by', 'for', 'from', 'how',
    'i', 'if', 'in', 'is', 'it', 'its', 'me', 'my', 'of', 'on', 'or', 'that',
    'the', 'to', 'was', 'were', 'what', 'when', 'where', 'who', 'why', 'with', 'you'
])

MIN_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Lowercase, replace anything outside [a-z0-9] and whitespace with a space, collapse runs, trim."""
    lowered = str(text or "").lower()
    return _WHITESPACE.sub(" ", _NON_ALNUM.sub(" ", lowered)).strip()


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split normalized text into scoring tokens.

    Tokens shorter than three characters and stop words are dropped. Order and
    duplicates are preserved; every occurrence scores on its own.
    """
    return [
        token for token in normalize(text).split(" ")
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]
