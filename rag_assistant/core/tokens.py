"""Token estimation and term splitting.

One token is counted per four characters, rounded up. This is close enough
for budget arithmetic and needs no tokenizer.
"""
import logging
import math
import re

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
ELLIPSIS = "..."

_NON_WORD_RE = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """Lower-case, strip punctuation, drop terms of two characters or less."""
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    return [term for term in cleaned.split() if len(term) > 2]


def estimate_tokens(text: str | None) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def fits_within(text: str, limit: int) -> bool:
    tokens = estimate_tokens(text)
    if tokens > limit:
        logger.warning(f"Text exceeds token limit: {tokens} > {limit}")
        return False
    return True


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut text so that its estimate, ellipsis included, is <= max_tokens."""
    if estimate_tokens(text) <= max_tokens:
        return text
    max_chars = max(max_tokens * CHARS_PER_TOKEN - len(ELLIPSIS), 0)
    return text[:max_chars] + ELLIPSIS
