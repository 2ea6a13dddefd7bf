"""
Input validation and prompt-injection hygiene.

Cleans learner input before it is placed in a prompt. The injection
denylist is best-effort: it neutralizes common override phrases and does
not claim to stop every adversarial input.
"""

import logging
import re
from typing import Any, List, Pattern

from .errors import InvalidInput, TooLong

logger = logging.getLogger(__name__)

MAX_LENGTH = 500
MIN_LENGTH = 3
REDACTION_MARKER = "[redacted]"

# Letters of the French alphabet, accents included
FRENCH_LETTERS = "a-zàâäæçéèêëïîôùûüÿœ"

SUSPICIOUS_PATTERNS: List[Pattern[str]] = [
    re.compile(r"ignore\s+(previous|above|all)\s+instructions?", re.IGNORECASE),
    re.compile(r"system\s+prompt", re.IGNORECASE),
    re.compile(r"you\s+are\s+(now|actually)", re.IGNORECASE),
    re.compile(r"forget\s+(everything|all|previous)", re.IGNORECASE),
    re.compile(r"new\s+instructions?:", re.IGNORECASE),
    re.compile(r"role\s*:\s*system", re.IGNORECASE),
    re.compile(r"\[system\]", re.IGNORECASE),
    re.compile(r"assistant\s+mode", re.IGNORECASE),
]

_WHITESPACE = re.compile(r"\s+")
_HAS_LETTER = re.compile(f"[{FRENCH_LETTERS}]", re.IGNORECASE)
_ONLY_NON_LETTERS = re.compile(f"^[^{FRENCH_LETTERS}]+$", re.IGNORECASE)
_SPECIAL_CHAR = re.compile(f"[^{FRENCH_LETTERS}\\s'-]", re.IGNORECASE)


def sanitize(raw: Any) -> str:
    """Clean learner input for use in a prompt.

    Steps, in order:
    1. Reject non-string or empty input
    2. Trim and collapse whitespace runs to a single space
    3. Replace denylisted injection phrases with the redaction marker
    4. Enforce the maximum length
    5. Enforce the minimum length

    Args:
        raw: Text typed by the learner

    Returns:
        Sanitized text

    Raises:
        InvalidInput: If input is empty, not a string, or too short
        TooLong: If sanitized text is longer than MAX_LENGTH
    """
    if not raw or not isinstance(raw, str):
        raise InvalidInput("Invalid input")

    sanitized = _WHITESPACE.sub(" ", raw.strip())

    if any(pattern.search(sanitized) for pattern in SUSPICIOUS_PATTERNS):
        logger.warning("Potential prompt injection detected: %r", sanitized)
        for pattern in SUSPICIOUS_PATTERNS:
            sanitized = pattern.sub(REDACTION_MARKER, sanitized)

    if len(sanitized) > MAX_LENGTH:
        raise TooLong(len(sanitized), MAX_LENGTH)

    if len(sanitized) < MIN_LENGTH:
        raise InvalidInput("Sentence too short")

    return sanitized


def looks_like_sentence(text: str) -> bool:
    """Heuristic check that text is made of words rather than symbols.

    This rejects gibberish and symbol-only input. It does not judge grammar.
    """
    if not text:
        return False

    has_letters = _HAS_LETTER.search(text) is not None
    not_only_special = _ONLY_NON_LETTERS.match(text) is None
    special_ratio = len(_SPECIAL_CHAR.findall(text)) / len(text)

    return has_letters and not_only_special and special_ratio < 0.3
