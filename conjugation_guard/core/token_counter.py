"""
Token counting and usage tracking.

Holds provider-reported token counts and a length-based estimate for when
the provider does not report them.
"""

import math
from dataclasses import dataclass

# French text averages roughly 3.5 characters per token
CHARS_PER_TOKEN = 3.5


@dataclass(frozen=True)
class TokenUsage:
    """Token usage data for cost calculation."""
    prompt_tokens: int
    completion_tokens: int

    def __post_init__(self):
        """Validate token counts are not negative."""
        if self.prompt_tokens < 0:
            raise ValueError("prompt_tokens cannot be negative")
        if self.completion_tokens < 0:
            raise ValueError("completion_tokens cannot be negative")

    @property
    def total_tokens(self) -> int:
        """Total tokens used (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens


def estimate_tokens(text: str) -> int:
    """Estimate the token count of text from its length.

    Args:
        text: Prompt or response text

    Returns:
        ceil(len(text) / 3.5); 0 for empty text, at least 1 otherwise
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
