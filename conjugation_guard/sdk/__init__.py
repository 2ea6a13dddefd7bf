"""
SDK for Conjugation Guard.

Provides guarded sentence evaluation for the practice flow.
"""

from .evaluator import SentenceEvaluator
from .feedback import Feedback
from .providers import get_available_providers

__all__ = ["SentenceEvaluator", "Feedback", "get_available_providers"]
