"""
Prompt building and feedback parsing.

The provider is asked to answer with a fixed JSON object; parse_feedback
turns that answer into a Feedback, falling back to a best-effort result
when the answer is not valid JSON.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a French language teacher who provides constructive feedback "
    "on verb conjugation and sentence structure. Be encouraging but accurate."
)

USER_PROMPT_TEMPLATE = """You are a French language teacher evaluating a student's sentence.

Verb (infinitive): {verb}
Required tense: {tense}
Student's sentence: "{sentence}"

Analyze the sentence thoroughly and respond with ONLY valid JSON (no markdown, no extra text) in this exact format:
{{
  "isCorrect": true or false (whether the verb is conjugated correctly),
  "correctConjugation": "the correct conjugation if wrong, or empty string if correct",
  "verbAnalysis": "brief explanation of the verb conjugation",
  "grammarIssues": ["list of any grammar or structure issues, or empty array if none"],
  "semanticAnalysis": "evaluate if the sentence sounds natural to a native French speaker, or if there's a more idiomatic way to express the same idea",
  "alternativePhrasings": ["1-2 more natural French alternatives, or empty array if the sentence is already natural"],
  "suggestion": "one helpful tip for improvement",
  "encouragement": "brief positive comment"
}}

Be constructive, encouraging, and focus on helping the student sound more like a native French speaker."""

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


@dataclass
class Feedback:
    """Structured grammar feedback for one sentence."""
    is_correct: bool
    correct_conjugation: str = ""
    verb_analysis: str = ""
    grammar_issues: List[str] = field(default_factory=list)
    semantic_analysis: str = ""
    alternative_phrasings: List[str] = field(default_factory=list)
    suggestion: str = ""
    encouragement: str = ""
    full_feedback: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    parse_error: bool = False
    usage_recorded: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isCorrect": self.is_correct,
            "correctConjugation": self.correct_conjugation,
            "verbAnalysis": self.verb_analysis,
            "grammarIssues": list(self.grammar_issues),
            "semanticAnalysis": self.semantic_analysis,
            "alternativePhrasings": list(self.alternative_phrasings),
            "suggestion": self.suggestion,
            "encouragement": self.encouragement,
            "fullFeedback": self.full_feedback,
            "timestamp": self.timestamp.isoformat(),
            "parseError": self.parse_error,
            "usageRecorded": self.usage_recorded,
        }


def build_user_prompt(verb: str, tense: str, sentence: str) -> str:
    """Build the evaluation prompt for an already sanitized sentence."""
    return USER_PROMPT_TEMPLATE.format(verb=verb, tense=tense, sentence=sentence)


def parse_feedback(ai_text: str) -> Feedback:
    """Parse the provider's answer into a Feedback.

    Markdown code fences around the JSON are stripped. Missing fields get
    empty defaults. If the text is not a JSON object, a fallback Feedback
    is returned with parse_error set.

    Args:
        ai_text: Raw text returned by the provider

    Returns:
        Feedback with full_feedback holding the raw text
    """
    clean_text = ai_text.strip()
    if clean_text.startswith("```"):
        clean_text = _CODE_FENCE.sub("", clean_text).strip()

    try:
        parsed = json.loads(clean_text)
        if not isinstance(parsed, dict):
            raise ValueError("feedback is not a JSON object")
    except ValueError as e:
        logger.error("Failed to parse AI response as JSON: %s", e)
        logger.debug("Raw response: %s", ai_text)
        return Feedback(
            is_correct="correct" in ai_text.lower(),
            full_feedback=ai_text,
            parse_error=True,
        )

    return Feedback(
        is_correct=parsed.get("isCorrect") is True,
        correct_conjugation=parsed.get("correctConjugation") or "",
        verb_analysis=parsed.get("verbAnalysis") or "",
        grammar_issues=_string_list(parsed.get("grammarIssues")),
        semantic_analysis=parsed.get("semanticAnalysis") or "",
        alternative_phrasings=_string_list(parsed.get("alternativePhrasings")),
        suggestion=parsed.get("suggestion") or "",
        encouragement=parsed.get("encouragement") or "",
        full_feedback=ai_text,
    )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]
