"""
Conjugation Guard.

Request governance for AI-graded French conjugation practice: input
hygiene, rate limiting, budget enforcement and usage accounting in front
of a paid language-model API.
"""

__version__ = "0.1.0"
