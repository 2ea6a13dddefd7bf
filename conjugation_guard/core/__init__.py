"""
Core modules for Conjugation Guard.

This package contains the decision logic that gates and prices outbound
AI requests: input hygiene, token and cost estimation, the budget gate
and the rate limiter.
"""
