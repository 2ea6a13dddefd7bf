"""
Budget limits enforcement.

Compares rolling spend from the usage ledger against per-period limits.

Enforcement Order:
1. Daily limit
2. Weekly limit
3. Monthly limit

The first breached period is reported even when later periods are also
breached. A period is breached once spend reaches its limit.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..storage.repository import UsageLedger

logger = logging.getLogger(__name__)

# Log a warning once spend reaches this share of a limit
WARNING_THRESHOLD = 0.8


@dataclass(frozen=True)
class BudgetLimits:
    """Spend caps in USD for each budget period."""
    daily: float = 1.00
    weekly: float = 5.00
    monthly: float = 15.00

    def __post_init__(self):
        """Validate budget values are not negative."""
        if self.daily < 0:
            raise ValueError("daily budget cannot be negative")
        if self.weekly < 0:
            raise ValueError("weekly budget cannot be negative")
        if self.monthly < 0:
            raise ValueError("monthly budget cannot be negative")


DEFAULT_BUDGET_LIMITS = BudgetLimits()


@dataclass(frozen=True)
class BudgetStatus:
    """Outcome of a budget check."""
    allowed: bool
    reason: Optional[str] = None
    current_cost: Optional[float] = None
    limit: Optional[float] = None
    period: Optional[str] = None


class BudgetGate:
    """Allows or denies requests based on rolling spend."""

    def __init__(self, ledger: UsageLedger):
        self.ledger = ledger

    def check_budget(self, limits: Optional[BudgetLimits] = None) -> BudgetStatus:
        """Check current spend against the limits.

        Args:
            limits: Budget limits; defaults apply when None

        Returns:
            BudgetStatus for the first breached period, or an allowed status

        Raises:
            PersistenceFailure: If the ledger cannot be read
        """
        limits = limits or DEFAULT_BUDGET_LIMITS
        stats = self.ledger.get_stats()

        periods = (
            ("daily", stats.daily_cost, limits.daily),
            ("weekly", stats.weekly_cost, limits.weekly),
            ("monthly", stats.monthly_cost, limits.monthly),
        )

        for period, current_cost, limit in periods:
            if current_cost >= limit:
                reason = (
                    f"{period.capitalize()} budget limit reached "
                    f"(${current_cost:.4f} / ${limit:.2f})"
                )
                logger.info("Budget check denied: %s", reason)
                return BudgetStatus(
                    allowed=False,
                    reason=reason,
                    current_cost=current_cost,
                    limit=limit,
                    period=period,
                )

        for period, current_cost, limit in periods:
            if limit > 0 and current_cost >= limit * WARNING_THRESHOLD:
                logger.warning(
                    "Approaching %s budget limit: $%.4f of $%.2f",
                    period, current_cost, limit,
                )

        return BudgetStatus(allowed=True)
