"""
Data models for storage layer.

Defines the usage ledger's records and its persisted state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class UsageRecord:
    """Immutable record of one successful provider call.

    Records are appended in chronological order and never modified;
    they only leave the ledger by ageing out.
    """
    timestamp: datetime
    model: str
    input_tokens: int
    output_tokens: int
    cost: float

    def __post_init__(self):
        """Validate counts and cost are not negative."""
        if self.input_tokens < 0:
            raise ValueError("input_tokens cannot be negative")
        if self.output_tokens < 0:
            raise ValueError("output_tokens cannot be negative")
        if self.cost < 0:
            raise ValueError("cost cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageRecord":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            model=data["model"],
            input_tokens=int(data["input_tokens"]),
            output_tokens=int(data["output_tokens"]),
            cost=float(data["cost"]),
        )


@dataclass(frozen=True)
class UsageLedgerState:
    """Snapshot of the usage ledger.

    total_requests and total_cost accumulate over the ledger's lifetime;
    the windowed costs are derived from records.
    """
    total_requests: int = 0
    total_cost: float = 0.0
    daily_cost: float = 0.0
    weekly_cost: float = 0.0
    monthly_cost: float = 0.0
    last_reset_date: Optional[datetime] = None
    records: Tuple[UsageRecord, ...] = field(default_factory=tuple)

    def with_costs(self, daily: float, weekly: float, monthly: float) -> "UsageLedgerState":
        return replace(self, daily_cost=daily, weekly_cost=weekly, monthly_cost=monthly)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "total_cost": self.total_cost,
            "daily_cost": self.daily_cost,
            "weekly_cost": self.weekly_cost,
            "monthly_cost": self.monthly_cost,
            "last_reset_date": self.last_reset_date.isoformat() if self.last_reset_date else None,
            "records": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageLedgerState":
        last_reset = data.get("last_reset_date")
        return cls(
            total_requests=int(data.get("total_requests", 0)),
            total_cost=float(data.get("total_cost", 0.0)),
            daily_cost=float(data.get("daily_cost", 0.0)),
            weekly_cost=float(data.get("weekly_cost", 0.0)),
            monthly_cost=float(data.get("monthly_cost", 0.0)),
            last_reset_date=datetime.fromisoformat(last_reset) if last_reset else None,
            records=tuple(UsageRecord.from_dict(r) for r in data.get("records", [])),
        )
