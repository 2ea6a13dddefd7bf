"""
Usage ledger.

Keeps a rolling log of paid provider calls in the durable key-value store
and derives spend over trailing day, week and month windows.

Windowed sums are recomputed from the full record list on every write
and every read.
"""

import json
import logging
import math
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from ..core.errors import PersistenceFailure
from ..core.pricing import calculate_cost
from .kv import KeyValueStore
from .models import UsageLedgerState, UsageRecord

logger = logging.getLogger(__name__)

STORAGE_KEY = "cost_tracking"

DAY = timedelta(hours=24)
WEEK = timedelta(days=7)
MONTH = timedelta(days=30)
RETENTION = MONTH


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _window_cost(records: Iterable[UsageRecord], cutoff: datetime) -> float:
    return math.fsum(r.cost for r in records if r.timestamp > cutoff)


class UsageLedger:
    """Repository for recording and aggregating provider usage.

    The read-modify-write in record_usage is serialized with a lock so
    back-to-back calls from several threads never lose a record.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the ledger.

        Args:
            store: Durable key-value store holding the ledger state
            clock: Returns the current aware datetime (defaults to UTC now)
        """
        self.store = store
        self.clock = clock or _utc_now
        self._lock = threading.Lock()

    def get_stats(self) -> UsageLedgerState:
        """Load the ledger state with windowed costs as of now.

        Returns:
            Persisted state, or a zeroed state if nothing is stored

        Raises:
            PersistenceFailure: If the store cannot be read or holds bad data
        """
        state = self._load()
        return self._with_window_costs(state, self.clock())

    def record_usage(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
    ) -> UsageLedgerState:
        """Append a usage record and persist the updated state.

        Args:
            model: Model that served the request
            input_tokens: Prompt tokens
            output_tokens: Completion tokens

        Returns:
            Updated ledger state

        Raises:
            PersistenceFailure: If the state cannot be loaded or saved
        """
        cost = calculate_cost(model, input_tokens, output_tokens)

        with self._lock:
            state = self._load()
            now = self.clock()
            record = UsageRecord(
                timestamp=now,
                model=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost=cost,
            )

            cutoff = now - RETENTION
            retained = tuple(r for r in state.records + (record,) if r.timestamp > cutoff)
            updated = UsageLedgerState(
                total_requests=state.total_requests + 1,
                total_cost=state.total_cost + cost,
                last_reset_date=state.last_reset_date or now,
                records=retained,
            )
            updated = self._with_window_costs(updated, now)
            self._save(updated)

        logger.info(
            "Usage recorded: model=%s input_tokens=%d output_tokens=%d cost=%.6f daily=%.6f",
            model, input_tokens, output_tokens, cost, updated.daily_cost,
        )
        return updated

    def reset_usage_stats(self) -> None:
        """Remove all persisted usage data.

        Raises:
            PersistenceFailure: If the store cannot be written
        """
        with self._lock:
            try:
                self.store.remove(STORAGE_KEY)
            except (sqlite3.Error, OSError) as e:
                raise PersistenceFailure(f"Failed to reset usage stats: {e}") from e
        logger.info("Usage stats reset")

    def _with_window_costs(self, state: UsageLedgerState, now: datetime) -> UsageLedgerState:
        return state.with_costs(
            daily=_window_cost(state.records, now - DAY),
            weekly=_window_cost(state.records, now - WEEK),
            monthly=_window_cost(state.records, now - MONTH),
        )

    def _load(self) -> UsageLedgerState:
        try:
            raw = self.store.get(STORAGE_KEY)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Failed to read usage stats: {e}") from e

        if raw is None:
            return UsageLedgerState(last_reset_date=self.clock())

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("usage stats are not a JSON object")
            return UsageLedgerState.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceFailure(f"Stored usage stats are corrupt: {e}") from e

    def _save(self, state: UsageLedgerState) -> None:
        try:
            self.store.set(STORAGE_KEY, json.dumps(state.to_dict()))
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Failed to save usage stats: {e}") from e
