"""
Per-user settings.

Active AI provider, provider credentials and budget limits, kept as JSON
in the durable key-value store. Provider ids are stored trimmed and
lowercased everywhere they are used as keys.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, Optional

from ..core.budget import BudgetLimits
from ..core.errors import PersistenceFailure
from ..storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

PROVIDER_KEY = "ai_provider"
API_KEYS_KEY = "api_keys"
BUDGET_LIMITS_KEY = "budget_limits"

DEFAULT_PROVIDER = "grok"


def normalize_provider_id(provider: str) -> str:
    """Canonical form of a provider id.

    Raises:
        ValueError: If provider is empty
    """
    if not provider or not provider.strip():
        raise ValueError("provider cannot be empty")
    return provider.strip().lower()


class SettingsStore:
    """Reads and writes user settings through a key-value store.

    Store failures and unreadable stored values raise PersistenceFailure.
    """

    def __init__(self, store: KeyValueStore, default_provider: str = DEFAULT_PROVIDER,
                 default_limits: Optional[BudgetLimits] = None):
        self.store = store
        self.default_provider = normalize_provider_id(default_provider)
        self.default_limits = default_limits or BudgetLimits()

    def get_active_provider(self) -> str:
        """Return the selected provider id, or the default if unset."""
        return self._get(PROVIDER_KEY) or self.default_provider

    def set_active_provider(self, provider: str) -> None:
        provider_id = normalize_provider_id(provider)
        self._set(PROVIDER_KEY, provider_id)
        logger.info("AI provider set to: %s", provider_id)

    def get_credential(self, provider: str) -> Optional[str]:
        """Return the stored API key for a provider, or None."""
        return self._api_keys().get(normalize_provider_id(provider)) or None

    def save_credential(self, provider: str, api_key: str) -> None:
        provider_id = normalize_provider_id(provider)
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")
        api_keys = self._api_keys()
        api_keys[provider_id] = api_key.strip()
        self._set(API_KEYS_KEY, json.dumps(api_keys))
        logger.info("API key saved for provider: %s", provider_id)

    def delete_credential(self, provider: str) -> None:
        provider_id = normalize_provider_id(provider)
        api_keys = self._api_keys()
        if api_keys.pop(provider_id, None) is not None:
            self._set(API_KEYS_KEY, json.dumps(api_keys))
            logger.info("API key deleted for provider: %s", provider_id)

    def get_budget_limits(self) -> BudgetLimits:
        """Return the user's budget limits, or the defaults if unset.

        Stored values are merged over the defaults, so a partially stored
        mapping keeps defaults for the missing periods.

        Raises:
            PersistenceFailure: If the stored limits cannot be read or are invalid
        """
        stored = self._get_json(BUDGET_LIMITS_KEY, "budget limits")
        if stored is None:
            return self.default_limits

        try:
            return BudgetLimits(
                daily=float(stored.get("daily", self.default_limits.daily)),
                weekly=float(stored.get("weekly", self.default_limits.weekly)),
                monthly=float(stored.get("monthly", self.default_limits.monthly)),
            )
        except (ValueError, TypeError) as e:
            raise PersistenceFailure(f"Stored budget limits are invalid: {e}") from e

    def set_budget_limits(self, limits: BudgetLimits) -> None:
        self._set(BUDGET_LIMITS_KEY, json.dumps({
            "daily": limits.daily,
            "weekly": limits.weekly,
            "monthly": limits.monthly,
        }))
        logger.info(
            "Budget limits set: daily=%.2f weekly=%.2f monthly=%.2f",
            limits.daily, limits.weekly, limits.monthly,
        )

    def _api_keys(self) -> Dict[str, str]:
        return self._get_json(API_KEYS_KEY, "API keys") or {}

    def _get_json(self, key: str, label: str) -> Optional[Dict[str, Any]]:
        raw = self._get(key)
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PersistenceFailure(f"Stored {label} are corrupt: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceFailure(f"Stored {label} are corrupt: not a JSON object")
        return data

    def _get(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Failed to read settings: {e}") from e

    def _set(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Failed to save settings: {e}") from e
