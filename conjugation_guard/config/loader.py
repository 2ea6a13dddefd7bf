"""
Configuration management and loading.

Handles the application settings file: default budgets, rate limiter
caps, provider options and the storage location.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Set

import yaml

from ..core.budget import BudgetLimits
from ..storage.db import DEFAULT_DB_PATH


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiter settings."""
    min_delay_seconds: float = 2.0
    max_per_minute: int = 10
    max_per_hour: int = 50

    def __post_init__(self):
        """Validate rate limit values are positive."""
        if self.min_delay_seconds < 0:
            raise ValueError("min_delay_seconds cannot be negative")
        if self.max_per_minute <= 0:
            raise ValueError("max_per_minute must be > 0")
        if self.max_per_hour <= 0:
            raise ValueError("max_per_hour must be > 0")


@dataclass(frozen=True)
class ProviderConfig:
    """AI provider settings."""
    default: str = "grok"
    timeout_seconds: float = 30.0

    def __post_init__(self):
        """Validate provider values."""
        if not self.default or not self.default.strip():
            raise ValueError("provider default cannot be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass(frozen=True)
class StorageConfig:
    """Durable storage settings."""
    db_path: str = DEFAULT_DB_PATH


@dataclass(frozen=True)
class GuardConfig:
    """Complete application configuration."""
    budget: BudgetLimits = field(default_factory=BudgetLimits)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_guard_config(path: str) -> GuardConfig:
    """Load and validate configuration from a YAML file.

    Every section is optional; missing sections and keys take their
    defaults. Unknown keys are rejected so typos never pass silently.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated GuardConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        return GuardConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'budget', 'rate_limits', 'provider', 'storage'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    budget_data = _section(raw_config, 'budget', {'daily', 'weekly', 'monthly'})
    rate_data = _section(raw_config, 'rate_limits', {'min_delay_seconds', 'max_per_minute', 'max_per_hour'})
    provider_data = _section(raw_config, 'provider', {'default', 'timeout_seconds'})
    storage_data = _section(raw_config, 'storage', {'db_path'})

    budget = BudgetLimits(**{
        key: _positive_number(value, f"budget.{key}", allow_zero=True)
        for key, value in budget_data.items()
    })

    rate_limits = RateLimitConfig(
        min_delay_seconds=_positive_number(
            rate_data.get('min_delay_seconds', 2.0), "rate_limits.min_delay_seconds", allow_zero=True
        ),
        max_per_minute=_positive_int(rate_data.get('max_per_minute', 10), "rate_limits.max_per_minute"),
        max_per_hour=_positive_int(rate_data.get('max_per_hour', 50), "rate_limits.max_per_hour"),
    )

    default_provider = provider_data.get('default', 'grok')
    if not isinstance(default_provider, str):
        raise ValueError("'provider.default' must be a string")
    provider = ProviderConfig(
        default=default_provider.lower(),
        timeout_seconds=_positive_number(
            provider_data.get('timeout_seconds', 30.0), "provider.timeout_seconds"
        ),
    )

    db_path = storage_data.get('db_path', DEFAULT_DB_PATH)
    if not isinstance(db_path, str) or not db_path.strip():
        raise ValueError("'storage.db_path' must be a non-empty string")

    return GuardConfig(
        budget=budget,
        rate_limits=rate_limits,
        provider=provider,
        storage=StorageConfig(db_path=db_path),
    )


def _section(raw_config: Dict[str, Any], name: str, allowed_keys: Set[str]) -> Dict[str, Any]:
    """Extract an optional section and reject unknown keys in it."""
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown {name} keys: {unknown_keys}")
    return data


def _positive_number(value: Any, path: str, allow_zero: bool = False) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{path}' must be a number")
    if value < 0:
        raise ValueError(f"'{path}' cannot be negative")
    if value == 0 and not allow_zero:
        raise ValueError(f"'{path}' must be > 0")
    return float(value)


def _positive_int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{path}' must be a positive integer")
    return value
