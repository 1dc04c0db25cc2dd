"""
Centralized configuration.

Priority: environment variables > .env file > defaults.

Usage:
    from budget.config import get_config
    config = get_config()
    thresholds = config.monthly_thresholds
"""
import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from budget.errors import ConfigError
from budget.thresholds import MONTHLY_THRESHOLDS, WEEKLY_THRESHOLDS


@dataclass(frozen=True)
class Config:
    """
    Runtime settings for the tracker and its dashboard.

    Every field can be overridden by an upper-case environment variable
    prefixed with ``BUDGET_`` (``log_level`` -> ``BUDGET_LOG_LEVEL``).
    """

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    # Transaction kinds this deployment tracks
    enabled_kinds: Tuple[str, ...] = ("income", "expense", "savings")

    # Presentation
    currency_symbol: str = "$"
    high_spending_percent: float = 70.0
    overspending_percent: float = 90.0

    # Category limits as fractions of income
    monthly_thresholds: Dict[str, float] = field(default_factory=lambda: dict(MONTHLY_THRESHOLDS))
    weekly_thresholds: Dict[str, float] = field(default_factory=lambda: dict(WEEKLY_THRESHOLDS))

    # Dashboard data
    seed_path: str = "data/seed.json"
    default_user: str = "demo-user"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Build a Config from the process environment, loading ``.env`` first."""
        load_dotenv(env_file)

        values = {}
        for name in ("log_level", "log_file", "currency_symbol", "seed_path", "default_user"):
            raw = os.getenv(f"BUDGET_{name.upper()}")
            if raw:
                values[name] = raw

        for name in ("log_max_bytes", "log_backup_count"):
            raw = os.getenv(f"BUDGET_{name.upper()}")
            if raw:
                values[name] = _parse_number(name, raw, int)

        for name in ("high_spending_percent", "overspending_percent"):
            raw = os.getenv(f"BUDGET_{name.upper()}")
            if raw:
                values[name] = _parse_number(name, raw, float)

        kinds = os.getenv("BUDGET_KINDS")
        if kinds:
            values["enabled_kinds"] = tuple(k.strip().lower() for k in kinds.split(",") if k.strip())

        for name in ("monthly_thresholds", "weekly_thresholds"):
            raw = os.getenv(f"BUDGET_{name.upper()}")
            if raw:
                values[name] = _parse_thresholds(name, raw)

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        allowed = {"income", "expense", "savings"}
        unknown = set(self.enabled_kinds) - allowed
        if unknown:
            raise ConfigError(f"Unknown transaction kinds: {', '.join(sorted(unknown))}")
        if not self.enabled_kinds:
            raise ConfigError("At least one transaction kind must be enabled")
        if self.high_spending_percent > self.overspending_percent:
            raise ConfigError("high_spending_percent must not exceed overspending_percent")


def _parse_number(name: str, raw: str, kind):
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigError(f"BUDGET_{name.upper()} is not a valid number: {raw!r}") from e


def _parse_thresholds(name: str, raw: str) -> Dict[str, float]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"BUDGET_{name.upper()} is not valid JSON") from e
    if not isinstance(data, dict):
        raise ConfigError(f"BUDGET_{name.upper()} must be a JSON object")
    try:
        return {str(k): float(v) for k, v in data.items()}
    except (TypeError, ValueError) as e:
        raise ConfigError(f"BUDGET_{name.upper()} values must be numbers") from e


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Process-wide Config, loaded once."""
    return Config.from_env()
