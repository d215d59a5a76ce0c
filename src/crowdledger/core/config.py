"""
Configuration management for CrowdLedger.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any

from crowdledger.core.exceptions import ConfigurationError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _parse_bool(name: str, value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}", details={"name": name})


def _parse_float(name: str, value: str | float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid number for {name}: {value!r}", details={"name": name}
        ) from None


@dataclass(frozen=True)
class Config:
    """Ledger configuration."""

    owner: str
    storage_backend: str = "memory"
    redis_url: str | None = None
    # Outbound payouts; None keeps payouts in memory
    payout_url: str | None = None
    payout_timeout: float = 30.0
    # Value sent outside donate() is refused unless this is False
    reject_direct_transfers: bool = True
    log_level: str = "INFO"
    env: str = "development"

    def __post_init__(self) -> None:
        if not self.owner:
            raise ValueError("owner is required")
        if self.payout_timeout <= 0:
            raise ConfigurationError(
                "payout_timeout must be positive",
                details={"payout_timeout": self.payout_timeout},
            )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level!r}", details={"log_level": self.log_level}
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        owner = overrides.get("owner") or _get_env_var("CROWDLEDGER_OWNER", required=True)

        storage_backend = overrides.get("storage_backend") or _get_env_var(
            "CROWDLEDGER_STORAGE_BACKEND", default="memory"
        )
        redis_url = overrides.get("redis_url") or _get_env_var("CROWDLEDGER_REDIS_URL")
        payout_url = overrides.get("payout_url") or _get_env_var("CROWDLEDGER_PAYOUT_URL")

        payout_timeout = overrides.get("payout_timeout")
        if payout_timeout is None:
            payout_timeout = _parse_float(
                "CROWDLEDGER_PAYOUT_TIMEOUT",
                _get_env_var("CROWDLEDGER_PAYOUT_TIMEOUT", default=str(cls.payout_timeout)),
            )

        reject = overrides.get("reject_direct_transfers")
        if reject is None:
            reject = _parse_bool(
                "CROWDLEDGER_REJECT_DIRECT_TRANSFERS",
                _get_env_var("CROWDLEDGER_REJECT_DIRECT_TRANSFERS", default="true"),
            )

        log_level = overrides.get("log_level") or _get_env_var(
            "CROWDLEDGER_LOG_LEVEL", default="INFO"
        )
        env = overrides.get("env") or _get_env_var("CROWDLEDGER_ENV", default="development")

        return cls(
            owner=owner,  # type: ignore
            storage_backend=storage_backend,  # type: ignore
            redis_url=redis_url,
            payout_url=payout_url,
            payout_timeout=payout_timeout,
            reject_direct_transfers=reject,
            log_level=log_level,  # type: ignore
            env=env,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        current = asdict(self)
        current.update(updates)
        return Config(**current)
