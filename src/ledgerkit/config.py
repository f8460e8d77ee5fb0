"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from ledgerkit.domain.money import to_decimal

DEFAULT_DB_PATH = str(Path.home() / ".ledgerkit" / "ledgerkit.db")


@dataclass(frozen=True)
class Settings:
    """Ledger settings.

    Every field can be overridden by a ``LEDGERKIT_*`` environment variable;
    the CLI options override the environment in turn.
    """

    db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"
    reconcile_window_days: int = 3
    amount_epsilon: Decimal = Decimal("0.01")
    agent_threshold: Decimal = Decimal("0.85")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from LEDGERKIT_* environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ
        return cls(
            db_path=env.get("LEDGERKIT_DB_PATH") or DEFAULT_DB_PATH,
            log_level=env.get("LEDGERKIT_LOG_LEVEL") or "INFO",
            reconcile_window_days=int(env.get("LEDGERKIT_RECONCILE_WINDOW_DAYS") or 3),
            amount_epsilon=to_decimal(env.get("LEDGERKIT_AMOUNT_EPSILON") or "0.01"),
            agent_threshold=to_decimal(env.get("LEDGERKIT_AGENT_THRESHOLD") or "0.85"),
        )
