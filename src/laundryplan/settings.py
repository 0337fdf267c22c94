from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str = "INFO"


@dataclass(frozen=True)
class BalanceWeights:
    """Tunables of the greedy balance scheduler.

    Defaults reproduce the plant's historical washing order; overrides are read
    from the ``app_config`` table (see ``Repository.get_balance_weights``).
    """

    balance_improvement: float = 10.0
    weight_factor_scale: float = 1000.0
    area_preference_bonus: float = 200.0
    high_volume_share: float = 0.2


def default_db_path() -> Path:
    # Fixed, repo-local database location (keeps paths stable across machines).
    return Path("db") / "laundryplan.db"
