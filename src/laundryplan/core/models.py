from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ProductionLine(str, Enum):
    MANGLE = "Mangle"
    DOBLADO = "Doblado"


def parse_line(value: Any) -> ProductionLine:
    """Parse 'Mangle' / 'Doblado' (any case) into a ProductionLine."""
    if isinstance(value, ProductionLine):
        return value
    s = str(value or "").strip().lower()
    for line in ProductionLine:
        if line.value.lower() == s:
            return line
    raise ValueError(f"unknown production line: {value!r}")


class ScheduleReason(str, Enum):
    IMPROVES_BALANCE = "improves balance"
    HIGH_VOLUME = "high-volume client"
    SEED = "highest priority / seed selection"
    BALANCES_DEFICIT = "balances the deficit line"
    SEQUENTIAL = "sequential processing"


UNKNOWN_CLIENT_ID = "unknown"
UNKNOWN_CLIENT_NAME = "Unknown Client"
UNKNOWN_PRODUCT = "Unknown Product"


@dataclass(frozen=True)
class ClassificationEntry:
    product_key: str
    line: ProductionLine
    origin: str  # "override" | "default-rule"
    example_product_name: str | None = None


@dataclass(frozen=True)
class WeightRecord:
    client_id: str
    client_name: str
    weight: float | None
    timestamp: datetime | None

    @property
    def is_valid(self) -> bool:
        return self.weight is not None and self.weight >= 0 and self.timestamp is not None


@dataclass(frozen=True)
class ItemRecord:
    client_id: str
    client_name: str
    product_name: str
    quantity: float | None
    added_at: datetime | None = None


    @property
    def is_valid(self) -> bool:
        return self.quantity is not None and self.quantity >= 0


@dataclass(frozen=True)
class ClientDayRecord:
    client_id: str
    client_name: str
    total_weight: float
    total_items: float
    actual_mangle_items: float | None = None
    actual_doblado_items: float | None = None
    percentage_of_day_weight: float = 0.0
    percentage_of_day_items: float = 0.0
    mangle_percentage: float = 50.0
    doblado_percentage: float = 50.0
    estimated_mangle_weight: float = 0.0
    estimated_doblado_weight: float = 0.0
    estimated_mangle_items: float = 0.0
    estimated_doblado_items: float = 0.0

    @property
    def has_actual_split(self) -> bool:
        return self.actual_mangle_items is not None and self.actual_doblado_items is not None

    @property
    def dominant_line(self) -> ProductionLine | None:
        """Line with the strictly larger share, None on an exact 50/50."""
        if self.mangle_percentage > self.doblado_percentage:
            return ProductionLine.MANGLE
        if self.doblado_percentage > self.mangle_percentage:
            return ProductionLine.DOBLADO
        return None


@dataclass(frozen=True)
class DayAggregate:
    clients: list[ClientDayRecord]
    total_day_weight: float
    total_day_items: float
    day_mangle_items: float
    day_doblado_items: float
    skipped_weight_records: int = 0
    skipped_item_records: int = 0

    @property
    def day_mangle_ratio(self) -> float | None:
        classified = self.day_mangle_items + self.day_doblado_items
        if classified <= 0:
            return None
        return self.day_mangle_items / classified


@dataclass(frozen=True)
class ScheduleEntry:
    sequence: int
    client_id: str
    client_name: str
    total_weight: float
    estimated_mangle_items: float
    estimated_doblado_items: float
    mangle_percentage: float
    doblado_percentage: float
    cumulative_mangle_load: float
    cumulative_doblado_load: float
    load_balance: float
    priority_score: float
    reason: ScheduleReason


@dataclass(frozen=True)
class BalanceMetrics:
    optimal_balance: float
    current_mangle_load: float
    current_doblado_load: float
    balance_difference: float
    efficiency: float


@dataclass(frozen=True)
class ClassificationStats:
    total_products: int
    mangle_products: int
    doblado_products: int
    custom_classifications: int
    default_classifications: int


@dataclass(frozen=True)
class DayPlan:
    clients: list[ClientDayRecord]
    total_day_weight: float
    total_day_items: float
    schedule: list[ScheduleEntry]
    metrics: BalanceMetrics


@dataclass
class AuditEntry:
    id: int
    timestamp: str
    category: str
    message: str
    details: str | None = None
