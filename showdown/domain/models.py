"""
Domain models for the database showdown.

Three immutable record types mirror the financial dataset's CSV files
(users, cards, transactions). `LoadStats` and `OperationResult` carry the
bookkeeping produced by the loader and the benchmark harness.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


class _Record(BaseModel):
    model_config = _FROZEN

    id: str = Field(..., min_length=1, description="Identity from the source CSV.")

    def to_document(self) -> Dict[str, Any]:
        """
        Fresh dict for a sink. Each call returns a new object so one sink's
        driver mutating it (e.g. adding `_id`) cannot affect another sink.
        """
        return self.model_dump()


class UserRecord(_Record):
    """One row of the users file."""

    current_age: int = 0
    retirement_age: int = 0
    birth_year: int = 0
    birth_month: int = 0
    gender: str = ""
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    per_capita_income: float = 0.0


class CardRecord(_Record):
    """One row of the cards file."""

    client_id: str = Field("", description="Owning user; not enforced.")
    card_brand: str = ""
    card_type: str = ""
    card_number: str = ""
    expires: str = ""
    cvv: str = ""
    has_chip: bool = False
    num_cards: int = 0
    credit_limit: float = 0.0


class TransactionRecord(_Record):
    """One row of the transactions file."""

    date: datetime
    client_id: str = ""
    card_id: str = ""
    amount: Decimal = Decimal("0")
    use_chip: bool = False
    merchant_id: str = ""
    merchant_city: str = ""
    merchant_state: str = ""
    zip: str = ""
    mcc: str = Field("", description="Merchant category code.")

    def to_document(self) -> Dict[str, Any]:
        document = super().to_document()
        # Both stores aggregate on a numeric field.
        document["amount"] = float(self.amount)
        return document


@dataclass
class EntityCounts:
    read: int = 0
    skipped: int = 0
    written: Dict[str, int] = field(default_factory=dict)


@dataclass
class LoadStats:
    """
    Running counts for one ingestion run: rows read and skipped per entity,
    and records acknowledged per entity and destination.
    """

    entities: Dict[str, EntityCounts] = field(default_factory=dict)

    def _entity(self, entity: str) -> EntityCounts:
        return self.entities.setdefault(entity, EntityCounts())

    def row_read(self, entity: str) -> None:
        self._entity(entity).read += 1

    def row_skipped(self, entity: str) -> None:
        self._entity(entity).skipped += 1

    def acknowledge(self, entity: str, sink: str, count: int) -> None:
        written = self._entity(entity).written
        written[sink] = written.get(sink, 0) + count

    def loaded(self, entity: str) -> int:
        """Records acknowledged by every destination."""
        written = self._entity(entity).written
        return min(written.values()) if written else 0

    def skipped(self) -> int:
        return sum(counts.skipped for counts in self.entities.values())

    def snapshot(self) -> Dict[str, Any]:
        return {
            name: {"read": c.read, "skipped": c.skipped, "written": dict(c.written)}
            for name, c in self.entities.items()
        }


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one timed benchmark operation."""

    database: str
    operation: str
    operation_number: int
    response_time_ms: float
    success: bool
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_event(self, user_id: str, total_operations: int) -> Dict[str, Any]:
        return {
            "userId": user_id,
            "database": self.database,
            "operationName": self.operation,
            "operationNumber": self.operation_number,
            "totalOperations": total_operations,
            "responseTime": self.response_time_ms,
            "success": self.success,
            "errorMessage": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


Batch = List[_Record]

__all__ = [
    "UserRecord",
    "CardRecord",
    "TransactionRecord",
    "EntityCounts",
    "LoadStats",
    "OperationResult",
    "Batch",
]
