"""
Domain package for the database showdown.

Exports the record models, run bookkeeping types and the entity registry.
Keep this package focused on data definitions and validation concerns.
"""

from showdown.domain.models import (
    Batch,
    CardRecord,
    LoadStats,
    OperationResult,
    TransactionRecord,
    UserRecord,
)
from showdown.domain.schema import ENTITIES, EntitySpec

__all__ = [
    "Batch",
    "CardRecord",
    "LoadStats",
    "OperationResult",
    "TransactionRecord",
    "UserRecord",
    "ENTITIES",
    "EntitySpec",
]
