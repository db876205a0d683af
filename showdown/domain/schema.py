"""
Entity registry: what gets loaded, in which order, and how each destination
shapes it.

Registry order is the load order. Transactions reference users and cards, so
they always come last.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class EntitySpec:
    name: str
    file_token: str
    mapping: Dict[str, Any]
    index_fields: Tuple[str, ...]
    progress_interval: int


def _keywords(*names: str) -> Dict[str, Dict[str, str]]:
    return {name: {"type": "keyword"} for name in names}


USERS = EntitySpec(
    name="users",
    file_token="users",
    mapping={
        "properties": {
            **_keywords("id", "gender"),
            "current_age": {"type": "integer"},
            "retirement_age": {"type": "integer"},
            "birth_year": {"type": "integer"},
            "birth_month": {"type": "integer"},
            "address": {"type": "text"},
            "latitude": {"type": "float"},
            "longitude": {"type": "float"},
            "per_capita_income": {"type": "float"},
        }
    },
    index_fields=("id",),
    progress_interval=100,
)

CARDS = EntitySpec(
    name="cards",
    file_token="cards",
    mapping={
        "properties": {
            **_keywords("id", "client_id", "card_brand", "card_type", "card_number", "expires", "cvv"),
            "has_chip": {"type": "boolean"},
            "num_cards": {"type": "integer"},
            "credit_limit": {"type": "float"},
        }
    },
    index_fields=("id", "client_id", "card_brand"),
    progress_interval=500,
)

TRANSACTIONS = EntitySpec(
    name="transactions",
    file_token="transactions",
    mapping={
        "properties": {
            **_keywords(
                "id",
                "client_id",
                "card_id",
                "merchant_id",
                "merchant_city",
                "merchant_state",
                "zip",
                "mcc",
            ),
            "date": {"type": "date"},
            "amount": {"type": "float"},
            "use_chip": {"type": "boolean"},
        }
    },
    index_fields=("client_id", "card_id", "merchant_city", "merchant_state", "amount", "date", "mcc"),
    progress_interval=50_000,
)

ENTITIES: Tuple[EntitySpec, ...] = (USERS, CARDS, TRANSACTIONS)

__all__ = ["EntitySpec", "ENTITIES", "USERS", "CARDS", "TRANSACTIONS"]
