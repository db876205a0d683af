"""
Row transformers: one raw CSV row (str -> str mapping) in, one typed record out.

Numeric fields fail closed to zero instead of raising. A row is skipped only
when a required field (the identity, and the timestamp for transactions) is
missing or unparseable; that is signalled with `RowSkipped` and the pipeline
carries on with the next row.

The dataset reaches the loader through two producers that spell booleans
differently, so the accepted tokens are kept per `SourceFormat` rather than
merged into one permissive set.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, FrozenSet, Mapping, Optional

from showdown.domain.models import CardRecord, TransactionRecord, UserRecord, _Record
from showdown.errors import RowSkipped

Row = Mapping[str, Optional[str]]
Transformer = Callable[[Row], _Record]

_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_CURRENCY_SEPARATORS = re.compile(r"[$,]")
_TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%m/%d/%Y %H:%M", "%Y-%m-%d")


class SourceFormat(str, enum.Enum):
    """Which producer wrote the CSV files."""

    DIRECT = "direct"
    API = "api"


@dataclass(frozen=True)
class FormatProfile:
    has_chip_tokens: FrozenSet[str]
    use_chip_tokens: FrozenSet[str]
    num_cards_column: str


PROFILES: Dict[SourceFormat, FormatProfile] = {
    SourceFormat.DIRECT: FormatProfile(
        has_chip_tokens=frozenset({"YES", "TRUE"}),
        use_chip_tokens=frozenset({"Chip Transaction"}),
        num_cards_column="num_cards_issued",
    ),
    SourceFormat.API: FormatProfile(
        has_chip_tokens=frozenset({"TRUE", "true", "1"}),
        use_chip_tokens=frozenset({"Chip Transaction", "true"}),
        num_cards_column="num_cards",
    ),
}


def parse_int(raw: Optional[str]) -> int:
    """Leading integer of `raw` ("42", "42 yrs", "42.9" -> 42), else 0."""
    match = _INT_PREFIX.match(raw or "")
    return int(match.group()) if match else 0


def parse_float(raw: Optional[str]) -> float:
    """Leading decimal number of `raw`, else 0.0."""
    match = _FLOAT_PREFIX.match(raw or "")
    return float(match.group()) if match else 0.0


def parse_amount(raw: Optional[str]) -> Decimal:
    """Currency string ("$1,234.50", "$-77.00") to Decimal, else 0."""
    cleaned = _CURRENCY_SEPARATORS.sub("", raw or "").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def parse_timestamp(raw: Optional[str]) -> datetime:
    text = (raw or "").strip()
    if not text:
        raise RowSkipped("missing timestamp")
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        else:
            raise RowSkipped(f"unparseable timestamp {text!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(row: Row, column: str) -> str:
    return (row.get(column) or "").strip()


def _identity(row: Row, column: str = "id") -> str:
    value = _text(row, column)
    if not value:
        raise RowSkipped(f"missing {column}")
    return value


def transform_user(row: Row) -> UserRecord:
    return UserRecord(
        id=_identity(row),
        current_age=parse_int(row.get("current_age")),
        retirement_age=parse_int(row.get("retirement_age")),
        birth_year=parse_int(row.get("birth_year")),
        birth_month=parse_int(row.get("birth_month")),
        gender=_text(row, "gender"),
        address=_text(row, "address"),
        latitude=parse_float(row.get("latitude")),
        longitude=parse_float(row.get("longitude")),
        per_capita_income=parse_float(_CURRENCY_SEPARATORS.sub("", row.get("per_capita_income") or "")),
    )


def card_transformer(source_format: SourceFormat = SourceFormat.DIRECT) -> Transformer:
    profile = PROFILES[source_format]

    def transform_card(row: Row) -> CardRecord:
        return CardRecord(
            id=_identity(row),
            client_id=_text(row, "client_id"),
            card_brand=_text(row, "card_brand"),
            card_type=_text(row, "card_type"),
            card_number=_text(row, "card_number"),
            expires=_text(row, "expires"),
            cvv=_text(row, "cvv"),
            has_chip=_text(row, "has_chip") in profile.has_chip_tokens,
            num_cards=parse_int(row.get(profile.num_cards_column)),
            credit_limit=parse_float(_CURRENCY_SEPARATORS.sub("", row.get("credit_limit") or "")),
        )

    return transform_card


def transaction_transformer(source_format: SourceFormat = SourceFormat.DIRECT) -> Transformer:
    profile = PROFILES[source_format]

    def transform_transaction(row: Row) -> TransactionRecord:
        return TransactionRecord(
            id=_identity(row),
            date=parse_timestamp(row.get("date")),
            client_id=_text(row, "client_id"),
            card_id=_text(row, "card_id"),
            amount=parse_amount(row.get("amount")),
            use_chip=_text(row, "use_chip") in profile.use_chip_tokens,
            merchant_id=_text(row, "merchant_id"),
            merchant_city=_text(row, "merchant_city"),
            merchant_state=_text(row, "merchant_state"),
            zip=_text(row, "zip"),
            mcc=_text(row, "mcc"),
        )

    return transform_transaction


def transformer_for(entity: str, source_format: SourceFormat = SourceFormat.DIRECT) -> Transformer:
    """Row transformer for an entity name from the registry."""
    if entity == "users":
        return transform_user
    if entity == "cards":
        return card_transformer(source_format)
    if entity == "transactions":
        return transaction_transformer(source_format)
    raise KeyError(f"No transformer for entity '{entity}'")


__all__ = [
    "SourceFormat",
    "PROFILES",
    "parse_int",
    "parse_float",
    "parse_amount",
    "parse_timestamp",
    "transform_user",
    "card_transformer",
    "transaction_transformer",
    "transformer_for",
]
