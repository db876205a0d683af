from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from showdown.errors import RowSkipped
from showdown.ingest.transform import (
    SourceFormat,
    card_transformer,
    parse_amount,
    parse_float,
    parse_int,
    parse_timestamp,
    transaction_transformer,
    transform_user,
    transformer_for,
)


@pytest.mark.parametrize(
    "raw, expected",
    [("42", 42), ("42 yrs", 42), ("42.9", 42), ("-3", -3), ("abc", 0), ("", 0), (None, 0)],
)
def test_parse_int_takes_leading_integer_or_zero(raw, expected) -> None:
    assert parse_int(raw) == expected


def test_parse_float_falls_back_to_zero() -> None:
    assert parse_float("34.05") == pytest.approx(34.05)
    assert parse_float("-118.24") == pytest.approx(-118.24)
    assert parse_float("n/a") == 0.0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$-77.00", Decimal("-77.00")),
        ("$1,234.50", Decimal("1234.50")),
        ("14.57", Decimal("14.57")),
        ("$", Decimal("0")),
        ("NaN", Decimal("0")),
        (None, Decimal("0")),
    ],
)
def test_parse_amount_strips_currency(raw, expected) -> None:
    assert parse_amount(raw) == expected


def test_parse_timestamp_formats() -> None:
    expected = datetime(2010, 1, 1, 0, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2010-01-01 00:01:00") == expected
    assert parse_timestamp("2010-01-01T00:01:00Z") == expected
    assert parse_timestamp("01/01/2010 00:01") == expected


@pytest.mark.parametrize("raw", ["", None, "yesterday"])
def test_parse_timestamp_rejects_missing_or_garbage(raw) -> None:
    with pytest.raises(RowSkipped):
        parse_timestamp(raw)


def test_user_with_non_numeric_age_gets_zero() -> None:
    user = transform_user({"id": "7", "current_age": "unknown", "gender": " Male ", "per_capita_income": "$29,278"})
    assert user.id == "7"
    assert user.current_age == 0
    assert user.gender == "Male"
    assert user.per_capita_income == pytest.approx(29278.0)


def test_row_without_id_is_skipped() -> None:
    with pytest.raises(RowSkipped):
        transform_user({"id": "  ", "current_age": "40"})


def test_card_chip_tokens_depend_on_source_format() -> None:
    direct = card_transformer(SourceFormat.DIRECT)
    api = card_transformer(SourceFormat.API)

    assert direct({"id": "1", "has_chip": "YES", "num_cards_issued": "2"}).has_chip is True
    assert direct({"id": "1", "has_chip": "1"}).has_chip is False
    assert api({"id": "1", "has_chip": "1"}).has_chip is True
    assert api({"id": "1", "has_chip": "YES"}).has_chip is False

    assert direct({"id": "1", "num_cards_issued": "2"}).num_cards == 2
    assert api({"id": "1", "num_cards": "3", "num_cards_issued": "9"}).num_cards == 3


def test_card_credit_limit_parsed_from_currency() -> None:
    card = card_transformer()({"id": "4524", "client_id": "825", "credit_limit": "$24,295"})
    assert card.credit_limit == pytest.approx(24295.0)
    assert card.client_id == "825"


def test_transaction_fields() -> None:
    transform = transaction_transformer(SourceFormat.DIRECT)
    txn = transform(
        {
            "id": "7475327",
            "date": "2010-01-01 00:01:00",
            "client_id": "1556",
            "card_id": "2972",
            "amount": "$-77.00",
            "use_chip": "Swipe Transaction",
            "merchant_city": "Beulah",
            "zip": "58523.0",
            "mcc": "5499",
        }
    )
    assert txn.amount == Decimal("-77.00")
    assert txn.use_chip is False
    assert txn.zip == "58523.0"
    assert txn.date.tzinfo is not None

    document = txn.to_document()
    assert document["amount"] == -77.0
    assert isinstance(document["amount"], float)


def test_transaction_use_chip_api_tokens() -> None:
    row = {"id": "1", "date": "2010-01-01", "use_chip": "true"}
    assert transaction_transformer(SourceFormat.API)(row).use_chip is True
    assert transaction_transformer(SourceFormat.DIRECT)(row).use_chip is False


def test_transaction_without_timestamp_is_skipped() -> None:
    with pytest.raises(RowSkipped):
        transaction_transformer()({"id": "1", "amount": "$1.00"})


def test_transformer_for_unknown_entity() -> None:
    assert transformer_for("users") is transform_user
    with pytest.raises(KeyError):
        transformer_for("merchants")


def test_records_are_immutable() -> None:
    user = transform_user({"id": "1"})
    with pytest.raises(ValidationError):
        user.current_age = 5  # type: ignore[misc]
