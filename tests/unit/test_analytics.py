from __future__ import annotations

from typing import Any, Dict, List

import pytest

from showdown.analytics import transaction_overview


class _FakeCursor:
    def __init__(self, rows: List[Dict[str, Any]]) -> None:
        self._rows = rows

    async def to_list(self) -> List[Dict[str, Any]]:
        return self._rows


class _FakeTransactions:
    """Answers each aggregation by the key of its `$group` stage."""

    def __init__(self, groups: Dict[Any, List[Dict[str, Any]]], distinct: Dict[str, List[str]]) -> None:
        self.groups = groups
        self.distinct_values = distinct
        self.pipelines: List[List[Dict[str, Any]]] = []

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> _FakeCursor:
        self.pipelines.append(pipeline)
        return _FakeCursor(self.groups.get(pipeline[0]["$group"]["_id"], []))

    async def distinct(self, field: str) -> List[str]:
        return self.distinct_values.get(field, [])


class _FakeDatabase:
    def __init__(self, transactions: _FakeTransactions) -> None:
        self.transactions = transactions

    def __getitem__(self, name: str) -> _FakeTransactions:
        assert name == "transactions"
        return self.transactions


@pytest.mark.asyncio
async def test_overview_totals_and_chip_rate() -> None:
    transactions = _FakeTransactions(
        groups={
            None: [
                {
                    "_id": None,
                    "total_transactions": 8,
                    "total_amount": 1234.5671,
                    "avg_amount": 154.3208,
                    "max_amount": 900.0,
                    "min_amount": -77.0,
                    "chip_transactions": 3,
                }
            ],
            "$merchant_city": [
                {"_id": "San Diego", "count": 5, "total_amount": 1000.0, "avg_amount": 200.0},
                {"_id": None, "count": 3, "total_amount": 234.5671, "avg_amount": 78.189},
            ],
            "$use_chip": [
                {"_id": True, "count": 3, "total_amount": 300.0, "avg_amount": 100.0},
                {"_id": False, "count": 5, "total_amount": 934.567, "avg_amount": 186.9134},
            ],
        },
        distinct={"client_id": ["1", "2"], "card_id": ["10", "11", "12"], "merchant_id": ["m1"]},
    )

    result = await transaction_overview(_FakeDatabase(transactions), top=5)

    overview = result["overview"]
    assert overview["total_transactions"] == 8
    assert overview["total_amount"] == 1234.57
    assert overview["min_amount"] == -77.0
    assert overview["chip_rate"] == 37.5
    assert (overview["unique_clients"], overview["unique_cards"], overview["unique_merchants"]) == (2, 3, 1)
    assert [row["city"] for row in result["by_city"]] == ["San Diego", "Unknown"]
    assert result["by_city"][1]["total_amount"] == 234.57
    assert [row["type"] for row in result["chip_vs_swipe"]] == ["Chip", "Swipe"]
    assert {"$limit": 5} in transactions.pipelines[1]


@pytest.mark.asyncio
async def test_overview_of_empty_collection() -> None:
    result = await transaction_overview(_FakeDatabase(_FakeTransactions(groups={}, distinct={})))

    overview = result["overview"]
    assert overview["total_transactions"] == 0
    assert overview["total_amount"] == 0.0
    assert overview["chip_rate"] == 0.0
    assert overview["unique_clients"] == 0
    assert result["by_city"] == []
    assert result["chip_vs_swipe"] == []
