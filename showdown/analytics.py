"""
Transaction analytics read from the document store once data is loaded.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pymongo.asynchronous.database import AsyncDatabase


def _money(value: Any) -> float:
    return round(float(value or 0), 2)


async def _aggregate(database: AsyncDatabase, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    cursor = await database["transactions"].aggregate(pipeline)
    return await cursor.to_list()


async def transaction_overview(database: AsyncDatabase, top: int = 10) -> Dict[str, Any]:
    """
    Totals, chip usage, distinct entities and the busiest merchant cities.
    """
    totals = await _aggregate(
        database,
        [
            {
                "$group": {
                    "_id": None,
                    "total_transactions": {"$sum": 1},
                    "total_amount": {"$sum": "$amount"},
                    "avg_amount": {"$avg": "$amount"},
                    "max_amount": {"$max": "$amount"},
                    "min_amount": {"$min": "$amount"},
                    "chip_transactions": {"$sum": {"$cond": ["$use_chip", 1, 0]}},
                }
            }
        ],
    )
    main = totals[0] if totals else {}
    count = int(main.get("total_transactions", 0))
    chip = int(main.get("chip_transactions", 0))

    by_city = await _aggregate(
        database,
        [
            {
                "$group": {
                    "_id": "$merchant_city",
                    "count": {"$sum": 1},
                    "total_amount": {"$sum": "$amount"},
                    "avg_amount": {"$avg": "$amount"},
                }
            },
            {"$sort": {"count": -1}},
            {"$limit": top},
        ],
    )
    chip_split = await _aggregate(
        database,
        [
            {
                "$group": {
                    "_id": "$use_chip",
                    "count": {"$sum": 1},
                    "total_amount": {"$sum": "$amount"},
                    "avg_amount": {"$avg": "$amount"},
                }
            }
        ],
    )
    transactions = database["transactions"]

    return {
        "overview": {
            "total_transactions": count,
            "total_amount": _money(main.get("total_amount")),
            "avg_amount": _money(main.get("avg_amount")),
            "max_amount": _money(main.get("max_amount")),
            "min_amount": _money(main.get("min_amount")),
            "chip_transactions": chip,
            "chip_rate": round(chip / count * 100, 2) if count else 0.0,
            "unique_clients": len(await transactions.distinct("client_id")),
            "unique_cards": len(await transactions.distinct("card_id")),
            "unique_merchants": len(await transactions.distinct("merchant_id")),
        },
        "by_city": [
            {
                "city": row["_id"] or "Unknown",
                "count": row["count"],
                "total_amount": _money(row["total_amount"]),
                "avg_amount": _money(row["avg_amount"]),
            }
            for row in by_city
        ],
        "chip_vs_swipe": [
            {
                "type": "Chip" if row["_id"] else "Swipe",
                "count": row["count"],
                "total_amount": _money(row["total_amount"]),
                "avg_amount": _money(row["avg_amount"]),
            }
            for row in chip_split
        ],
    }


__all__ = ["transaction_overview"]
