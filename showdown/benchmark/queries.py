"""
Representative read/aggregate query shapes run by the benchmark.

Operation number i (0-based) runs `shapes[i % len(shapes)]`, so a run of
nine operations with the basic set cycles fetch, sum, max three times.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class QueryShape:
    key: str
    label: str


FETCH_LIMIT = 100
AMOUNT_RANGE = (100.0, 500.0)
CITY_PREFIX = "San"

FETCH_ROWS = QueryShape("fetch_rows", "Get all transactions")
SUM_AMOUNT = QueryShape("sum_amount", "Calculate sum of all transactions")
MAX_AMOUNT = QueryShape("max_amount", "Find largest transaction")
RANGE_FILTER = QueryShape("range_filter", "Filter transactions by amount range")
CITY_PATTERN = QueryShape("city_pattern", "Match merchant city pattern")

QUERY_SETS: Dict[str, Tuple[QueryShape, ...]] = {
    "basic": (FETCH_ROWS, SUM_AMOUNT, MAX_AMOUNT),
    "extended": (FETCH_ROWS, SUM_AMOUNT, MAX_AMOUNT, RANGE_FILTER, CITY_PATTERN),
}


def rotation(query_set: str = "basic") -> Tuple[QueryShape, ...]:
    if query_set not in QUERY_SETS:
        raise ValueError(f"Unknown query set '{query_set}'. Available: {', '.join(QUERY_SETS)}")
    return QUERY_SETS[query_set]


def shape_for(operation_index: int, shapes: Tuple[QueryShape, ...]) -> QueryShape:
    return shapes[operation_index % len(shapes)]


__all__ = [
    "QueryShape",
    "QUERY_SETS",
    "FETCH_LIMIT",
    "AMOUNT_RANGE",
    "CITY_PREFIX",
    "rotation",
    "shape_for",
]
