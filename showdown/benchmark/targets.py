"""
Benchmark targets: each one knows how to run every query shape against the
`transactions` data in its own store.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Protocol, runtime_checkable

from elasticsearch import AsyncElasticsearch
from pymongo import DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from showdown.benchmark.queries import AMOUNT_RANGE, CITY_PREFIX, FETCH_LIMIT, QueryShape


@runtime_checkable
class BenchmarkTarget(Protocol):
    name: str

    async def execute(self, shape: QueryShape) -> Any:
        """Run one query; raise on failure."""
        ...


class _DispatchTarget:
    name: str

    def _handlers(self) -> Dict[str, Callable[[], Awaitable[Any]]]:
        raise NotImplementedError

    async def execute(self, shape: QueryShape) -> Any:
        handler = self._handlers().get(shape.key)
        if handler is None:
            raise ValueError(f"{self.name} does not implement query '{shape.key}'")
        return await handler()


class MongoTarget(_DispatchTarget):
    name = "MongoDB"

    def __init__(self, database: AsyncDatabase, collection: str = "transactions") -> None:
        self._collection = database[collection]

    def _handlers(self) -> Dict[str, Callable[[], Awaitable[Any]]]:
        return {
            "fetch_rows": self._fetch_rows,
            "sum_amount": self._sum_amount,
            "max_amount": self._max_amount,
            "range_filter": self._range_filter,
            "city_pattern": self._city_pattern,
        }

    async def _fetch_rows(self) -> Any:
        return await self._collection.find({}).limit(FETCH_LIMIT).to_list()

    async def _sum_amount(self) -> Any:
        cursor = await self._collection.aggregate(
            [{"$group": {"_id": None, "totalAmount": {"$sum": "$amount"}, "count": {"$sum": 1}}}]
        )
        return await cursor.to_list()

    async def _max_amount(self) -> Any:
        return await self._collection.find({}).sort("amount", DESCENDING).limit(1).to_list()

    async def _range_filter(self) -> Any:
        low, high = AMOUNT_RANGE
        query = {"amount": {"$gte": low, "$lte": high}}
        return await self._collection.find(query).limit(FETCH_LIMIT).to_list()

    async def _city_pattern(self) -> Any:
        query = {"merchant_city": {"$regex": f"^{CITY_PREFIX}"}}
        return await self._collection.find(query).limit(FETCH_LIMIT).to_list()


class ElasticsearchTarget(_DispatchTarget):
    name = "Elasticsearch"

    def __init__(self, client: AsyncElasticsearch, index: str = "transactions") -> None:
        self._client = client
        self._index = index

    def _handlers(self) -> Dict[str, Callable[[], Awaitable[Any]]]:
        return {
            "fetch_rows": self._fetch_rows,
            "sum_amount": self._sum_amount,
            "max_amount": self._max_amount,
            "range_filter": self._range_filter,
            "city_pattern": self._city_pattern,
        }

    async def _fetch_rows(self) -> Any:
        return await self._client.search(
            index=self._index, query={"match_all": {}}, size=FETCH_LIMIT
        )

    async def _sum_amount(self) -> Any:
        return await self._client.search(
            index=self._index,
            size=0,
            aggs={
                "total_amount": {"sum": {"field": "amount"}},
                "count": {"value_count": {"field": "amount"}},
            },
        )

    async def _max_amount(self) -> Any:
        return await self._client.search(
            index=self._index,
            query={"match_all": {}},
            sort=[{"amount": {"order": "desc"}}],
            size=1,
        )

    async def _range_filter(self) -> Any:
        low, high = AMOUNT_RANGE
        return await self._client.search(
            index=self._index,
            query={"range": {"amount": {"gte": low, "lte": high}}},
            size=FETCH_LIMIT,
        )

    async def _city_pattern(self) -> Any:
        return await self._client.search(
            index=self._index,
            query={"prefix": {"merchant_city": CITY_PREFIX}},
            size=FETCH_LIMIT,
        )


__all__ = ["BenchmarkTarget", "MongoTarget", "ElasticsearchTarget"]
