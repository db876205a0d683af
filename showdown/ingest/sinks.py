"""
Destination sinks for the loader.

A sink owns one destination: it can drop and recreate the per-entity
containers, bulk-write a batch of documents, build secondary indexes once
the bulk load is over, make written data visible, and count documents.

Clients are constructed by the caller and passed in; sinks never open or
close connections themselves.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

from elasticsearch import ApiError, AsyncElasticsearch, TransportError
from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from showdown.domain.schema import EntitySpec
from showdown.errors import SinkWriteError
from showdown.utils.logging import get_logger

log = get_logger(__name__)

Document = Dict[str, Any]


@runtime_checkable
class BatchSink(Protocol):
    """
    Common interface for the two destinations.

    Attributes
    ----------
    name : str
        Human-friendly destination name used in summaries and errors.
    """

    name: str

    async def reset(self, entities: Sequence[EntitySpec]) -> None:
        """Drop every container the run is about to load."""
        ...

    async def prepare(self, entities: Sequence[EntitySpec]) -> None:
        """Create empty containers (with schema where the destination has one)."""
        ...

    async def write(self, entity: EntitySpec, documents: List[Document]) -> int:
        """Bulk-write one batch; return the number of documents acknowledged."""
        ...

    async def build_indexes(self, entities: Sequence[EntitySpec]) -> None:
        """Create secondary indexes after the bulk load."""
        ...

    async def refresh(self, entities: Sequence[EntitySpec]) -> None:
        """Make everything written so far visible to readers."""
        ...

    async def count(self, entity: EntitySpec) -> int:
        ...


class MongoSink:
    """Document-store sink: one collection per entity."""

    name: str = "MongoDB"

    def __init__(self, database: AsyncDatabase) -> None:
        self._db = database

    async def reset(self, entities: Sequence[EntitySpec]) -> None:
        for spec in entities:
            await self._db.drop_collection(spec.name)

    async def prepare(self, entities: Sequence[EntitySpec]) -> None:
        for spec in entities:
            await self._db.create_collection(spec.name)

    async def write(self, entity: EntitySpec, documents: List[Document]) -> int:
        if not documents:
            return 0
        try:
            result = await self._db[entity.name].insert_many(documents, ordered=False)
        except PyMongoError as exc:
            raise SinkWriteError(self.name, entity.name, str(exc)) from exc
        return len(result.inserted_ids)

    async def build_indexes(self, entities: Sequence[EntitySpec]) -> None:
        for spec in entities:
            collection = self._db[spec.name]
            for field in spec.index_fields:
                await collection.create_index([(field, ASCENDING)])
            log.info(
                f"[INDEXES] {self.name} {spec.name}",
                extra={"sink": self.name, "entity": spec.name, "fields": list(spec.index_fields)},
            )

    async def refresh(self, entities: Sequence[EntitySpec]) -> None:
        # Acknowledged inserts are already visible to readers.
        return None

    async def count(self, entity: EntitySpec) -> int:
        return await self._db[entity.name].count_documents({})


class ElasticsearchSink:
    """Search-engine sink: one index per entity, explicit mappings."""

    name: str = "Elasticsearch"

    def __init__(self, client: AsyncElasticsearch) -> None:
        self._client = client

    async def reset(self, entities: Sequence[EntitySpec]) -> None:
        await self._client.indices.delete(
            index=[spec.name for spec in entities], ignore_unavailable=True
        )

    async def prepare(self, entities: Sequence[EntitySpec]) -> None:
        for spec in entities:
            await self._client.indices.create(index=spec.name, mappings=spec.mapping)

    async def write(self, entity: EntitySpec, documents: List[Document]) -> int:
        if not documents:
            return 0
        operations: List[Document] = []
        for document in documents:
            operations.append({"index": {"_index": entity.name, "_id": document["id"]}})
            operations.append(document)
        try:
            response = await self._client.bulk(operations=operations)
        except (ApiError, TransportError) as exc:
            raise SinkWriteError(self.name, entity.name, str(exc)) from exc

        if response.get("errors"):
            failed = [
                action
                for item in response.get("items", [])
                for action in item.values()
                if action.get("error")
            ]
            first = failed[0]["error"] if failed else "unknown bulk error"
            raise SinkWriteError(
                self.name,
                entity.name,
                f"{len(failed)} of {len(documents)} documents rejected; first: {first}",
            )
        return len(documents)

    async def build_indexes(self, entities: Sequence[EntitySpec]) -> None:
        # Mappings are applied when the index is created.
        return None

    async def refresh(self, entities: Sequence[EntitySpec]) -> None:
        await self._client.indices.refresh(index=[spec.name for spec in entities])

    async def count(self, entity: EntitySpec) -> int:
        response = await self._client.count(index=entity.name)
        return int(response["count"])


__all__ = ["BatchSink", "MongoSink", "ElasticsearchSink", "Document"]
