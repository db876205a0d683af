"""
Client factories for the three stores.

Every client is created explicitly for the operation that needs it and closed
when that operation ends; nothing is cached at module level. Callers pass the
opened handles into the pipeline and the harness.

The relational connection (users, scores, results log) is retried for
transient failures using tenacity. The document store and the search engine
are not: a destination that cannot be reached fails the run.
"""

from __future__ import annotations

import time
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional

import psycopg
from elasticsearch import AsyncElasticsearch
from psycopg import AsyncConnection
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from showdown.config import Settings, get_settings, redact
from showdown.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class Destinations:
    """Opened handles for the document store and the search engine."""

    mongo: AsyncDatabase
    elasticsearch: AsyncElasticsearch


async def ensure_reachable(destinations: Destinations) -> None:
    """
    Fail fast before any mutation if either destination is down.

    Raises
    ------
    ConnectionError
        If a ping does not succeed.
    """
    await destinations.mongo.command("ping")
    if not await destinations.elasticsearch.ping():
        raise ConnectionError("Elasticsearch did not answer ping")


@asynccontextmanager
async def mongo_database(settings: Optional[Settings] = None) -> AsyncIterator[AsyncDatabase]:
    """Open a MongoDB client for the duration of the block."""
    settings = settings or get_settings()
    client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_url)
    log.debug(f"MongoDB client opened for {redact(settings.mongodb_url)}")
    try:
        yield client[settings.mongodb_database]
    finally:
        await client.close()
        log.debug("MongoDB client closed")


@asynccontextmanager
async def elasticsearch_client(
    settings: Optional[Settings] = None,
) -> AsyncIterator[AsyncElasticsearch]:
    """Open an Elasticsearch client for the duration of the block."""
    settings = settings or get_settings()
    client = AsyncElasticsearch(settings.elasticsearch_url)
    log.debug(f"Elasticsearch client opened for {redact(settings.elasticsearch_url)}")
    try:
        yield client
    finally:
        await client.close()
        log.debug("Elasticsearch client closed")


@asynccontextmanager
async def open_destinations(
    settings: Optional[Settings] = None, verify: bool = True
) -> AsyncIterator[Destinations]:
    """
    Open both destinations together; close both on exit.

    Example
    -------
        async with open_destinations() as dest:
            writer = DualSinkWriter(MongoSink(dest.mongo), ElasticsearchSink(dest.elasticsearch))
    """
    async with AsyncExitStack() as stack:
        mongo = await stack.enter_async_context(mongo_database(settings))
        es = await stack.enter_async_context(elasticsearch_client(settings))
        destinations = Destinations(mongo=mongo, elasticsearch=es)
        if verify:
            await ensure_reachable(destinations)
            log.info("Connected to MongoDB and Elasticsearch")
        yield destinations


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
async def connect_relational(dsn: Optional[str] = None) -> AsyncConnection:
    """
    Acquire an async PostgreSQL connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return await AsyncConnection.connect(dsn or get_settings().database_url)


async def ping_stores(settings: Optional[Settings] = None) -> Dict[str, Dict[str, object]]:
    """
    Report reachability and round-trip time for each store.

    Never raises; an unreachable store is reported as not connected.
    """
    settings = settings or get_settings()
    status: Dict[str, Dict[str, object]] = {}

    async def _check(name: str, ping) -> None:
        start = time.perf_counter()
        try:
            await ping()
            status[name] = {
                "connected": True,
                "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
            }
        except Exception as exc:  # noqa: BLE001 - reported, not raised
            log.warning(f"{name} health check failed", extra={"store": name, "error": str(exc)})
            status[name] = {"connected": False, "response_time_ms": 0.0, "error": str(exc)}

    async def _postgres() -> None:
        conn = await AsyncConnection.connect(settings.database_url, connect_timeout=5)
        try:
            await conn.execute("SELECT 1")
        finally:
            await conn.close()

    async def _mongo() -> None:
        async with mongo_database(settings) as db:
            await db.command("ping")

    async def _elasticsearch() -> None:
        async with elasticsearch_client(settings) as es:
            if not await es.ping():
                raise ConnectionError("ping returned false")

    await _check("postgres", _postgres)
    await _check("mongodb", _mongo)
    await _check("elasticsearch", _elasticsearch)
    return status


__all__ = [
    "Destinations",
    "ensure_reachable",
    "mongo_database",
    "elasticsearch_client",
    "open_destinations",
    "connect_relational",
    "ping_stores",
]
