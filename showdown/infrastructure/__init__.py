"""
Infrastructure package for the database showdown.

Centralizes store connectivity (client factories with explicit lifecycles)
and the relational results log. Keep this layer focused on I/O and resource
management, decoupled from pipeline/harness logic.
"""

from showdown.infrastructure.clients import (
    Destinations,
    connect_relational,
    elasticsearch_client,
    mongo_database,
    open_destinations,
    ping_stores,
)

__all__ = [
    "Destinations",
    "connect_relational",
    "elasticsearch_client",
    "mongo_database",
    "open_destinations",
    "ping_stores",
]
