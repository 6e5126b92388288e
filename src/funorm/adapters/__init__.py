"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async PostgreSQL adapter.

Usage:
    from funorm.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from funorm.adapters.base import DatabaseClient
from funorm.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
]
