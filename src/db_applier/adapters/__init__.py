"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async MySQL adapter used
for direct statement execution.

Usage:
    from db_applier.adapters import DatabaseClient, AsyncMySQLAdapter
"""

from db_applier.adapters.base import DatabaseClient
from db_applier.adapters.mysql import AsyncMySQLAdapter

__all__ = [
    "DatabaseClient",
    "AsyncMySQLAdapter",
]
