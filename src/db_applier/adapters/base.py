"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that adapters must implement.  All
methods are ``async def`` -- the library is async-first.

Usage:
    from db_applier.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        version = await client.scalar("SELECT VERSION()")
        await client.execute("ALTER TABLE `users` ADD COLUMN `email` varchar(255)")
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    A client is scoped to at most one default schema, chosen when it is
    created.  All methods are async -- callers must ``await`` every
    operation.
    """

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute one raw SQL statement (DDL or other non-query operation).

        Args:
            sql: Raw SQL statement to execute.
            params: Optional dict of named parameters for the SQL statement.

        Raises:
            Exception: Whatever the driver raises for a server-side error.

        Example:
            await client.execute(
                "ALTER TABLE `users` ADD COLUMN `email` varchar(255)"
            )
        """
        ...

    async def scalar(self, sql: str, params: dict | None = None) -> Any:
        """Run a query and return the first column of the first row.

        Example:
            version = await client.scalar("SELECT VERSION()")
        """
        ...

    async def close(self) -> None:
        """Close the connection and clean up resources."""
        ...
