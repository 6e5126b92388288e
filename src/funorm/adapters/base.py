"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that all store adapters must
implement.  All methods are ``async def`` -- the library is async-first.

Usage:
    from funorm.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        if not await client.table_exists("user"):
            await client.create_table("user", ['"id" INTEGER PRIMARY KEY'])
        row = await client.select_first_row("user", ["id"])
        await client.close()
"""

from typing import Any, Protocol

from funorm.schema.models import IntrospectedColumn


class DatabaseClient(Protocol):
    """Store interface consumed by the reconciliation engine.

    Catalog reads (``table_exists``, ``column_info``) may be called
    concurrently.  DDL methods are called one at a time.
    """

    async def table_exists(self, table: str) -> bool:
        """Check whether *table* exists in the store.

        Example:
            if await client.table_exists("user"):
                ...
        """
        ...

    async def column_info(self, table: str, column: str) -> IntrospectedColumn | None:
        """Return the native type and nullability of one column.

        Returns:
            ``IntrospectedColumn`` or ``None`` if the column does not exist.

        Example:
            info = await client.column_info("user", "name")
            # IntrospectedColumn(native_type='character varying', nullable=False)
        """
        ...

    async def create_table(self, table: str, column_specs: list[str]) -> None:
        """Create *table* from rendered column specs.

        Args:
            table: Table name (unquoted).
            column_specs: One rendered column definition per column, e.g.
                ``'"age" INTEGER NOT NULL DEFAULT 0'``.
        """
        ...

    async def alter_table(self, table: str, action: str) -> None:
        """Run one ``ALTER TABLE <table> <action>`` statement.

        Example:
            await client.alter_table("user", 'ALTER COLUMN "name" DROP NOT NULL')
        """
        ...

    async def select_first_row(
        self, table: str, columns: list[str]
    ) -> dict[str, Any] | None:
        """Fetch one row of *table*.

        Returns:
            Dict of column name to value, or ``None`` if the table is empty.
        """
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a raw SQL statement (DDL or other non-query operations).

        Args:
            sql: Raw SQL statement to execute.
            params: Optional dict of named parameters for the SQL statement.
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
