"""Shared fixtures: an in-memory store implementing ``DatabaseClient``."""

import asyncio
import re
from typing import Any

import pytest

from funorm.schema.models import IntrospectedColumn, column, primary

NATIVE_TYPES = {"INTEGER": "integer", "VARCHAR": "character varying"}

_SPEC_RE = re.compile(r'^"(?P<name>[^"]+)" (?P<type>\w+)(?P<rest>.*)$')
_ALTER_RE = re.compile(r'^ALTER COLUMN "(?P<name>[^"]+)" (?P<rest>.*)$')


def _parse_spec(spec: str) -> tuple[str, IntrospectedColumn]:
    match = _SPEC_RE.match(spec)
    assert match, f"unparseable column spec: {spec}"
    rest = match.group("rest")
    nullable = "PRIMARY KEY" not in rest and "NOT NULL" not in rest
    return match.group("name"), IntrospectedColumn(
        native_type=NATIVE_TYPES[match.group("type")], nullable=nullable
    )


class FakeStore:
    """In-memory ``DatabaseClient``.

    Tables map column names to ``IntrospectedColumn``.  Every DDL or raw
    statement is recorded in ``statements``.  ``fail_on`` holds table
    names whose catalog reads raise; ``fail_alter_on`` holds substrings of
    ALTER actions that raise; ``delays`` slows catalog reads per table.
    """

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, IntrospectedColumn]] = {}
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.statements: list[str] = []
        self.catalog_calls: list[tuple[str, ...]] = []
        self.fail_on: set[str] = set()
        self.fail_alter_on: set[str] = set()
        self.delays: dict[str, float] = {}
        self.closed = False

    def add_table(self, name: str, /, **columns: tuple[str, bool]) -> None:
        """Seed a table: ``add_table("user", id=("integer", False))``."""
        self.tables[name] = {
            col: IntrospectedColumn(native_type=native, nullable=nullable)
            for col, (native, nullable) in columns.items()
        }

    async def _catalog_read(self, table: str) -> None:
        if table in self.delays:
            await asyncio.sleep(self.delays[table])
        if table in self.fail_on:
            raise ConnectionError(f"connection lost while reading {table}")

    async def table_exists(self, table: str) -> bool:
        self.catalog_calls.append(("table_exists", table))
        await self._catalog_read(table)
        return table in self.tables

    async def column_info(self, table: str, column: str) -> IntrospectedColumn | None:
        self.catalog_calls.append(("column_info", table, column))
        await self._catalog_read(table)
        return self.tables.get(table, {}).get(column)

    async def create_table(self, table: str, column_specs: list[str]) -> None:
        self.statements.append(f'CREATE TABLE "{table}" ({", ".join(column_specs)})')
        self.tables[table] = dict(_parse_spec(spec) for spec in column_specs)

    async def alter_table(self, table: str, action: str) -> None:
        self.statements.append(f'ALTER TABLE "{table}" {action}')
        for fragment in self.fail_alter_on:
            if fragment in action:
                raise RuntimeError(f"cannot alter {table}: {fragment}")

        columns = self.tables[table]
        if action.startswith("ADD COLUMN "):
            name, info = _parse_spec(action[len("ADD COLUMN "):])
            columns[name] = info
            return

        match = _ALTER_RE.match(action)
        assert match, f"unparseable alter action: {action}"
        name, rest = match.group("name"), match.group("rest")
        current = columns[name]
        if rest.startswith("TYPE "):
            native = NATIVE_TYPES[rest.split()[1]]
            columns[name] = IntrospectedColumn(native_type=native, nullable=current.nullable)
        elif action.endswith("DROP NOT NULL"):
            columns[name] = IntrospectedColumn(native_type=current.native_type, nullable=True)
        elif action.endswith("SET NOT NULL"):
            columns[name] = IntrospectedColumn(native_type=current.native_type, nullable=False)

    async def select_first_row(
        self, table: str, columns: list[str]
    ) -> dict[str, Any] | None:
        rows = self.rows.get(table, [])
        if not rows:
            return None
        return {c: rows[0].get(c) for c in columns}

    async def execute(self, sql: str, params: dict | None = None) -> None:
        self.statements.append(sql)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def user_columns() -> dict:
    """``user`` entity: integer primary key and a non-nullable string."""
    return {"id": primary(), "name": column("string")}


@pytest.fixture
def make_store():
    """Factory for tests needing several independent stores."""
    return FakeStore
