"""Abstract column types and their native aliases.

A declared ``ColumnType`` is compared against the native type reported by
the store through alias-set membership, never plain string equality.  A
store reporting ``integer`` for an ``INT`` column is therefore in sync,
while ``int4`` (or anything outside the alias set) is a type mismatch.

Usage:
    from funorm.schema.types import ColumnType, matches

    matches(ColumnType.INT, "integer")  # True
    matches(ColumnType.INT, "int4")     # False
"""

from enum import Enum


class ColumnType(str, Enum):
    """Column types a caller can declare."""

    INT = "int"
    STRING = "string"


NATIVE_ALIASES: dict[ColumnType, frozenset[str]] = {
    ColumnType.INT: frozenset({"int", "integer"}),
    ColumnType.STRING: frozenset({"string", "character varying"}),
}

# DDL type emitted when creating or altering a column
SQL_TYPES: dict[ColumnType, str] = {
    ColumnType.INT: "INTEGER",
    ColumnType.STRING: "VARCHAR",
}

ZERO_VALUES: dict[ColumnType, int | str] = {
    ColumnType.INT: 0,
    ColumnType.STRING: "",
}

PYTHON_TYPES: dict[ColumnType, type] = {
    ColumnType.INT: int,
    ColumnType.STRING: str,
}


def aliases_for(column_type: ColumnType) -> frozenset[str]:
    """Return the native type names equivalent to *column_type*."""
    return NATIVE_ALIASES[column_type]


def matches(column_type: ColumnType, native_type: str) -> bool:
    """Check whether a native type reported by the store satisfies *column_type*.

    Comparison is case-insensitive and ignores surrounding whitespace.
    Unknown native types never match.

    Examples:
        >>> matches(ColumnType.STRING, "character varying")
        True
        >>> matches(ColumnType.STRING, "text")
        False
    """
    return native_type.strip().lower() in NATIVE_ALIASES[column_type]


def sql_type(column_type: ColumnType) -> str:
    """DDL type name for *column_type*."""
    return SQL_TYPES[column_type]


def zero_value(column_type: ColumnType) -> int | str:
    """Default injected into non-nullable columns that declare no initial value."""
    return ZERO_VALUES[column_type]


def python_type(column_type: ColumnType) -> type:
    return PYTHON_TYPES[column_type]


def is_assignable(column_type: ColumnType, value: object) -> bool:
    """Check whether *value* can be stored in a column of *column_type*.

    ``bool`` is rejected for ``INT`` even though it subclasses ``int``.
    """
    if isinstance(value, bool):
        return False
    return isinstance(value, PYTHON_TYPES[column_type])


def sql_literal(value: int | str) -> str:
    """Render a default value as a SQL literal."""
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    return str(value)


def quote_ident(name: str) -> str:
    """Double-quote an identifier (``user`` is reserved in PostgreSQL)."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'
