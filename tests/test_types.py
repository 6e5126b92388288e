"""Tests for column types, native aliases and SQL rendering helpers."""

import pytest

from funorm.schema.types import (
    ColumnType,
    aliases_for,
    is_assignable,
    matches,
    python_type,
    quote_ident,
    sql_literal,
    sql_type,
    zero_value,
)


class TestMatches:
    """Alias-set membership, not string equality."""

    @pytest.mark.parametrize("native", ["int", "integer", "INTEGER", " integer "])
    def test_int_aliases(self, native):
        assert matches(ColumnType.INT, native)

    @pytest.mark.parametrize("native", ["string", "character varying", "Character Varying"])
    def test_string_aliases(self, native):
        assert matches(ColumnType.STRING, native)

    @pytest.mark.parametrize("native", ["int4", "bigint", "text", "varchar"])
    def test_unknown_natives_never_match(self, native):
        """Natives outside both alias sets mismatch every declared type."""
        assert not matches(ColumnType.INT, native)
        assert not matches(ColumnType.STRING, native)

    def test_types_do_not_cross_match(self):
        assert not matches(ColumnType.INT, "character varying")
        assert not matches(ColumnType.STRING, "integer")

    def test_aliases_for(self):
        assert aliases_for(ColumnType.INT) == frozenset({"int", "integer"})


class TestTypeTables:

    def test_sql_types(self):
        assert sql_type(ColumnType.INT) == "INTEGER"
        assert sql_type(ColumnType.STRING) == "VARCHAR"

    def test_zero_values(self):
        assert zero_value(ColumnType.INT) == 0
        assert zero_value(ColumnType.STRING) == ""

    def test_python_types(self):
        assert python_type(ColumnType.INT) is int
        assert python_type(ColumnType.STRING) is str

    def test_value_from_string(self):
        assert ColumnType("int") is ColumnType.INT


class TestAssignable:

    def test_matching_values(self):
        assert is_assignable(ColumnType.INT, 5)
        assert is_assignable(ColumnType.STRING, "x")

    def test_wrong_types(self):
        assert not is_assignable(ColumnType.INT, "5")
        assert not is_assignable(ColumnType.STRING, 5)

    def test_bool_is_not_an_int(self):
        assert not is_assignable(ColumnType.INT, True)


class TestSqlRendering:

    def test_string_literal_escapes_quotes(self):
        assert sql_literal("O'Brien") == "'O''Brien'"

    def test_empty_string_literal(self):
        assert sql_literal("") == "''"

    def test_int_literal(self):
        assert sql_literal(-3) == "-3"

    def test_quote_reserved_word(self):
        assert quote_ident("user") == '"user"'

    def test_quote_escapes_double_quotes(self):
        assert quote_ident('we"ird') == '"we""ird"'
