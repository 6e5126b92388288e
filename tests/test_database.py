"""Tests for the Database query facade."""

import pytest

from funorm.database import Database, record_model
from funorm.exceptions import RecordShapeError, UnknownEntityError
from funorm.schema.models import EntityModel, ReconciliationReport, column, primary
from funorm.schema.reconciler import (
    Reconciler,
    ReconciliationMode,
    ReconciliationResult,
    ReconciliationState,
)


@pytest.fixture
def model(user_columns):
    return EntityModel().register(
        "user", {**user_columns, "email": column("string", nullable=True)}
    )


@pytest.fixture
async def db(store, model):
    result = await Reconciler(store, model, ReconciliationMode.AUTO_APPLY).reconcile()
    return Database(store, model, result)


class TestRecordModel:

    def test_declared_fields(self, model):
        record = record_model(model["user"])
        assert list(record.model_fields) == ["id", "name", "email"]

    def test_nullable_accepts_none(self, model):
        record = record_model(model["user"])
        assert record(id=1, name="a", email=None).email is None

    def test_strict_types(self, model):
        record = record_model(model["user"])
        with pytest.raises(Exception):
            record(id="1", name="a", email=None)


class TestConstruction:

    def test_refuses_unready_result(self, store, model):
        result = ReconciliationResult(
            state=ReconciliationState.FAILED,
            mode=ReconciliationMode.STRICT,
            report=ReconciliationReport(),
        )
        with pytest.raises(ValueError, match="failed"):
            Database(store, model, result)


class TestFindOne:

    async def test_empty_table(self, db):
        """A freshly created table yields None."""
        assert await db.find_one("user") is None

    async def test_returns_declared_columns_only(self, db, store):
        store.rows["user"] = [{"id": 7, "name": "ada", "email": None, "legacy": "x"}]

        user = await db.find_one("user")

        assert user == {"id": 7, "name": "ada", "email": None}

    async def test_unknown_entity(self, db):
        with pytest.raises(UnknownEntityError, match="Unknown entity 'ghost'"):
            await db.find_one("ghost")

    async def test_unknown_entity_is_key_error(self, db):
        with pytest.raises(KeyError):
            await db.find_one("ghost")

    async def test_row_shape_mismatch(self, db, store):
        store.rows["user"] = [{"id": 7, "name": None, "email": None}]

        with pytest.raises(RecordShapeError) as exc_info:
            await db.find_one("user")

        assert exc_info.value.details == {"entity": "user"}

    async def test_reconciliation_is_exposed(self, db):
        assert db.reconciliation.state is ReconciliationState.RECONCILED


class TestLifecycle:

    async def test_context_manager_closes(self, db, store):
        async with db as handle:
            assert handle is db
        assert store.closed
