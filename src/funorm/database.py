"""Query facade over a reconciled store.

A ``Database`` is only built from a clean or reconciled run, so every
registered entity is known to exist with its declared shape.  Rows are
decoded through a pydantic model generated from the entity definition:
the record returned by ``find_one`` has exactly the declared columns, each
holding a value of the declared type.

Usage:
    db = await connect(model, ReconciliationMode.AUTO_APPLY, database_url=url)
    user = await db.find_one("user")
    if user is None:
        print("no users yet")
"""

from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from funorm.exceptions import RecordShapeError, UnknownEntityError
from funorm.schema.models import EntityDefinition, EntityModel
from funorm.schema.reconciler import ReconciliationResult
from funorm.schema.types import python_type

if TYPE_CHECKING:
    from funorm.adapters.base import DatabaseClient


def record_model(definition: EntityDefinition) -> type[BaseModel]:
    """Build the strict record model for one entity.

    Nullable columns accept ``None``; unknown keys are rejected.
    """
    fields: dict[str, Any] = {}
    for name, col in definition.columns.items():
        value_type = python_type(col.type)
        if col.nullable:
            fields[name] = (Optional[value_type], ...)
        else:
            fields[name] = (value_type, ...)

    return create_model(
        f"{definition.name.title().replace('_', '')}Record",
        __config__=ConfigDict(strict=True, extra="forbid"),
        **fields,
    )


class Database:
    """Ready-to-query handle bound to a reconciled entity model.

    Args:
        client: Store adapter implementing ``DatabaseClient``.
        model: The reconciled entity model.
        result: The reconciliation outcome; must be ``CLEAN`` or
            ``RECONCILED``.

    Raises:
        ValueError: If *result* is not ready.
    """

    def __init__(
        self,
        client: "DatabaseClient",
        model: EntityModel,
        result: ReconciliationResult,
    ) -> None:
        if not result.ready:
            raise ValueError(
                f"Cannot query a store in state '{result.state.value}'"
            )
        self._client = client
        self.entities = model
        self.reconciliation = result
        self._records: dict[str, type[BaseModel]] = {
            name: record_model(definition) for name, definition in model.items()
        }

    async def find_one(self, entity_name: str) -> dict[str, Any] | None:
        """Fetch one row of *entity_name*.

        Returns:
            Dict with exactly the declared columns, or ``None`` if the table
            is empty.

        Raises:
            UnknownEntityError: If *entity_name* was never registered.
            RecordShapeError: If the row does not match the declaration.
        """
        if entity_name not in self.entities:
            raise UnknownEntityError(entity_name)

        definition = self.entities[entity_name]
        row = await self._client.select_first_row(
            entity_name, definition.column_names
        )
        if row is None:
            return None

        try:
            record = self._records[entity_name].model_validate(row)
        except ValidationError as e:
            raise RecordShapeError(
                f"Row from '{entity_name}' does not match its definition",
                details={"entity": entity_name},
                cause=e,
            ) from e
        return record.model_dump()

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
