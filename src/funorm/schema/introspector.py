"""Schema introspection through the ``DatabaseClient`` catalog methods.

Fetches, for each declared entity, whether its table exists and, for each
declared column only, the native type and nullability the store reports.
Undeclared columns in the store are never queried.

Entities are introspected concurrently, one task each; results are
returned keyed in model order whatever the completion order.  Store
failures are wrapped in ``StoreUnavailableError`` and abort the run,
cancelling the remaining tasks.

Usage:
    from funorm.schema.introspector import SchemaIntrospector

    introspector = SchemaIntrospector(adapter)
    actual = await introspector.introspect_all(model)
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from funorm.exceptions import StoreUnavailableError
from funorm.schema.models import EntityDefinition, EntityModel, IntrospectedTable

if TYPE_CHECKING:
    from funorm.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """Reads the actual shape of declared entities from a store.

    Nothing is cached: every call goes to the store, which stays the
    source of truth.

    Args:
        client: Store adapter implementing the ``DatabaseClient`` Protocol.
    """

    def __init__(self, client: "DatabaseClient") -> None:
        self._client = client

    async def introspect(
        self, entity_name: str, definition: EntityDefinition
    ) -> IntrospectedTable | None:
        """Introspect one entity.

        Args:
            entity_name: Table name.
            definition: Declared columns; only these are looked up.

        Returns:
            ``None`` if the table is absent, otherwise an
            ``IntrospectedTable`` mapping each declared column to its
            ``IntrospectedColumn`` (``None`` when the column is absent).

        Raises:
            StoreUnavailableError: If any store call fails.
        """
        try:
            exists = await self._client.table_exists(entity_name)
            if not exists:
                logger.debug(f"Table '{entity_name}' is absent")
                return None

            table = IntrospectedTable(name=entity_name)
            for col_name in definition.columns:
                table.columns[col_name] = await self._client.column_info(
                    entity_name, col_name
                )
        except StoreUnavailableError:
            raise
        except Exception as e:
            raise StoreUnavailableError(
                f"Failed to introspect '{entity_name}'",
                details={"entity": entity_name},
                cause=e,
            ) from e

        logger.debug(
            f"Introspected '{entity_name}': "
            f"{sum(c is not None for c in table.columns.values())}/"
            f"{len(table.columns)} declared columns present"
        )
        return table

    async def introspect_all(
        self, model: EntityModel
    ) -> dict[str, IntrospectedTable | None]:
        """Introspect every entity of *model* concurrently.

        Returns:
            Dict keyed by entity name in model order.

        Raises:
            StoreUnavailableError: On the first store failure.  The other
                entities' introspection is cancelled before it propagates.
        """
        names = list(model)
        tasks = [
            asyncio.create_task(self.introspect(name, model[name])) for name in names
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return dict(zip(names, results))
