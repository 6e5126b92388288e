"""Migration planning -- turn schema drift into corrective actions.

Each discrepancy maps to exactly one deferred action.  Planning is pure;
actions only touch the store when ``apply_migrations()`` runs them, one at
a time, through the ``DatabaseClient`` Protocol.

Usage:
    from funorm.schema.comparator import diff_model
    from funorm.schema.fix import plan_migrations, apply_migrations

    report = diff_model(model, actual)
    plan = plan_migrations(report, model)
    applied = await apply_migrations(adapter, plan)
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from funorm.exceptions import MigrationApplyFailedError
from funorm.schema.models import (
    ColumnDefinition,
    DiscrepancyKind,
    EntityDefinition,
    EntityModel,
    ReconciliationReport,
)
from funorm.schema.types import quote_ident, sql_literal, sql_type, zero_value

if TYPE_CHECKING:
    from funorm.adapters.base import DatabaseClient
    from funorm.schema.models import Discrepancy

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Column construction
# ------------------------------------------------------------------


def column_default(definition: ColumnDefinition) -> int | str | None:
    """Default value a column is created with.

    Non-nullable, non-primary columns always get one (the declared
    ``initial`` or the type's zero value) so that creating a table or
    adding a column to a populated table never fails on missing values.
    Nullable and primary columns only get a declared ``initial``.
    """
    if definition.initial is not None:
        return definition.initial
    if definition.nullable or definition.primary:
        return None
    return zero_value(definition.type)


def build_column_spec(name: str, definition: ColumnDefinition) -> str:
    """Render one column for CREATE TABLE / ADD COLUMN.

    Example:
        build_column_spec("age", column("int"))
        # '"age" INTEGER NOT NULL DEFAULT 0'
    """
    parts = [quote_ident(name), sql_type(definition.type)]

    if definition.primary:
        parts.append("PRIMARY KEY")
    elif not definition.nullable:
        parts.append("NOT NULL")

    default = column_default(definition)
    if default is not None:
        parts.append(f"DEFAULT {sql_literal(default)}")

    return " ".join(parts)


# ------------------------------------------------------------------
# Actions
# ------------------------------------------------------------------


@dataclass(frozen=True)
class CreateTable:
    """Create the entity's table with all declared columns.

    Example:
        action = CreateTable(entity="user", definition=user_definition)
        action.to_sql()
        # 'CREATE TABLE "user" ("id" INTEGER PRIMARY KEY, ...)'
    """

    entity: str
    definition: EntityDefinition

    @property
    def column_specs(self) -> list[str]:
        return [
            build_column_spec(name, col)
            for name, col in self.definition.columns.items()
        ]

    def describe(self) -> str:
        return f"CREATE TABLE {self.entity}"

    def to_sql(self) -> str:
        return (
            f"CREATE TABLE {quote_ident(self.entity)} "
            f"({', '.join(self.column_specs)})"
        )

    async def apply(self, client: "DatabaseClient") -> None:
        await client.create_table(self.entity, self.column_specs)


@dataclass(frozen=True)
class AddColumn:
    """Add a missing column, built the same way as at table creation."""

    entity: str
    column: str
    definition: ColumnDefinition

    @property
    def alter_action(self) -> str:
        return f"ADD COLUMN {build_column_spec(self.column, self.definition)}"

    def describe(self) -> str:
        return f"ALTER TABLE {self.entity} ADD COLUMN {self.column}"

    def to_sql(self) -> str:
        return f"ALTER TABLE {quote_ident(self.entity)} {self.alter_action}"

    async def apply(self, client: "DatabaseClient") -> None:
        await client.alter_table(self.entity, self.alter_action)


@dataclass(frozen=True)
class AlterColumnType:
    """Change an existing column's type in place (no drop and recreate)."""

    entity: str
    column: str
    definition: ColumnDefinition

    @property
    def alter_action(self) -> str:
        col = quote_ident(self.column)
        native = sql_type(self.definition.type)
        return f"ALTER COLUMN {col} TYPE {native} USING {col}::{native}"

    def describe(self) -> str:
        return (
            f"ALTER TABLE {self.entity} ALTER COLUMN {self.column} "
            f"TYPE {sql_type(self.definition.type)}"
        )

    def to_sql(self) -> str:
        return f"ALTER TABLE {quote_ident(self.entity)} {self.alter_action}"

    async def apply(self, client: "DatabaseClient") -> None:
        await client.alter_table(self.entity, self.alter_action)


@dataclass(frozen=True)
class AlterColumnNullability:
    """Set or drop NOT NULL on an existing column.

    Setting NOT NULL on a regular column first backfills existing NULLs
    with the column default and installs that default.
    """

    entity: str
    column: str
    definition: ColumnDefinition

    @property
    def backfill_sql(self) -> str | None:
        default = column_default(self.definition)
        if self.definition.nullable or default is None:
            return None
        col = quote_ident(self.column)
        return (
            f"UPDATE {quote_ident(self.entity)} SET {col} = {sql_literal(default)} "
            f"WHERE {col} IS NULL"
        )

    @property
    def alter_action(self) -> str:
        col = quote_ident(self.column)
        if self.definition.nullable:
            return f"ALTER COLUMN {col} DROP NOT NULL"
        default = column_default(self.definition)
        if default is None:
            return f"ALTER COLUMN {col} SET NOT NULL"
        return (
            f"ALTER COLUMN {col} SET DEFAULT {sql_literal(default)}, "
            f"ALTER COLUMN {col} SET NOT NULL"
        )

    def describe(self) -> str:
        change = "DROP NOT NULL" if self.definition.nullable else "SET NOT NULL"
        return f"ALTER TABLE {self.entity} ALTER COLUMN {self.column} {change}"

    def to_sql(self) -> str:
        alter = f"ALTER TABLE {quote_ident(self.entity)} {self.alter_action}"
        backfill = self.backfill_sql
        return f"{backfill};\n{alter}" if backfill else alter

    async def apply(self, client: "DatabaseClient") -> None:
        backfill = self.backfill_sql
        if backfill:
            await client.execute(backfill)
        await client.alter_table(self.entity, self.alter_action)


MigrationAction = Union[CreateTable, AddColumn, AlterColumnType, AlterColumnNullability]

CREATION_KINDS = frozenset({DiscrepancyKind.MISSING_TABLE, DiscrepancyKind.MISSING_COLUMN})


@dataclass
class MigrationPlan:
    """Ordered corrective actions for one reconciliation report.

    Attributes:
        actions: Actions to run, in order.  Within one entity a
            ``CreateTable`` always comes first.
        skipped: Discrepancies left unplanned because in-place alters were
            excluded.
    """

    actions: list[MigrationAction] = field(default_factory=list)
    skipped: list["Discrepancy"] = field(default_factory=list)

    @property
    def has_actions(self) -> bool:
        return bool(self.actions)

    @property
    def action_count(self) -> int:
        return len(self.actions)


# ------------------------------------------------------------------
# Plan generation
# ------------------------------------------------------------------


def plan_action(discrepancy: "Discrepancy", model: EntityModel) -> MigrationAction:
    """Map one discrepancy to its corrective action."""
    definition = model[discrepancy.entity]

    if discrepancy.kind == DiscrepancyKind.MISSING_TABLE:
        return CreateTable(entity=discrepancy.entity, definition=definition)

    col = definition.columns[discrepancy.column]
    if discrepancy.kind == DiscrepancyKind.MISSING_COLUMN:
        return AddColumn(entity=discrepancy.entity, column=discrepancy.column, definition=col)
    if discrepancy.kind == DiscrepancyKind.TYPE_MISMATCH:
        return AlterColumnType(
            entity=discrepancy.entity, column=discrepancy.column, definition=col
        )
    return AlterColumnNullability(
        entity=discrepancy.entity, column=discrepancy.column, definition=col
    )


def plan_migrations(
    report: ReconciliationReport,
    model: EntityModel,
    include_alters: bool = True,
) -> MigrationPlan:
    """Generate the corrective actions for *report*.

    Pure sync logic -- nothing is executed.

    Args:
        report: Result of ``diff_model(model, actual)``.
        model: Declared entities the report was computed from.
        include_alters: If False, type and nullability mismatches are left
            in ``plan.skipped`` instead of becoming in-place alters.

    Returns:
        ``MigrationPlan`` whose actions keep report order, except that a
        ``CreateTable`` is moved ahead of any other action on its entity.

    Example:
        plan = plan_migrations(report, model, include_alters=False)
        for action in plan.actions:
            print(action.to_sql())
    """
    plan = MigrationPlan()

    for discrepancies in report.entities.values():
        table_actions: list[MigrationAction] = []
        column_actions: list[MigrationAction] = []

        for discrepancy in discrepancies:
            if not include_alters and discrepancy.kind not in CREATION_KINDS:
                plan.skipped.append(discrepancy)
                continue

            action = plan_action(discrepancy, model)
            if isinstance(action, CreateTable):
                table_actions.append(action)
            else:
                column_actions.append(action)

        plan.actions.extend(table_actions)
        plan.actions.extend(column_actions)

    return plan


# ------------------------------------------------------------------
# Plan application
# ------------------------------------------------------------------


async def apply_migrations(
    client: "DatabaseClient",
    plan: MigrationPlan,
    dry_run: bool = False,
) -> list[MigrationAction]:
    """Apply a migration plan, one action at a time.

    Actions are never run concurrently: schema-altering statements against
    one store can conflict.  No transaction wraps the sequence.

    Args:
        client: Database adapter implementing ``DatabaseClient``.
        plan: Plan from ``plan_migrations()``.
        dry_run: If True, log what would be done and execute nothing.

    Returns:
        The actions that were applied, in order (empty on dry run).

    Raises:
        MigrationApplyFailedError: If an action fails.  Carries the
            applied actions, the failing one and those never attempted.
    """
    if dry_run:
        for action in plan.actions:
            logger.info(f"[dry run] {action.describe()}")
        return []

    applied: list[MigrationAction] = []

    for index, action in enumerate(plan.actions):
        try:
            await action.apply(client)
        except Exception as e:
            logger.error(f"Migration step failed: {action.describe()}: {e}")
            raise MigrationApplyFailedError(
                applied=applied,
                failed=action,
                remaining=plan.actions[index + 1 :],
                cause=e,
            ) from e
        logger.info(f"Applied: {action.describe()}")
        applied.append(action)

    return applied
