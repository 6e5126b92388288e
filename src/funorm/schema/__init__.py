"""Schema declaration, introspection, comparison and reconciliation.

Provides the entity model (``EntityModel``, ``column``, ``primary``,
``entity``), live introspection (``SchemaIntrospector``), comparison
(``diff``, ``diff_model``), migration planning (``plan_migrations``,
``apply_migrations``) and the ``Reconciler`` that ties them together.

Usage:
    from funorm.schema import EntityModel, column, primary
    from funorm.schema import Reconciler, ReconciliationMode
"""

from funorm.schema.comparator import diff, diff_model
from funorm.schema.fix import (
    AddColumn,
    AlterColumnNullability,
    AlterColumnType,
    CreateTable,
    MigrationAction,
    MigrationPlan,
    apply_migrations,
    build_column_spec,
    plan_migrations,
)
from funorm.schema.introspector import SchemaIntrospector
from funorm.schema.models import (
    ColumnDefinition,
    Discrepancy,
    DiscrepancyKind,
    EntityDefinition,
    EntityModel,
    IntrospectedColumn,
    IntrospectedTable,
    MissingColumn,
    MissingTable,
    NullabilityMismatch,
    ReconciliationReport,
    TypeMismatch,
    column,
    entity,
    primary,
)
from funorm.schema.reconciler import (
    Reconciler,
    ReconciliationMode,
    ReconciliationResult,
    ReconciliationState,
)
from funorm.schema.types import ColumnType, aliases_for, matches

__all__ = [
    # Types
    "ColumnType",
    "aliases_for",
    "matches",
    # Declaration
    "ColumnDefinition",
    "EntityDefinition",
    "EntityModel",
    "column",
    "primary",
    "entity",
    # Introspection
    "SchemaIntrospector",
    "IntrospectedColumn",
    "IntrospectedTable",
    # Comparison
    "diff",
    "diff_model",
    "Discrepancy",
    "DiscrepancyKind",
    "MissingTable",
    "MissingColumn",
    "TypeMismatch",
    "NullabilityMismatch",
    "ReconciliationReport",
    # Migration
    "MigrationAction",
    "MigrationPlan",
    "CreateTable",
    "AddColumn",
    "AlterColumnType",
    "AlterColumnNullability",
    "build_column_spec",
    "plan_migrations",
    "apply_migrations",
    # Reconciliation
    "Reconciler",
    "ReconciliationMode",
    "ReconciliationResult",
    "ReconciliationState",
]
