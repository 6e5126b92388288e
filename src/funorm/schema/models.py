"""Pydantic models for declared and introspected schema.

This module contains schema-domain models:
- Declaration models: ColumnDefinition, EntityDefinition, EntityModel,
  plus the ``column()``, ``primary()`` and ``entity()`` builders
- Introspection models: IntrospectedColumn, IntrospectedTable
- Validation models: Discrepancy variants, ReconciliationReport

Configuration models (DatabaseProfile, DatabaseConfig) live in
funorm.config.models.
"""

from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from funorm.exceptions import DuplicateEntityError, InvalidEntityError, ModelSealedError
from funorm.schema.types import ColumnType, is_assignable


# ============================================================================
# Declaration Models
# ============================================================================


class ColumnDefinition(BaseModel):
    """Declared shape of one column.

    Example:
        >>> col = ColumnDefinition(type=ColumnType.STRING)
        >>> col.nullable, col.primary, col.initial
        (False, False, None)
    """

    model_config = ConfigDict(frozen=True)

    type: ColumnType
    nullable: bool = False
    primary: bool = False
    initial: StrictInt | StrictStr | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "ColumnDefinition":
        if self.primary and self.nullable:
            raise ValueError("primary columns cannot be nullable")
        if self.initial is not None and not is_assignable(self.type, self.initial):
            raise ValueError(
                f"initial value {self.initial!r} is not assignable to {self.type.value}"
            )
        return self


def column(
    type: ColumnType | str,
    *,
    nullable: bool = False,
    primary: bool = False,
    initial: int | str | None = None,
) -> ColumnDefinition:
    """Build a column definition.

    Raises:
        InvalidEntityError: If the definition breaks a column invariant.

    Example:
        email = column("string", nullable=True)
    """
    try:
        return ColumnDefinition(
            type=type, nullable=nullable, primary=primary, initial=initial
        )
    except ValidationError as e:
        raise InvalidEntityError(f"Invalid column definition: {e}", cause=e) from e


def primary() -> ColumnDefinition:
    """Integer primary key column."""
    return column(ColumnType.INT, primary=True)


class EntityDefinition(BaseModel):
    """Ordered column definitions of one entity (table)."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: dict[str, ColumnDefinition]

    @model_validator(mode="after")
    def _check_columns(self) -> "EntityDefinition":
        if not self.name:
            raise ValueError("entity name must not be empty")
        if not self.columns:
            raise ValueError(f"entity '{self.name}' must declare at least one column")
        for col_name in self.columns:
            if not col_name or not col_name.strip():
                raise ValueError(f"entity '{self.name}' has an empty column name")
        return self

    @property
    def column_names(self) -> list[str]:
        return list(self.columns)


class EntityModel(Mapping[str, EntityDefinition]):
    """Registry of declared entities, in registration order.

    Grows one entity at a time through ``register()`` and is sealed once
    reconciliation starts.  Two models are equal when they hold the same
    entities, whatever the order they were registered in.

    Example:
        model = (
            EntityModel()
            .register("user", {"id": primary(), "name": column("string")})
            .register("product", {"id": primary(), "cost": column("int")})
        )
    """

    def __init__(self) -> None:
        self._entities: dict[str, EntityDefinition] = {}
        self._sealed = False

    def register(
        self, name: str, columns: Mapping[str, ColumnDefinition]
    ) -> "EntityModel":
        """Add one entity and return the model for chaining.

        Raises:
            DuplicateEntityError: If *name* is already registered.
            InvalidEntityError: If the entity breaks a model invariant.
            ModelSealedError: If reconciliation already sealed the model.
        """
        if self._sealed:
            raise ModelSealedError(
                f"Cannot register '{name}': model is sealed for reconciliation"
            )
        if name in self._entities:
            raise DuplicateEntityError(name)
        try:
            definition = EntityDefinition(name=name, columns=dict(columns))
        except ValidationError as e:
            raise InvalidEntityError(f"Invalid entity '{name}': {e}", cause=e) from e
        self._entities[name] = definition
        return self

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __getitem__(self, name: str) -> EntityDefinition:
        return self._entities[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityModel):
            return NotImplemented
        return self._entities == other._entities

    def __repr__(self) -> str:
        return f"EntityModel({list(self._entities)})"


def entity(
    name: str, columns: Mapping[str, ColumnDefinition]
) -> Callable[[EntityModel], EntityModel]:
    """Curried registration: returns a function registering *name* onto a model.

    Example:
        with_user = entity("user", {"id": primary(), "name": column("string")})
        with_product = entity("product", {"id": primary()})
        model = with_user(with_product(EntityModel()))
    """

    def register(model: EntityModel) -> EntityModel:
        return model.register(name, columns)

    return register


# ============================================================================
# Introspection Models
# ============================================================================


class IntrospectedColumn(BaseModel):
    """Actual state of a column as reported by the store.

    Example:
        >>> col = IntrospectedColumn(native_type="integer", nullable=False)
        >>> col.native_type
        'integer'
    """

    native_type: str
    nullable: bool


class IntrospectedTable(BaseModel):
    """Actual state of a table, restricted to the declared columns.

    A declared column missing from the store maps to ``None``.  An absent
    table is represented by ``None`` in place of the whole model.
    """

    name: str
    columns: dict[str, IntrospectedColumn | None] = Field(default_factory=dict)


# ============================================================================
# Validation Models
# ============================================================================


class DiscrepancyKind(str, Enum):
    """Kinds of schema drift."""

    MISSING_TABLE = "missing_table"
    MISSING_COLUMN = "missing_column"
    TYPE_MISMATCH = "type_mismatch"
    NULLABILITY_MISMATCH = "nullability_mismatch"


class MissingTable(BaseModel):
    """The entity's table does not exist."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[DiscrepancyKind.MISSING_TABLE] = DiscrepancyKind.MISSING_TABLE
    entity: str

    @property
    def message(self) -> str:
        return f"Table '{self.entity}' is missing"


class MissingColumn(BaseModel):
    """A declared column does not exist in the table."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[DiscrepancyKind.MISSING_COLUMN] = DiscrepancyKind.MISSING_COLUMN
    entity: str
    column: str

    @property
    def message(self) -> str:
        return f"Column '{self.column}' missing from table '{self.entity}'"


class TypeMismatch(BaseModel):
    """The column exists with a native type outside the declared type's aliases."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[DiscrepancyKind.TYPE_MISMATCH] = DiscrepancyKind.TYPE_MISMATCH
    entity: str
    column: str
    expected: ColumnType
    actual: str

    @property
    def message(self) -> str:
        return (
            f"Column '{self.entity}.{self.column}' has type '{self.actual}', "
            f"expected {self.expected.value}"
        )


class NullabilityMismatch(BaseModel):
    """The column's nullability differs from the declaration."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[DiscrepancyKind.NULLABILITY_MISMATCH] = (
        DiscrepancyKind.NULLABILITY_MISMATCH
    )
    entity: str
    column: str
    expected: bool
    actual: bool

    @property
    def message(self) -> str:
        expected = "nullable" if self.expected else "not nullable"
        actual = "nullable" if self.actual else "not nullable"
        return (
            f"Column '{self.entity}.{self.column}' is {actual}, expected {expected}"
        )


Discrepancy = Annotated[
    Union[MissingTable, MissingColumn, TypeMismatch, NullabilityMismatch],
    Field(discriminator="kind"),
]


class ReconciliationReport(BaseModel):
    """Ordered discrepancies found by one reconciliation run.

    Example:
        >>> report = ReconciliationReport()
        >>> report.valid
        True
        >>> report.format_report()
        'Schema valid'
    """

    discrepancies: list[Discrepancy] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.discrepancies

    @property
    def error_count(self) -> int:
        return len(self.discrepancies)

    @property
    def entities(self) -> dict[str, list[Discrepancy]]:
        """Discrepancies grouped by entity, in report order."""
        grouped: dict[str, list[Discrepancy]] = {}
        for discrepancy in self.discrepancies:
            grouped.setdefault(discrepancy.entity, []).append(discrepancy)
        return grouped

    def of_kind(self, *kinds: DiscrepancyKind) -> list[Discrepancy]:
        return [d for d in self.discrepancies if d.kind in kinds]

    def format_report(self) -> str:
        """Format the report as human-readable text, one line per discrepancy."""
        if self.valid:
            return "Schema valid"

        lines = [f"Schema validation failed ({self.error_count} discrepancies):"]
        for discrepancy in self.discrepancies:
            lines.append(f"  - {discrepancy.message}")
        return "\n".join(lines)
