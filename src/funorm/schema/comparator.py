"""Schema comparison of declared entities against introspected state.

Pure logic -- no I/O, no database connections.

Usage:
    from funorm.schema.comparator import diff_model
    from funorm.schema.introspector import SchemaIntrospector

    actual = await SchemaIntrospector(adapter).introspect_all(model)
    report = diff_model(model, actual)
    if not report.valid:
        print(report.format_report())
"""

from collections.abc import Mapping

from funorm.schema.models import (
    Discrepancy,
    EntityDefinition,
    EntityModel,
    IntrospectedTable,
    MissingColumn,
    MissingTable,
    NullabilityMismatch,
    ReconciliationReport,
    TypeMismatch,
)
from funorm.schema.types import matches


def diff(
    entity_name: str,
    declared: EntityDefinition,
    actual: IntrospectedTable | None,
) -> list[Discrepancy]:
    """Compare one declared entity against its introspected table.

    - Absent table: exactly one ``MissingTable``, no column checks
    - Absent column: ``MissingColumn``
    - Native type outside the declared type's aliases: ``TypeMismatch``
    - Nullability differs: ``NullabilityMismatch`` (reported alongside a
      ``TypeMismatch`` for the same column, not instead of it)

    Discrepancies follow declared column order.

    Examples:
        >>> from funorm.schema.models import column, IntrospectedColumn
        >>> declared = EntityDefinition(name="user", columns={"id": column("int")})
        >>> diff("user", declared, None)[0].message
        "Table 'user' is missing"

        >>> actual = IntrospectedTable(
        ...     name="user",
        ...     columns={"id": IntrospectedColumn(native_type="integer", nullable=False)},
        ... )
        >>> diff("user", declared, actual)
        []
    """
    if actual is None:
        return [MissingTable(entity=entity_name)]

    discrepancies: list[Discrepancy] = []

    for col_name, definition in declared.columns.items():
        introspected = actual.columns.get(col_name)

        if introspected is None:
            discrepancies.append(MissingColumn(entity=entity_name, column=col_name))
            continue

        if not matches(definition.type, introspected.native_type):
            discrepancies.append(
                TypeMismatch(
                    entity=entity_name,
                    column=col_name,
                    expected=definition.type,
                    actual=introspected.native_type,
                )
            )

        if definition.nullable != introspected.nullable:
            discrepancies.append(
                NullabilityMismatch(
                    entity=entity_name,
                    column=col_name,
                    expected=definition.nullable,
                    actual=introspected.nullable,
                )
            )

    return discrepancies


def diff_model(
    model: EntityModel,
    actual: Mapping[str, IntrospectedTable | None],
) -> ReconciliationReport:
    """Compare every entity of *model* and aggregate one report.

    Entities are visited in model order, so the report does not depend on
    the order in which *actual* was filled.

    Args:
        model: Declared entities.
        actual: Introspected tables keyed by entity name, as returned by
            ``SchemaIntrospector.introspect_all()``.  A missing key is
            treated as an absent table.
    """
    discrepancies: list[Discrepancy] = []
    for entity_name, declared in model.items():
        discrepancies.extend(diff(entity_name, declared, actual.get(entity_name)))
    return ReconciliationReport(discrepancies=discrepancies)
