"""Exception classes for funorm.

Every error raised by the reconciliation engine derives from
``FunormError``.  Discrepancies are not errors by themselves: they only
surface as ``ValidationFailedError`` in strict mode or as
``MigrationRejectedError`` when an operator declines the migration plan.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from funorm.schema.fix import MigrationAction
    from funorm.schema.models import ReconciliationReport


class FunormError(Exception):
    """Base exception for all funorm errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


# ============================================================================
# Model construction
# ============================================================================


class InvalidEntityError(FunormError, ValueError):
    """Raised when a column or entity definition breaks a model invariant."""


class DuplicateEntityError(FunormError):
    """Raised when an entity name is registered twice."""

    def __init__(self, entity: str) -> None:
        super().__init__(f"Entity '{entity}' is already registered")
        self.entity = entity


class ModelSealedError(FunormError):
    """Raised when registering onto a model that reconciliation has sealed."""


# ============================================================================
# Store I/O
# ============================================================================


class StoreUnavailableError(FunormError):
    """Raised when the store fails during introspection.

    Fatal for the reconciliation run.  Never retried.
    """


# ============================================================================
# Reconciliation outcomes
# ============================================================================


class ValidationFailedError(FunormError):
    """Raised in strict mode when the reconciliation report is not empty.

    The message lists every discrepancy, one per line.
    """

    def __init__(self, report: "ReconciliationReport") -> None:
        super().__init__(report.format_report())
        self.report = report


class MigrationRejectedError(FunormError):
    """Raised when the operator declines the proposed migrations."""

    def __init__(self, report: "ReconciliationReport", answer: str = "") -> None:
        super().__init__(
            f"Migration rejected ({report.error_count} discrepancies left unresolved)",
            details={"answer": answer} if answer else None,
        )
        self.report = report
        self.answer = answer


class MigrationApplyFailedError(FunormError):
    """Raised when a corrective action fails part way through a migration.

    No transaction wraps the sequence, so ``applied`` actions stay applied.
    """

    def __init__(
        self,
        applied: list["MigrationAction"],
        failed: "MigrationAction",
        remaining: list["MigrationAction"],
        cause: Exception,
    ) -> None:
        super().__init__(
            f"Migration failed at: {failed.describe()}",
            details={"applied": len(applied), "remaining": len(remaining)},
            cause=cause,
        )
        self.applied = applied
        self.failed = failed
        self.remaining = remaining


# ============================================================================
# Query facade
# ============================================================================


class UnknownEntityError(FunormError, KeyError):
    """Raised when querying an entity that was never registered."""

    def __init__(self, entity: str) -> None:
        super().__init__(f"Unknown entity '{entity}'")
        self.entity = entity

    def __str__(self) -> str:
        return FunormError.__str__(self)


class RecordShapeError(FunormError):
    """Raised when a fetched row does not match its entity definition."""
