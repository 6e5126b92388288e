"""Schema reconciliation core logic for funorm.

Coordinates introspection, comparison and migration so that the store's
schema matches the declared entity model before queries run.

State machine::

    IDLE -> INTROSPECTING -> DIFFING -> CLEAN
                                     -> PENDING_DECISION -> APPLYING -> RECONCILED
                                                         -> REJECTED
                                     -> APPLYING -> RECONCILED
                                     -> FAILED

Usage:
    reconciler = Reconciler(adapter, model, ReconciliationMode.STRICT)
    result = await reconciler.reconcile()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from funorm.exceptions import (
    MigrationApplyFailedError,
    MigrationRejectedError,
    StoreUnavailableError,
    ValidationFailedError,
)
from funorm.prompt import Prompt, is_affirmative
from funorm.schema.comparator import diff_model
from funorm.schema.fix import (
    MigrationAction,
    MigrationPlan,
    apply_migrations,
    plan_migrations,
)
from funorm.schema.introspector import SchemaIntrospector
from funorm.schema.models import EntityModel, ReconciliationReport

if TYPE_CHECKING:
    from funorm.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)


class ReconciliationMode(str, Enum):
    """What to do with a non-empty report.

    - ``AUTO_CREATE``: create missing tables and columns, leave type and
      nullability mismatches untouched (reported as warnings).
    - ``AUTO_APPLY``: apply every corrective action, including in-place
      type and nullability alters.  Destructive; no confirmation.
    - ``INTERACTIVE_CONFIRM``: show the report, ask once, apply every
      action on an explicit yes.
    - ``STRICT``: apply nothing, fail with ``ValidationFailedError``.
    """

    AUTO_CREATE = "auto_create"
    AUTO_APPLY = "auto_apply"
    INTERACTIVE_CONFIRM = "interactive_confirm"
    STRICT = "strict"


class ReconciliationState(str, Enum):
    """Reconciler lifecycle states."""

    IDLE = "idle"
    INTROSPECTING = "introspecting"
    DIFFING = "diffing"
    CLEAN = "clean"
    PENDING_DECISION = "pending_decision"
    APPLYING = "applying"
    RECONCILED = "reconciled"
    REJECTED = "rejected"
    FAILED = "failed"


READY_STATES = frozenset({ReconciliationState.CLEAN, ReconciliationState.RECONCILED})


@dataclass
class ReconciliationResult:
    """Outcome of a successful reconciliation run."""

    state: ReconciliationState
    mode: ReconciliationMode
    report: ReconciliationReport
    plan: MigrationPlan = field(default_factory=MigrationPlan)
    applied: list[MigrationAction] = field(default_factory=list)
    execution_time_ms: float = 0.0

    @property
    def ready(self) -> bool:
        """True if a query handle may be built from this result."""
        return self.state in READY_STATES

    @property
    def unresolved(self) -> int:
        """Discrepancies left in place (alters skipped under AUTO_CREATE)."""
        return len(self.plan.skipped)


def build_question(report: ReconciliationReport, plan: MigrationPlan) -> str:
    """Render the full report and plan, followed by the yes/no question."""
    lines = [report.format_report(), "", "Planned migrations:"]
    for step, action in enumerate(plan.actions, start=1):
        lines.append(f"  {step}. {action.describe()}")
    lines.append("")
    lines.append(f"Apply {plan.action_count} migration(s)? [y/N]: ")
    return "\n".join(lines)


class Reconciler:
    """Schema reconciliation engine.

    Drives introspection of every declared entity (concurrently), diffs
    the result against the model, then resolves the report according to
    the configured ``ReconciliationMode``.

    Args:
        client: Store adapter implementing ``DatabaseClient``.
        model: Declared entities.  Sealed when ``reconcile()`` starts.
        mode: Resolution policy.
        prompt: Decision prompt, required for ``INTERACTIVE_CONFIRM``.

    Raises:
        ValueError: If ``INTERACTIVE_CONFIRM`` is requested without a prompt.
    """

    def __init__(
        self,
        client: "DatabaseClient",
        model: EntityModel,
        mode: ReconciliationMode = ReconciliationMode.STRICT,
        prompt: Prompt | None = None,
    ) -> None:
        mode = ReconciliationMode(mode)
        if mode == ReconciliationMode.INTERACTIVE_CONFIRM and prompt is None:
            raise ValueError("INTERACTIVE_CONFIRM mode requires a prompt")

        self.client = client
        self.model = model
        self.mode = mode
        self.prompt = prompt
        self.introspector = SchemaIntrospector(client)

        self.state = ReconciliationState.IDLE
        self.report: ReconciliationReport | None = None

    def _transition(self, state: ReconciliationState) -> None:
        logger.debug(f"Reconciliation state: {self.state.value} -> {state.value}")
        self.state = state

    async def reconcile(self) -> ReconciliationResult:
        """Run one reconciliation pass.

        Returns:
            ``ReconciliationResult`` in state ``CLEAN`` or ``RECONCILED``.

        Raises:
            StoreUnavailableError: If introspection fails (state ``FAILED``).
            ValidationFailedError: In ``STRICT`` mode with drift (``FAILED``).
            MigrationRejectedError: If the operator declines (``REJECTED``).
            MigrationApplyFailedError: If an action fails (``FAILED``).
        """
        start_time = asyncio.get_running_loop().time()
        self.state = ReconciliationState.IDLE
        self.report = None
        self.model.seal()

        logger.info(
            f"Starting reconciliation of {len(self.model)} entities "
            f"(mode={self.mode.value})"
        )

        self._transition(ReconciliationState.INTROSPECTING)
        try:
            actual = await self.introspector.introspect_all(self.model)
        except StoreUnavailableError as e:
            self._transition(ReconciliationState.FAILED)
            logger.error(f"Reconciliation aborted: {e}")
            raise

        self._transition(ReconciliationState.DIFFING)
        report = diff_model(self.model, actual)
        self.report = report

        result = ReconciliationResult(
            state=ReconciliationState.CLEAN, mode=self.mode, report=report
        )

        if report.valid:
            self._transition(ReconciliationState.CLEAN)
            logger.info("Schema is in sync, no changes needed")
            return self._finish(result, start_time)

        logger.info(f"Found {report.error_count} discrepancies")

        if self.mode == ReconciliationMode.STRICT:
            self._transition(ReconciliationState.FAILED)
            raise ValidationFailedError(report)

        result.plan = plan_migrations(
            report,
            self.model,
            include_alters=self.mode != ReconciliationMode.AUTO_CREATE,
        )

        if self.mode == ReconciliationMode.INTERACTIVE_CONFIRM:
            self._transition(ReconciliationState.PENDING_DECISION)
            answer = await self.prompt.ask(build_question(report, result.plan))
            if not is_affirmative(answer):
                self._transition(ReconciliationState.REJECTED)
                logger.warning("Migration rejected by operator")
                raise MigrationRejectedError(report, answer)

        for discrepancy in result.plan.skipped:
            logger.warning(f"Left unresolved: {discrepancy.message}")

        self._transition(ReconciliationState.APPLYING)
        try:
            result.applied = await apply_migrations(self.client, result.plan)
        except MigrationApplyFailedError:
            self._transition(ReconciliationState.FAILED)
            raise

        self._transition(ReconciliationState.RECONCILED)
        result.state = ReconciliationState.RECONCILED
        return self._finish(result, start_time)

    def _finish(
        self, result: ReconciliationResult, start_time: float
    ) -> ReconciliationResult:
        result.execution_time_ms = (
            asyncio.get_running_loop().time() - start_time
        ) * 1000
        logger.info(
            f"Reconciliation completed: {result.state.value} "
            f"({len(result.applied)} applied, {result.execution_time_ms:.1f}ms)"
        )
        return result
