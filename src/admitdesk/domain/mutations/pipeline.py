"""One mutation call: side effects, strategy chain, verification, report."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from admitdesk.domain.model import TERMINAL_STATES, MutationState

from .capabilities import CapabilityRegistry
from .executor import AttemptRecord, StrategyChainExecutor
from .reporting import OutcomeReporter, UserNotification
from .side_effects import SideEffectContext, SideEffectPlan, SideEffectSequencer
from .verification import VerifiedResult, verify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from admitdesk.domain.model import MutationIntent
    from admitdesk.domain.ports import Backend

    from .classification import ClassifiedError
    from .side_effects import SideEffectFailure
    from .strategies import Strategy

log = getLogger(__name__)

NotificationSink = Callable[[UserNotification], None]


def _discard(_notification: UserNotification) -> None:
    return None


@dataclass(slots=True)
class MutationOutcome[TIntent: MutationIntent]:
    """Typed result handed back to the caller for every mutation call.

    ``state`` is always terminal: matched, unverifiable, aborted or
    chain_exhausted_with_error. Callers should only apply local state changes
    for ``matched``, and should always show ``notification``.
    """

    intent: TIntent
    state: MutationState
    notification: UserNotification
    attempts: list[AttemptRecord] = field(default_factory=list[AttemptRecord])
    strategy: str | None = None
    verified: VerifiedResult | None = None
    error: ClassifiedError | None = None
    side_effect_failure: SideEffectFailure | None = None
    history: list[MutationState] = field(default_factory=list[MutationState])

    @property
    def matched(self) -> bool:
        return self.state is MutationState.MATCHED

    @property
    def persisted_value(self) -> str | None:
        return self.verified.persisted_value if self.verified is not None else None


@dataclass(slots=True)
class MutationPipeline:
    """Runs the state machine of a single mutation call.

    ``idle -> running_side_effects -> {aborted | running_strategies} ->
    {strategy_succeeded -> verifying -> {matched | unverifiable} |
    chain_exhausted_with_error} -> reported``. Nothing is retried
    automatically; a retry is a fresh call.
    """

    backend: Backend
    registry: CapabilityRegistry = field(default_factory=CapabilityRegistry)
    reporter: OutcomeReporter = field(default_factory=OutcomeReporter)
    sink: NotificationSink = _discard

    async def run[TIntent: MutationIntent](
        self,
        intent: TIntent,
        strategies: Sequence[Strategy[TIntent]],
        *,
        plan: SideEffectPlan | None = None,
        context: SideEffectContext | None = None,
    ) -> MutationOutcome[TIntent]:
        history: list[MutationState] = [MutationState.IDLE]

        if plan:
            history.append(MutationState.RUNNING_SIDE_EFFECTS)
            effect_context = context or SideEffectContext(application_id=intent.target_id)
            failure = await SideEffectSequencer(self.backend).run(plan, effect_context)
            if failure is not None:
                history.append(MutationState.ABORTED)
                return self._finish(
                    MutationOutcome(
                        intent=intent,
                        state=MutationState.ABORTED,
                        notification=self.reporter.aborted(intent, failure),
                        error=failure.error,
                        side_effect_failure=failure,
                        history=history,
                    )
                )
            self.sink(self.reporter.attachment_uploaded())

        history.append(MutationState.RUNNING_STRATEGIES)
        executor = StrategyChainExecutor(self.backend, self.registry)
        chain = await executor.execute(intent, strategies)

        if not chain.succeeded:
            history.append(MutationState.CHAIN_EXHAUSTED_WITH_ERROR)
            error = chain.error
            if error is None:
                raise RuntimeError(f"{intent.name}: chain ended without a winner or an error")
            return self._finish(
                MutationOutcome(
                    intent=intent,
                    state=MutationState.CHAIN_EXHAUSTED_WITH_ERROR,
                    notification=self.reporter.failure(intent, error),
                    attempts=chain.attempts,
                    error=error,
                    history=history,
                )
            )

        history.extend((MutationState.STRATEGY_SUCCEEDED, MutationState.VERIFYING))
        verified = verify(intent.requested_value, chain.response, field=intent.verify_field)
        if verified.unverifiable:
            state = MutationState.UNVERIFIABLE
            notification = self.reporter.unverifiable(intent)
        else:
            state = MutationState.MATCHED
            notification = self.reporter.success(intent, verified)
        history.append(state)
        return self._finish(
            MutationOutcome(
                intent=intent,
                state=state,
                notification=notification,
                attempts=chain.attempts,
                strategy=chain.winner,
                verified=verified,
                history=history,
            )
        )

    def reject[TIntent: MutationIntent](
        self, intent: TIntent, error: ClassifiedError
    ) -> MutationOutcome[TIntent]:
        """Abort before any backend call, e.g. when caller context is missing."""

        log.warning("%s rejected before any backend call: %s", intent.name, error.raw_message)
        return self._finish(
            MutationOutcome(
                intent=intent,
                state=MutationState.ABORTED,
                notification=self.reporter.failure(intent, error),
                error=error,
                history=[MutationState.IDLE, MutationState.ABORTED],
            )
        )

    def _finish[TIntent: MutationIntent](
        self, outcome: MutationOutcome[TIntent]
    ) -> MutationOutcome[TIntent]:
        if outcome.state not in TERMINAL_STATES:
            raise RuntimeError(f"Mutation ended in non-terminal state {outcome.state}")
        log.info(
            "%s on %s finished as %s via %s",
            outcome.intent.name,
            outcome.intent.target_id,
            outcome.state,
            outcome.strategy or "-",
        )
        self.sink(outcome.notification)
        outcome.history.append(MutationState.REPORTED)
        return outcome
