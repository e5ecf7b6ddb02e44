"""Ordered fallback across candidate strategies for one intent."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from admitdesk.domain.model import AttemptOutcome
from admitdesk.domain.ports import BackendError

from .capabilities import CapabilityRegistry, missing_capability_error
from .classification import ClassifiedError, classify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from admitdesk.domain.model import MutationIntent
    from admitdesk.domain.ports import Backend

    from .strategies import Strategy

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    strategy_name: str
    outcome: AttemptOutcome


@dataclass(slots=True)
class ChainResult:
    """Outcome of one chain run: a winning response or a classified error."""

    attempts: list[AttemptRecord] = field(default_factory=list[AttemptRecord])
    winner: str | None = None
    response: object = None
    error: ClassifiedError | None = None

    @property
    def succeeded(self) -> bool:
        return self.winner is not None

    @property
    def invoked(self) -> list[str]:
        """Names of strategies that actually reached the backend, in order."""

        return [
            attempt.strategy_name
            for attempt in self.attempts
            if attempt.outcome is not AttemptOutcome.SKIPPED
        ]


@dataclass(slots=True)
class StrategyChainExecutor:
    """Try strategies strictly in order until one wins or one fails for real.

    Capability-missing failures fall through to the next strategy and are
    remembered in the registry. Any other classified failure is authoritative
    and ends the chain; a permission or validation error is never a reason to
    try a weaker fallback.
    """

    backend: Backend
    registry: CapabilityRegistry = field(default_factory=CapabilityRegistry)

    async def execute[TIntent: MutationIntent](
        self,
        intent: TIntent,
        strategies: Sequence[Strategy[TIntent]],
    ) -> ChainResult:
        if not strategies:
            raise ValueError(f"No strategies configured for {intent.name}")

        result = ChainResult()
        last_missing: ClassifiedError | None = None

        for strategy in strategies:
            name = strategy.name
            if self.registry.is_known_unavailable(name):
                log.debug("%s: skipping %s (known unavailable)", intent.name, name)
                result.attempts.append(AttemptRecord(name, AttemptOutcome.SKIPPED))
                last_missing = classify(missing_capability_error(name))
                continue

            log.debug("%s: trying %s for %s", intent.name, name, intent.target_id)
            try:
                response = await strategy(intent, self.backend)
            except BackendError as exc:
                classified = classify(exc)
                if classified.is_capability_missing:
                    log.info("%s: %s unavailable, falling through", intent.name, name)
                    result.attempts.append(
                        AttemptRecord(name, AttemptOutcome.CAPABILITY_MISSING)
                    )
                    self.registry.mark_unavailable(name, classified)
                    last_missing = classified
                    continue
                log.warning(
                    "%s: %s failed with %s (%s)",
                    intent.name,
                    name,
                    classified.kind,
                    exc.describe(),
                )
                result.attempts.append(AttemptRecord(name, AttemptOutcome.FAILED))
                result.error = classified
                return result

            log.info("%s: %s succeeded for %s", intent.name, name, intent.target_id)
            result.attempts.append(AttemptRecord(name, AttemptOutcome.SUCCEEDED))
            result.winner = name
            result.response = response
            return result

        log.warning("%s: every strategy is unavailable for %s", intent.name, intent.target_id)
        result.error = last_missing
        return result
