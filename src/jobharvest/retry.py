from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_exponential


log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    value: Optional[T]
    attempts: int
    error: Optional[str] = None
    backoffs: List[float] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class RetryController:
    """Runs one unit of work with bounded retries.

    After the n-th failure the unit waits 2**n seconds before trying again. When
    all attempts fail the last error message is returned instead of raised.
    """

    def __init__(self, attempts: int, sleep: Callable[[float], None] = time.sleep, label: str = "") -> None:
        self.attempts = max(1, attempts)
        self.label = label
        self._sleep = sleep

    def run(self, fn: Callable[[], T]) -> RetryOutcome[T]:
        backoffs: List[float] = []
        calls = [0]

        def _attempt() -> T:
            calls[0] += 1
            return fn()

        def _before_sleep(state: RetryCallState) -> None:
            wait_s = state.next_action.sleep if state.next_action else 0.0
            backoffs.append(wait_s)
            exc = state.outcome.exception() if state.outcome else None
            log.warning(
                "%s: attempt %d/%d failed (%s), retrying in %.0fs",
                self.label or "unit",
                state.attempt_number,
                self.attempts,
                exc,
                wait_s,
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            # multiplier * 2 ** (attempt - 1) == 2 ** attempt
            wait=wait_exponential(multiplier=2, exp_base=2),
            sleep=self._sleep,
            before_sleep=_before_sleep,
            reraise=True,
        )

        try:
            value = retrying(_attempt)
        except Exception as e:
            return RetryOutcome(value=None, attempts=calls[0], error=str(e) or type(e).__name__, backoffs=backoffs)

        return RetryOutcome(value=value, attempts=calls[0], backoffs=backoffs)
