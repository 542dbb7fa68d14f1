"""Fixed-interval polling on observed state."""

import logging
import time
from typing import Callable, TypeVar, Union

from tenacity import RetryCallState, Retrying, retry_if_result, stop_never

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], None]
Interval = Union[float, Callable[[T], float]]


def poll_until(
    check: Callable[[], T],
    done: Callable[[T], bool],
    interval: Interval,
    sleep: Sleep = time.sleep,
    description: str = "condition",
) -> T:
    """
    Call ``check`` until ``done`` accepts its result.

    There is no deadline and no attempt limit. Exceptions raised by ``check``
    are never retried; they propagate to the caller unchanged.

    Args:
        check: Observes the current state
        done: Returns True when the observed state is final
        interval: Seconds to sleep between checks, or a function of the last
            observed state returning it (0 re-checks immediately)
        sleep: Sleep function, injectable for tests
        description: Used in debug logs

    Returns:
        The first observed state accepted by ``done``
    """

    def wait(retry_state: RetryCallState) -> float:
        if callable(interval):
            return interval(retry_state.outcome.result())
        return interval

    def log_attempt(retry_state: RetryCallState) -> None:
        logger.debug(
            f"Still waiting for {description} "
            f"(attempt {retry_state.attempt_number}, "
            f"next check in {retry_state.next_action.sleep:.0f}s)"
        )

    retrying = Retrying(
        retry=retry_if_result(lambda state: not done(state)),
        wait=wait,
        stop=stop_never,
        sleep=_skip_zero(sleep),
        before_sleep=log_attempt,
        reraise=True,
    )
    return retrying(check)


def _skip_zero(sleep: Sleep) -> Sleep:
    def _sleep(seconds: float) -> None:
        if seconds > 0:
            sleep(seconds)

    return _sleep
