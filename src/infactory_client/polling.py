"""
Polling with capped backoff, timeout and cooperative cancellation.

Two entry points share one state machine:

- ``poll`` returns the first accepted result and raises on timeout,
  cancellation, a detected error, or a probe failure.
- ``poll_with_status`` wraps ``poll`` for callers that want a
  ``(succeeded, label)`` tuple instead of exceptions.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Tuple, TypeVar

from .errors import PollingCancelledError, PollingTimeoutError, ValidationError

logger = logging.getLogger("infactory_client.polling")

T = TypeVar("T")


@dataclass
class PollingOptions(Generic[T]):
    """Polling options"""

    timeout: float = 300.0
    """Maximum time to wait before timing out (seconds). Default: 300"""

    initial_poll_interval: float = 1.0
    """Wait after the first unsuccessful probe (seconds). Default: 1"""

    max_poll_interval: float = 30.0
    """Upper bound for the wait between probes (seconds). Default: 30"""

    backoff_multiplier: float = 1.5
    """Factor applied to the wait after each unsuccessful probe. Default: 1.5"""

    cancel_event: Optional[asyncio.Event] = None
    """Setting this event cancels polling, including an in-flight probe"""

    end_condition: Optional[Callable[[T], bool]] = None
    """Returns True when a result ends polling. None accepts the first result"""

    error_check: Optional[Callable[[T], Optional[BaseException]]] = None
    """Returns an exception to raise when a result signals failure"""

    debug: bool = False
    """Log every attempt at INFO instead of DEBUG"""


@dataclass
class PollState:
    """Progress of a single ``poll`` call. Never shared between calls."""

    attempt: int = 0
    elapsed_seconds: float = 0.0
    next_interval_seconds: float = 0.0
    cancelled: bool = False


def _validate_options(options: PollingOptions) -> None:
    if options.timeout <= 0:
        raise ValidationError(f"Polling timeout must be positive, got {options.timeout}")
    if options.initial_poll_interval < 0 or options.max_poll_interval < 0:
        raise ValidationError("Polling intervals must not be negative")
    if options.backoff_multiplier < 1:
        raise ValidationError(
            f"Backoff multiplier must be at least 1, got {options.backoff_multiplier}"
        )


async def _race_cancel(
    awaitable: Awaitable[Any],
    cancel_event: Optional[asyncio.Event],
    timeout: Optional[float],
) -> Tuple[bool, Any]:
    """Run ``awaitable`` against the cancel event and an optional time limit.

    Returns ``(True, result)`` when it finished and ``(False, None)`` when the
    time limit passed first. Raises PollingCancelledError when the event fires
    first. Errors raised by ``awaitable`` propagate unchanged. The awaitable
    is cancelled if it is still running on return.
    """
    task = asyncio.ensure_future(awaitable)
    waiters = {task}
    cancel_waiter = None
    if cancel_event is not None:
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return True, task.result()
    if cancel_waiter is not None and cancel_waiter in done:
        raise PollingCancelledError()
    return False, None


async def poll(
    operation: Callable[[], Awaitable[T]],
    options: Optional[PollingOptions[T]] = None,
) -> T:
    """
    Probe ``operation`` until its result is accepted.

    After each rejected result the poller waits ``min(interval, remaining)``
    and then grows the interval by ``backoff_multiplier``, capped at
    ``max_poll_interval``.

    Args:
        operation: Zero-argument coroutine function performing one probe
        options: Polling options

    Returns:
        The first result accepted by ``end_condition``

    Raises:
        PollingTimeoutError: The timeout elapsed first
        PollingCancelledError: ``cancel_event`` was set
        Exception: Whatever ``error_check`` returned, or the probe raised

    Example:
        job = await poll(
            lambda: fetch_job(job_id),
            PollingOptions(timeout=60, end_condition=lambda j: j["status"] == "completed"),
        )
    """
    opts = options or PollingOptions()
    _validate_options(opts)

    log = logger.info if opts.debug else logger.debug
    cancel_event = opts.cancel_event
    start = time.monotonic()
    deadline = start + opts.timeout
    state = PollState(next_interval_seconds=opts.initial_poll_interval)

    def timed_out() -> PollingTimeoutError:
        return PollingTimeoutError(
            f"Polling timed out after {opts.timeout} seconds ({state.attempt} attempts)",
            attempts=state.attempt,
        )

    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise PollingCancelledError()

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise timed_out()

            state.attempt += 1
            finished, result = await _race_cancel(operation(), cancel_event, remaining)
            state.elapsed_seconds = time.monotonic() - start
            if not finished:
                raise timed_out()

            log(f"poll: attempt {state.attempt} returned after {state.elapsed_seconds:.3f}s")

            if opts.error_check is not None:
                error = opts.error_check(result)
                if error is not None:
                    raise error

            if opts.end_condition is None or opts.end_condition(result):
                return result

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise timed_out()

            wait = min(state.next_interval_seconds, remaining)
            log(f"poll: waiting {wait:.3f}s before attempt {state.attempt + 1}")
            await _race_cancel(asyncio.sleep(wait), cancel_event, None)

            state.next_interval_seconds = min(
                state.next_interval_seconds * opts.backoff_multiplier,
                opts.max_poll_interval,
            )
    except PollingCancelledError:
        state.cancelled = True
        log(f"poll: cancelled after {state.attempt} attempts")
        raise


async def poll_with_status(
    operation: Callable[[], Awaitable[T]],
    options: Optional[PollingOptions[T]] = None,
) -> Tuple[bool, str]:
    """
    Legacy form of :func:`poll` that reports the outcome instead of raising.

    Returns:
        ``(True, "completed")``, ``(False, "timeout")``,
        ``(False, "cancelled")``, or ``(False, <error message>)``
    """
    try:
        await poll(operation, options)
    except PollingTimeoutError:
        return False, "timeout"
    except PollingCancelledError:
        return False, "cancelled"
    except Exception as err:
        logger.warning(f"poll_with_status: polling failed: {err!r}")
        return False, str(err)
    return True, "completed"
