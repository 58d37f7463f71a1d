"""Deadline-bounded, cancellable polling.

Poll a read function until its result satisfies a predicate.

- The deadline is enforced: we never sleep past it

- The wait can be cancelled from another thread with a :py:class:`threading.Event`

- Progress reporting goes to a :py:class:`PollObserver` and does not
  affect the control flow

Example:

.. code-block:: python

    balance = poll_until(
        fetch=lambda: fetch_vault_balance(chain, depositor),
        predicate=lambda b: b >= Decimal("1.01"),
        interval=datetime.timedelta(seconds=30),
        timeout=datetime.timedelta(minutes=25),
    )
"""

import datetime
import logging
import threading
import time
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollTimeout(TimeoutError):
    """Predicate was not satisfied before the deadline."""

    def __init__(self, message: str, last_value: Any, elapsed: float, attempts: int):
        super().__init__(message)
        #: The last value read before giving up
        self.last_value = last_value
        #: Seconds since polling started
        self.elapsed = elapsed
        self.attempts = attempts


class PollCancelled(Exception):
    """Cancel event was set while polling."""


class PollObserver:
    """Receives polling progress.

    Subclass and override the hooks you need.
    """

    def on_poll(self, attempt: int, value: Any, elapsed: float, next_poll_in: float):
        """Called after each poll that did not satisfy the predicate."""

    def on_done(self, attempt: int, value: Any, elapsed: float):
        """Called once the predicate is satisfied."""


class LoggingPollObserver(PollObserver):
    """Log polling progress."""

    def __init__(self, label: str = "Polling", logger: logging.Logger = logger):
        self.label = label
        self.logger = logger

    def on_poll(self, attempt: int, value: Any, elapsed: float, next_poll_in: float):
        self.logger.info(
            "%s: attempt %d, got %s, %.0fs elapsed, polling again in %.0fs",
            self.label,
            attempt,
            value,
            elapsed,
            next_poll_in,
        )

    def on_done(self, attempt: int, value: Any, elapsed: float):
        self.logger.info("%s: done after %d attempts, %.0fs, got %s", self.label, attempt, elapsed, value)


def poll_until(
    fetch: Callable[[], T],
    predicate: Callable[[T], bool],
    interval: datetime.timedelta,
    timeout: datetime.timedelta,
    observer: PollObserver | None = None,
    cancel_event: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Poll ``fetch()`` until ``predicate(value)`` holds.

    The first poll happens immediately.
    After a failed poll we sleep for ``interval``, or until the deadline if it is nearer,
    then poll once more. When a poll at or after the deadline fails, we give up.

    Exceptions raised by ``fetch()`` propagate.

    :param interval:
        Delay between polls

    :param timeout:
        Total time budget, measured from the first poll

    :param observer:
        Progress reporting

    :param cancel_event:
        Set this event from another thread to abort.
        When given, we sleep by waiting on the event.

    :param sleep:
        Sleep function, for tests

    :param clock:
        Monotonic clock function, for tests

    :return:
        The first value satisfying the predicate

    :raise PollTimeout:
        Deadline passed. The exception carries the last value.

    :raise PollCancelled:
        ``cancel_event`` was set
    """
    assert interval.total_seconds() > 0, f"Bad poll interval: {interval}"

    started = clock()
    deadline = started + timeout.total_seconds()
    attempt = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelled(f"Polling cancelled after {attempt} attempts")

        attempt += 1
        value = fetch()
        now = clock()
        elapsed = now - started

        if predicate(value):
            if observer:
                observer.on_done(attempt, value, elapsed)
            return value

        remaining = deadline - now
        if remaining <= 0:
            raise PollTimeout(
                f"Condition not met after {elapsed:.0f}s and {attempt} attempts, last value {value}",
                last_value=value,
                elapsed=elapsed,
                attempts=attempt,
            )

        delay = min(interval.total_seconds(), remaining)

        if observer:
            observer.on_poll(attempt, value, elapsed, delay)

        if cancel_event is not None:
            if cancel_event.wait(delay):
                raise PollCancelled(f"Polling cancelled after {attempt} attempts")
        else:
            sleep(delay)
