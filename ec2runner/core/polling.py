"""Bounded fixed-interval polling.

Every wait in ec2runner (instance running, agent registration, command
completion) goes through :func:`poll_until`. The loop checks first, then
sleeps a fixed interval, until the condition holds or time runs out. There is
no backoff and no jitter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from time import monotonic, sleep
from typing import TypeVar

from ec2runner.exceptions import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PollPolicy:
    """Interval and timeout for one poll loop.

    Attributes
    ----------
    interval : float
        Seconds to sleep between checks
    timeout : float
        Seconds after the first check at which the loop gives up
    """

    interval: float
    timeout: float

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.interval}")
        if self.timeout < 0:
            raise ValueError(f"Poll timeout must not be negative, got {self.timeout}")


class Deadline:
    """Absolute expiry on the monotonic clock.

    A single deadline can be handed to several poll loops so that all of them
    stop once the overall budget is spent, whatever their own timeouts are.

    Parameters
    ----------
    timeout : float
        Seconds from now until expiry
    """

    def __init__(self, timeout: float) -> None:
        self.expires_at = monotonic() + timeout


def poll_until(
    check: Callable[[], tuple[bool, T]],
    policy: PollPolicy,
    description: str,
    deadline: Deadline | None = None,
) -> T:
    """Call ``check`` until it reports done or time runs out.

    Parameters
    ----------
    check : Callable[[], tuple[bool, T]]
        Returns ``(done, value)``. Exceptions propagate immediately.
    policy : PollPolicy
        Interval and timeout for this loop
    description : str
        What is being waited for, used in logs and the timeout error
    deadline : Deadline | None
        Optional overall deadline; the loop stops at whichever expires first

    Returns
    -------
    T
        The value returned by the successful check

    Raises
    ------
    PollTimeoutError
        If the condition is not met before the timeout or deadline
    """
    started = monotonic()
    ends_at = started + policy.timeout
    if deadline is not None:
        ends_at = min(ends_at, deadline.expires_at)

    attempts = 0
    while True:
        attempts += 1
        done, value = check()
        if done:
            logger.debug("%s: done after %d attempt(s)", description, attempts)
            return value

        remaining = ends_at - monotonic()
        if remaining <= 0:
            raise PollTimeoutError(description, attempts, monotonic() - started)

        sleep(min(policy.interval, remaining))
