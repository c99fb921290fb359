#!/usr/bin/env python3
"""
Fixed-interval polling for deployment and health waits.

A PollPolicy bounds a wait by attempt count. The probe is called once per
attempt and its value is classified by the success/failure predicates;
the wait sleeps between attempts, never after the last one.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

DEFAULT_POLL_INTERVAL = 10


class PollState(Enum):
    """How a wait ended."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class PollPolicy:
    """Interval and attempt budget of a wait."""

    interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: int = 0

    @classmethod
    def from_timeout(cls, timeout: float, interval: float = DEFAULT_POLL_INTERVAL) -> "PollPolicy":
        """
        Build a policy whose budget fits in ``timeout`` seconds.

        Args:
            timeout: Total wait in seconds
            interval: Seconds between attempts

        Returns:
            Policy with ``floor(timeout / interval)`` attempts

        Raises:
            ValueError: If interval is not positive or timeout is negative
        """
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        if timeout < 0:
            raise ValueError(f"Timeout must not be negative, got {timeout}")
        return cls(interval=interval, max_attempts=int(timeout // interval))


@dataclass
class PollOutcome:
    """Result of a wait."""

    state: PollState
    attempts: int
    value: Any = None

    @property
    def succeeded(self) -> bool:
        return self.state == PollState.SUCCEEDED

    def __bool__(self) -> bool:
        return self.succeeded


def poll(
    probe: Callable[[], Any],
    policy: PollPolicy,
    is_success: Callable[[Any], bool],
    is_failure: Optional[Callable[[Any], bool]] = None,
    on_attempt: Optional[Callable[[int, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PollOutcome:
    """
    Poll ``probe`` until it reports a terminal value or the budget runs out.

    Args:
        probe: Returns the current state
        policy: Interval and attempt budget
        is_success: Terminal success predicate
        is_failure: Terminal failure predicate (optional)
        on_attempt: Observer called as ``on_attempt(attempt, max_attempts)``
            before each probe
        sleep: Sleep function, injectable for tests

    Returns:
        PollOutcome with the final state, attempts used and last probed value
    """
    value = None
    for attempt in range(1, policy.max_attempts + 1):
        if on_attempt:
            on_attempt(attempt, policy.max_attempts)

        value = probe()
        if is_success(value):
            return PollOutcome(PollState.SUCCEEDED, attempt, value)
        if is_failure is not None and is_failure(value):
            return PollOutcome(PollState.FAILED, attempt, value)

        if attempt < policy.max_attempts:
            sleep(policy.interval)

    return PollOutcome(PollState.EXHAUSTED, policy.max_attempts, value)
