"""Wait for the workload to reach a terminal phase.

Polls the pod phase at a fixed interval until it is Succeeded or Failed or
the deadline passes. The wait is an asyncio sleep, so cancelling the task
(Ctrl-C, an outer deadline) stops polling right away.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import ClusterError, SchedulingTimeout
from .shared.logging import get_logger

logger = get_logger(__name__)


class WorkloadPhase(str, Enum):
    """Pod lifecycle phase as reported by the cluster."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str) -> WorkloadPhase:
        """Map a raw phase string; empty means the pod is not scheduled yet."""
        if not value:
            return cls.PENDING
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (WorkloadPhase.SUCCEEDED, WorkloadPhase.FAILED)


@dataclass
class PollResult:
    """Outcome of a successful wait."""

    phase: WorkloadPhase
    attempts: int = 0
    elapsed_seconds: float = 0.0


class PhasePoller:
    """Poll a workload's phase with a fixed interval and an overall deadline."""

    def __init__(
        self,
        interval_seconds: float = 2.0,
        timeout_seconds: float = 300.0,
    ):
        """Initialize phase poller.

        Args:
            interval_seconds: Seconds between attempts.
            timeout_seconds: Overall deadline for reaching a terminal phase.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds

    async def wait_for_terminal(
        self,
        name: str,
        get_phase: Callable[[str], str],
        on_attempt: Callable[[int, WorkloadPhase, str | None], None] | None = None,
    ) -> PollResult:
        """Poll until the workload reaches a terminal phase.

        Args:
            name: Workload name passed to get_phase.
            get_phase: Blocking call returning the raw phase string. It runs
                in a worker thread. ClusterError from it is remembered and
                polling continues.
            on_attempt: Optional callback called with (attempt, phase, error)
                for progress reporting.

        Returns:
            PollResult with the terminal phase.

        Raises:
            SchedulingTimeout: No terminal phase before the deadline.
        """
        start = time.monotonic()
        deadline = start + self.timeout_seconds
        phase = WorkloadPhase.PENDING
        last_error: str | None = None
        attempt = 0

        while True:
            attempt += 1
            remaining = deadline - time.monotonic()
            try:
                raw = await asyncio.wait_for(
                    asyncio.to_thread(get_phase, name),
                    timeout=max(remaining, 0.001),
                )
                phase = WorkloadPhase.parse(raw)
                last_error = None
            except ClusterError as e:
                last_error = e.message
            except asyncio.TimeoutError:
                last_error = "phase query did not return before the deadline"

            logger.debug(
                "polled workload phase",
                workload=name,
                attempt=attempt,
                phase=phase.value,
                error=last_error,
            )
            if on_attempt:
                on_attempt(attempt, phase, last_error)

            if phase.is_terminal:
                return PollResult(
                    phase=phase,
                    attempts=attempt,
                    elapsed_seconds=time.monotonic() - start,
                )

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                message = (
                    f"Workload {name} did not reach a terminal phase within "
                    f"{self.timeout_seconds:g}s (last phase: {phase.value})"
                )
                if last_error:
                    message += f". Last error: {last_error}"
                raise SchedulingTimeout(
                    message,
                    details={"attempts": attempt},
                    last_phase=phase.value,
                    last_error=last_error,
                )

            await asyncio.sleep(min(self.interval_seconds, remaining))

    def wait_for_terminal_sync(
        self,
        name: str,
        get_phase: Callable[[str], str],
        on_attempt: Callable[[int, WorkloadPhase, str | None], None] | None = None,
    ) -> PollResult:
        """Synchronous wrapper for wait_for_terminal."""
        return asyncio.run(self.wait_for_terminal(name, get_phase, on_attempt))
