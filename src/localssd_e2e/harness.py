"""Run the workload and check its output."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from .cluster import ClusterClient
from .errors import OutputMismatch, WorkloadFailed
from .poller import PhasePoller, WorkloadPhase
from .shared.logging import get_logger
from .workload import WorkloadDescriptor

logger = get_logger(__name__)


@dataclass
class VerificationResult:
    """A workload whose output matched."""

    workload: str
    phase: WorkloadPhase
    output: str
    lines: list[str] = field(default_factory=list)
    attempts: int = 0
    elapsed_seconds: float = 0.0


def match_output(output: str, expected_lines: Sequence[str]) -> bool:
    """Check that every expected line occurs in the output, in order.

    An expected line matches a captured line that contains it. Each match
    must come after the previous one.
    """
    lines = output.splitlines()
    position = 0
    for expected in expected_lines:
        while position < len(lines) and expected not in lines[position]:
            position += 1
        if position == len(lines):
            return False
        position += 1
    return True


async def run_and_verify(
    client: ClusterClient,
    descriptor: WorkloadDescriptor,
    expected_lines: Sequence[str],
    poller: PhasePoller,
    namespace: str | None = None,
) -> VerificationResult:
    """Submit the workload, wait for it to finish and check its output.

    The output of a workload that ends Failed is still read and checked, so
    the error names the mismatch when there is one. A Failed workload never
    passes, since only the last shell stage sets the exit status.

    Args:
        client: Cluster to run on.
        descriptor: Workload to submit.
        expected_lines: Lines that must appear in the output, in order.
        poller: Bounded wait for the terminal phase.
        namespace: Namespace written into the manifest.

    Returns:
        VerificationResult for the matching run.

    Raises:
        SchedulingTimeout: No terminal phase before the poller deadline.
        OutputMismatch: Output does not contain the expected lines.
        WorkloadFailed: Output matched but the workload ended Failed.
        ClusterError: Submission or log retrieval failed.
    """
    logger.info("creating workload", workload=descriptor.name, image=descriptor.image)
    await asyncio.to_thread(client.create_workload, descriptor.to_manifest(namespace))

    poll = await poller.wait_for_terminal(descriptor.name, client.get_phase)
    logger.info(
        "workload finished",
        workload=descriptor.name,
        phase=poll.phase.value,
        attempts=poll.attempts,
    )
    output = await asyncio.to_thread(
        client.get_logs, descriptor.name, descriptor.container_name
    )
    lines = output.splitlines()
    expected = list(expected_lines)

    if not match_output(output, expected):
        raise OutputMismatch(
            f"Output of {descriptor.name} ({poll.phase.value}) does not match.\n"
            f"Expected lines: {expected!r}\n"
            f"Actual lines: {lines!r}",
            details={"workload": descriptor.name, "phase": poll.phase.value},
            expected=expected,
            actual=lines,
        )

    if poll.phase == WorkloadPhase.FAILED:
        raise WorkloadFailed(
            f"Workload {descriptor.name} ended Failed although its output matched.\n"
            f"Actual lines: {lines!r}",
            details={"workload": descriptor.name},
            phase=poll.phase.value,
            actual=lines,
        )

    logger.info("workload output matched", workload=descriptor.name, lines=lines)
    return VerificationResult(
        workload=descriptor.name,
        phase=poll.phase,
        output=output,
        lines=lines,
        attempts=poll.attempts,
        elapsed_seconds=poll.elapsed_seconds,
    )
