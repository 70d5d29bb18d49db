"""Error types for the local SSD scenario.

Every error here ends the scenario. They are raised where the failure is
detected and only the CLI turns them into exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ScenarioError(Exception):
    """Base error class for scenario failures."""

    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigError(ScenarioError):
    """Configuration is missing or invalid."""


@dataclass
class ProvisioningFailure(ScenarioError):
    """Node pool creation command failed.

    The message carries the tool's combined output verbatim.
    """


@dataclass
class ClusterError(ScenarioError):
    """A kubectl call against the cluster failed."""


@dataclass
class SchedulingTimeout(ScenarioError):
    """Workload did not reach a terminal phase before the deadline."""

    last_phase: str | None = None
    last_error: str | None = None


@dataclass
class OutputMismatch(ScenarioError):
    """Captured workload output does not contain the expected lines."""

    expected: list[str] = field(default_factory=list)
    actual: list[str] = field(default_factory=list)


@dataclass
class ScenarioSkipped(ScenarioError):
    """The configured provider cannot run this scenario."""


@dataclass
class WorkloadFailed(ScenarioError):
    """Workload ended in the Failed phase.

    Raised even when the output matched; the captured lines are kept for triage.
    """

    phase: str | None = None
    actual: list[str] = field(default_factory=list)
