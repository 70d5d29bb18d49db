"""Shared test fixtures for localssd-e2e tests.

This module provides fakes for the scenario's external collaborators:
- FakeProvisioner: Stands in for gcloud node pool creation
- FakeCluster: Stands in for kubectl, with scripted pod phases and logs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from localssd_e2e.config import ScenarioConfig
from localssd_e2e.errors import ClusterError, ProvisioningFailure
from localssd_e2e.poller import PhasePoller
from localssd_e2e.provision import ProvisionedPool, ResourcePoolRequest


@dataclass
class FakeProvisioner:
    """Records pool requests and optionally fails."""

    requests: list[ResourcePoolRequest] = field(default_factory=list)
    fail_output: str | None = None

    def create_pool_with_local_devices(self, request: ResourcePoolRequest) -> ProvisionedPool:
        self.requests.append(request)
        if self.fail_output is not None:
            raise ProvisioningFailure(
                f"Failed to create node pool {request.pool_name}: exit status 1\n"
                f"{self.fail_output}"
            )
        return ProvisionedPool(
            name=request.pool_name,
            cluster_name=request.cluster_name,
            output=f"Created [{request.pool_name}].",
        )


@dataclass
class FakeCluster:
    """In-memory cluster with scripted phases.

    Each get_phase call pops the next phase; the last one repeats.
    """

    phases: list[str] = field(default_factory=lambda: ["Pending", "Running", "Succeeded"])
    logs: str = "hello world\n"
    delete_error: str | None = None

    namespaces: dict[str, dict[str, str]] = field(default_factory=dict)
    created: list[dict[str, Any]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    phase_calls: int = 0
    log_requests: list[tuple[str, str]] = field(default_factory=list)

    def ensure_namespace(self, name: str, labels: dict[str, str] | None = None) -> None:
        self.namespaces[name] = dict(labels or {})

    def create_workload(self, manifest: dict[str, Any]) -> None:
        self.created.append(manifest)

    def get_phase(self, name: str) -> str:
        index = min(self.phase_calls, len(self.phases) - 1)
        self.phase_calls += 1
        return self.phases[index]

    def get_logs(self, name: str, container: str) -> str:
        self.log_requests.append((name, container))
        return self.logs

    def delete_workload(self, name: str) -> None:
        self.deleted.append(name)
        if self.delete_error is not None:
            raise ClusterError(self.delete_error)


@pytest.fixture
def scenario_config() -> ScenarioConfig:
    """Config pointing at a fake GKE cluster."""
    return ScenarioConfig(cluster="e2e-cluster", poll_interval=0.01, timeout=2.0)


@pytest.fixture
def fake_provisioner() -> FakeProvisioner:
    """Provisioner that always succeeds."""
    return FakeProvisioner()


@pytest.fixture
def fake_cluster() -> FakeCluster:
    """Cluster whose pod succeeds and prints hello world."""
    return FakeCluster()


@pytest.fixture
def fast_poller() -> PhasePoller:
    """Poller with a short interval and deadline."""
    return PhasePoller(interval_seconds=0.01, timeout_seconds=1.0)


@pytest.fixture
def make_cluster():
    """Factory for clusters with custom phases or logs."""

    def _make(**kwargs: Any) -> FakeCluster:
        return FakeCluster(**kwargs)

    return _make


@pytest.fixture
def make_provisioner():
    """Factory for provisioners that fail with the given output."""

    def _make(fail_output: str | None = None) -> FakeProvisioner:
        return FakeProvisioner(fail_output=fail_output)

    return _make
