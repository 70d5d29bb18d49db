"""Node pool provisioning with local SSDs.

Creates the SSD-backed node pool the workload is scheduled onto. The actual
pool creation sits behind the NodePoolProvisioner protocol so tests can
replace the gcloud call with a fake.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from .errors import ProvisioningFailure
from .labels import local_ssd_node_selector
from .shared.logging import get_logger

if TYPE_CHECKING:
    from .config import ScenarioConfig

logger = get_logger(__name__)

GCLOUD_NODE_POOLS_CREATE = ["gcloud", "alpha", "container", "node-pools", "create"]


@dataclass(frozen=True)
class ResourcePoolRequest:
    """Request for one node pool with local SSDs on every node."""

    pool_name: str
    cluster_name: str
    device_count: int = 1
    zone: str | None = None
    project: str | None = None

    def __post_init__(self) -> None:
        if not self.pool_name:
            raise ValueError("pool_name must not be empty")
        if not self.cluster_name:
            raise ValueError("cluster_name must not be empty")
        if self.device_count < 1:
            raise ValueError(f"device_count must be >= 1, got {self.device_count}")


@dataclass
class ProvisionedPool:
    """A node pool that was created successfully."""

    name: str
    cluster_name: str
    output: str = ""
    # Labels every node of the pool advertises
    node_labels: dict[str, str] = field(default_factory=local_ssd_node_selector)


class NodePoolProvisioner(Protocol):
    """Creates node pools with locally attached SSDs."""

    def create_pool_with_local_devices(self, request: ResourcePoolRequest) -> ProvisionedPool:
        """Create the pool or raise ProvisioningFailure."""
        ...


class GcloudNodePoolProvisioner:
    """Create node pools with the gcloud CLI."""

    def __init__(self, gcloud_cmd: list[str] | None = None):
        """Initialize provisioner.

        Args:
            gcloud_cmd: Base command, defaults to `gcloud alpha container node-pools create`.
        """
        self.gcloud_cmd = gcloud_cmd or list(GCLOUD_NODE_POOLS_CREATE)

    def build_command(self, request: ResourcePoolRequest) -> list[str]:
        """Build the full pool creation command."""
        cmd = self.gcloud_cmd + [
            request.pool_name,
            f"--cluster={request.cluster_name}",
            f"--local-ssd-count={request.device_count}",
        ]
        if request.zone:
            cmd.append(f"--zone={request.zone}")
        if request.project:
            cmd.append(f"--project={request.project}")
        return cmd

    def create_pool_with_local_devices(self, request: ResourcePoolRequest) -> ProvisionedPool:
        """Create the node pool and block until gcloud returns.

        Args:
            request: Pool to create.

        Returns:
            ProvisionedPool with the combined gcloud output.

        Raises:
            ProvisioningFailure: gcloud is missing or exited non-zero. The
                message contains the combined output verbatim.
        """
        cmd = self.build_command(request)
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError as e:
            raise ProvisioningFailure(
                f"Failed to create node pool {request.pool_name}: gcloud not found. "
                "Is the Google Cloud SDK installed?",
                details={"command": cmd},
            ) from e

        output = result.stdout or ""
        if result.returncode != 0:
            raise ProvisioningFailure(
                f"Failed to create node pool {request.pool_name}: "
                f"exit status {result.returncode}\n{output}",
                details={"command": cmd, "returncode": result.returncode, "output": output},
            )

        return ProvisionedPool(
            name=request.pool_name,
            cluster_name=request.cluster_name,
            output=output,
        )


def provision(
    pool_name: str,
    config: ScenarioConfig,
    provisioner: NodePoolProvisioner | None = None,
) -> ProvisionedPool:
    """Create a node pool with local SSDs on the configured cluster.

    The caller is responsible for choosing a pool name that is unique in the
    cluster. No retries and no cleanup on failure.

    Args:
        pool_name: Name of the pool to create.
        config: Scenario configuration (cluster, zone, project, SSD count).
        provisioner: Pool backend, gcloud by default.

    Returns:
        The provisioned pool.

    Raises:
        ValueError: If pool_name is empty.
        ProvisioningFailure: If pool creation failed.
    """
    if not pool_name:
        raise ValueError("pool_name must not be empty")

    request = ResourcePoolRequest(
        pool_name=pool_name,
        cluster_name=config.cluster,
        device_count=config.local_ssd_count,
        zone=config.zone,
        project=config.project,
    )
    provisioner = provisioner or GcloudNodePoolProvisioner()

    logger.info(
        "creating node pool with local SSDs",
        pool=request.pool_name,
        cluster=request.cluster_name,
        local_ssd_count=request.device_count,
    )
    pool = provisioner.create_pool_with_local_devices(request)
    logger.info("created node pool", pool=pool.name, output=pool.output)
    return pool
