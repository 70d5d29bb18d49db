"""The local SSD write/read scenario.

Runs strictly in sequence:
1. Skips unless the provider supports local SSD node pools
2. Prepares the namespace the pod runs in
3. Creates the node pool with local SSDs
4. Builds the pod, placed by the pool's node labels
5. Runs the pod and checks it read back what it wrote

Pools are never deleted here. Cleaning up the cluster belongs to the
environment running the scenario.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .cluster import ClusterClient, KubectlClient
from .config import ScenarioConfig
from .errors import ClusterError, ScenarioSkipped
from .harness import VerificationResult, run_and_verify
from .labels import DEFAULT_PAYLOAD
from .poller import PhasePoller
from .provision import GcloudNodePoolProvisioner, NodePoolProvisioner, ProvisionedPool, provision
from .shared.logging import bind_workload, get_logger, scenario_context
from .workload import build_workload, write_read_command

logger = get_logger(__name__)

SUPPORTED_PROVIDERS = frozenset({"gke"})


@dataclass
class ScenarioResult:
    """Result of a passing scenario run."""

    pool: ProvisionedPool
    verification: VerificationResult


class LocalSSDScenario:
    """Write to and read from a node local SSD."""

    def __init__(
        self,
        config: ScenarioConfig,
        provisioner: NodePoolProvisioner | None = None,
        client: ClusterClient | None = None,
        poller: PhasePoller | None = None,
    ):
        self.config = config
        self.provisioner = provisioner or GcloudNodePoolProvisioner()
        self.client = client or KubectlClient(config.namespace, config.kubeconfig)
        # Built in run(), once the config has been validated
        self.poller = poller
        self.payload = DEFAULT_PAYLOAD

    def check_provider(self) -> None:
        """Raise ScenarioSkipped for providers without local SSD pools."""
        if self.config.provider not in SUPPORTED_PROVIDERS:
            raise ScenarioSkipped(
                f"Local SSD scenario requires provider in {sorted(SUPPORTED_PROVIDERS)}, "
                f"got '{self.config.provider}'"
            )

    async def run(self) -> ScenarioResult:
        """Run the scenario end to end.

        Blocking cluster and gcloud calls run in worker threads, so cancelling
        the task stops the run at the next step.

        Raises:
            ScenarioSkipped: Provider not supported.
            ConfigError: Configuration invalid.
            ProvisioningFailure, SchedulingTimeout, OutputMismatch, WorkloadFailed,
            ClusterError: The scenario failed.
        """
        self.check_provider()
        self.config.validate()
        if self.poller is None:
            self.poller = PhasePoller(
                interval_seconds=self.config.poll_interval,
                timeout_seconds=self.config.timeout,
            )

        with scenario_context(self.config.cluster, self.config.pool_name, self.config.namespace):
            logger.info("starting local SSD scenario")
            await asyncio.to_thread(self.client.ensure_namespace, self.config.namespace)

            pool = await asyncio.to_thread(
                provision, self.config.pool_name, self.config, self.provisioner
            )

            descriptor = build_workload(
                write_read_command(self.payload),
                node_selector=pool.node_labels,
                image=self.config.image,
            )
            bind_workload(descriptor.name)
            try:
                verification = await run_and_verify(
                    self.client,
                    descriptor,
                    [self.payload],
                    self.poller,
                    namespace=self.config.namespace,
                )
            finally:
                if self.config.cleanup_workload:
                    await self._delete_workload(descriptor.name)

            logger.info("local SSD scenario passed")
        return ScenarioResult(pool=pool, verification=verification)

    async def _delete_workload(self, name: str) -> None:
        """Delete the pod; a failed delete never hides the run's own outcome."""
        logger.info("deleting workload")
        try:
            await asyncio.to_thread(self.client.delete_workload, name)
        except ClusterError as e:
            logger.warning("workload cleanup failed", error=e.message)

    def run_sync(self) -> ScenarioResult:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run())
