"""Cluster access through kubectl.

The scenario only needs to create one pod, read its phase and its logs.
ClusterClient is the narrow interface for that, KubectlClient the
implementation used against real clusters.
"""

from __future__ import annotations

import subprocess
from typing import Any, Protocol

import yaml

from .errors import ClusterError
from .labels import POD_SECURITY_LABELS
from .shared.logging import get_logger

logger = get_logger(__name__)


class ClusterClient(Protocol):
    """Operations the scenario performs against the cluster."""

    def ensure_namespace(self, name: str, labels: dict[str, str] | None = None) -> None: ...

    def create_workload(self, manifest: dict[str, Any]) -> None: ...

    def get_phase(self, name: str) -> str: ...

    def get_logs(self, name: str, container: str) -> str: ...

    def delete_workload(self, name: str) -> None: ...


class KubectlClient:
    """ClusterClient backed by the kubectl binary."""

    def __init__(self, namespace: str, kubeconfig: str | None = None):
        """Initialize client.

        Args:
            namespace: Namespace the workload lives in.
            kubeconfig: Path to kubeconfig file.
        """
        self.namespace = namespace
        self.kubeconfig = kubeconfig

    def _kubectl_cmd(self, namespaced: bool = True) -> list[str]:
        """Build base kubectl command."""
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if namespaced:
            cmd.extend(["-n", self.namespace])
        return cmd

    def _run(self, args: list[str], namespaced: bool = True, stdin: str | None = None) -> str:
        """Run kubectl and return stdout.

        Raises:
            ClusterError: kubectl is missing or exited non-zero.
        """
        cmd = self._kubectl_cmd(namespaced) + args
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise ClusterError("kubectl not found. Is kubectl installed?") from e

        if result.returncode != 0:
            raise ClusterError(
                f"kubectl {' '.join(args)} failed: {result.stderr.strip()}",
                details={"command": cmd, "returncode": result.returncode},
            )
        return result.stdout

    def ensure_namespace(self, name: str, labels: dict[str, str] | None = None) -> None:
        """Create or update the namespace.

        Args:
            name: Namespace name.
            labels: Namespace labels, the privileged pod security level by default.
        """
        manifest = {
            "apiVersion": "v1",
            "kind": "Namespace",
            "metadata": {
                "name": name,
                "labels": dict(POD_SECURITY_LABELS if labels is None else labels),
            },
        }
        self._run(["apply", "-f", "-"], namespaced=False, stdin=yaml.safe_dump(manifest))
        logger.debug("namespace ready", namespace=name)

    def create_workload(self, manifest: dict[str, Any]) -> None:
        """Submit a pod manifest."""
        self._run(["create", "-f", "-"], stdin=yaml.safe_dump(manifest))

    def get_phase(self, name: str) -> str:
        """Current pod phase, empty if the status is not populated yet."""
        return self._run(["get", "pod", name, "-o", "jsonpath={.status.phase}"]).strip()

    def get_logs(self, name: str, container: str) -> str:
        """Standard output of one container of the pod."""
        return self._run(["logs", name, "-c", container])

    def delete_workload(self, name: str) -> None:
        """Delete the pod, ignoring a pod that is already gone."""
        self._run(["delete", "pod", name, "--ignore-not-found", "--wait=false"])
