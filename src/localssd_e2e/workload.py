"""Pod description for the local SSD write/read check.

Builds the single-container pod that mounts the node's first local SSD and
runs a shell command against it.
"""

from __future__ import annotations

import shlex
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import yaml

from .labels import (
    CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PAYLOAD,
    POD_NAME_PREFIX,
    SSD_MOUNT_PATH,
    VOLUME_NAME,
    local_ssd_node_selector,
)

SHELL = "/bin/sh"
DATA_FILE = "data"


class RestartPolicy(str, Enum):
    """Pod restart policy. The check runs exactly once."""

    NEVER = "Never"


@dataclass(frozen=True)
class VolumeMount:
    """Host path volume mounted at the same path inside the container."""

    host_path: str
    mount_path: str
    name: str = VOLUME_NAME


@dataclass(frozen=True)
class WorkloadDescriptor:
    """Immutable description of the pod to submit."""

    name: str
    image: str
    command: tuple[str, ...]
    volume_mount: VolumeMount
    node_selector: Mapping[str, str] = field(default_factory=dict)
    restart_policy: RestartPolicy = RestartPolicy.NEVER
    container_name: str = CONTAINER_NAME

    def to_manifest(self, namespace: str | None = None) -> dict[str, Any]:
        """Render the v1 Pod object."""
        metadata: dict[str, Any] = {"name": self.name}
        if namespace:
            metadata["namespace"] = namespace

        return {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": metadata,
            "spec": {
                "containers": [
                    {
                        "name": self.container_name,
                        "image": self.image,
                        "command": list(self.command[:1]),
                        "args": list(self.command[1:]),
                        "volumeMounts": [
                            {
                                "name": self.volume_mount.name,
                                "mountPath": self.volume_mount.mount_path,
                            }
                        ],
                    }
                ],
                "restartPolicy": self.restart_policy.value,
                "volumes": [
                    {
                        "name": self.volume_mount.name,
                        "hostPath": {"path": self.volume_mount.host_path},
                    }
                ],
                "nodeSelector": dict(self.node_selector),
            },
        }

    def to_yaml(self, namespace: str | None = None) -> str:
        """Render the Pod object as YAML."""
        return yaml.safe_dump(
            self.to_manifest(namespace), default_flow_style=False, sort_keys=False
        )


def write_read_command(
    payload: str = DEFAULT_PAYLOAD,
    mount_path: str = SSD_MOUNT_PATH,
    pause_seconds: int = 1,
) -> str:
    """Shell command that writes payload to the SSD, waits, and reads it back.

    Stages are joined with && so a failed write leaves the output empty.
    The payload is shell quoted and written as is.
    """
    data_path = f"{mount_path}/{DATA_FILE}"
    return f"echo {shlex.quote(payload)} > {data_path} && sleep {pause_seconds} && cat {data_path}"


def new_workload_name() -> str:
    """Cluster-unique pod name."""
    return f"{POD_NAME_PREFIX}{uuid.uuid4()}"


def build_workload(
    command: str,
    node_selector: Mapping[str, str] | None = None,
    image: str = DEFAULT_IMAGE,
) -> WorkloadDescriptor:
    """Build the pod descriptor for a shell command.

    Args:
        command: Passed verbatim to `/bin/sh -c`.
        node_selector: Labels the target node must carry. Defaults to the
            local SSD label; pass the provisioned pool's node labels to tie
            placement to what provisioning produced.
        image: Container image reference.

    Returns:
        Ready to submit WorkloadDescriptor.
    """
    selector = dict(node_selector) if node_selector is not None else local_ssd_node_selector()
    return WorkloadDescriptor(
        name=new_workload_name(),
        image=image,
        command=(SHELL, "-c", command),
        volume_mount=VolumeMount(host_path=SSD_MOUNT_PATH, mount_path=SSD_MOUNT_PATH),
        node_selector=MappingProxyType(selector),
    )
