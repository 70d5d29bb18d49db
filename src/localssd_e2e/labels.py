"""Fixed constants of the local SSD scenario.

The node label is defined here once. The provisioner reports it as the label
its nodes advertise and the workload builder uses it as the node selector,
so the two sides cannot drift apart.
"""

# Label GKE puts on nodes that carry local SSDs
LOCAL_SSD_LABEL = "cloud.google.com/gke-local-ssd"
LOCAL_SSD_LABEL_VALUE = "true"

# First local SSD slot on the node, mounted into the container unchanged
SSD_MOUNT_PATH = "/mnt/disks/ssd0"

DEFAULT_IMAGE = "ubuntu:14.04"
DEFAULT_POOL_NAME = "np-ssd"
DEFAULT_PAYLOAD = "hello world"

CONTAINER_NAME = "test-container"
VOLUME_NAME = "test-ssd-volume"
POD_NAME_PREFIX = "pod-"

# Host path volumes are rejected by the baseline and restricted profiles
POD_SECURITY_LABELS = {
    "pod-security.kubernetes.io/enforce": "privileged",
}


def local_ssd_node_selector() -> dict[str, str]:
    """Node selector matching nodes with a local SSD."""
    return {LOCAL_SSD_LABEL: LOCAL_SSD_LABEL_VALUE}
