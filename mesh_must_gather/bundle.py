from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

# ----------------------------
# On-disk layout
# ----------------------------

CONTROL_PLANE_STATUS = "controlPlaneStatus"
SYNCHRONIZATION = "synchronization"
PILOT_CONFIGURATION = "pilotConfiguration"
ENVOY_CONFIGURATION = "envoyConfiguration"
SUMMARY_FILE = "gather-summary.yaml"


class BundleLayout:
    """
    Paths of the captures inside the bundle root:

        <root>/namespaces/<ns>/controlplane/controlPlaneStatus
        <root>/namespaces/<ns>/controlplane/synchronization
        <root>/namespaces/<ns>/pods/<pod>/pilotConfiguration
        <root>/namespaces/<ns>/pods/<pod>/envoyConfiguration
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def namespace_dir(self, namespace: str) -> Path:
        return self.root / "namespaces" / namespace

    def control_plane_dir(self, namespace: str) -> Path:
        return self.namespace_dir(namespace) / "controlplane"

    def control_plane_status(self, namespace: str) -> Path:
        return self.control_plane_dir(namespace) / CONTROL_PLANE_STATUS

    def synchronization(self, namespace: str) -> Path:
        return self.control_plane_dir(namespace) / SYNCHRONIZATION

    def pod_dir(self, namespace: str, pod: str) -> Path:
        return self.namespace_dir(namespace) / "pods" / pod

    def pilot_configuration(self, namespace: str, pod: str) -> Path:
        return self.pod_dir(namespace, pod) / PILOT_CONFIGURATION

    def envoy_configuration(self, namespace: str, pod: str) -> Path:
        return self.pod_dir(namespace, pod) / ENVOY_CONFIGURATION

    @property
    def summary(self) -> Path:
        return self.root / SUMMARY_FILE


@contextmanager
def capture_file(path: Path) -> Iterator[BinaryIO]:
    """
    Open a capture file for writing, creating its directory first.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        yield f


def write_capture(path: Path, data: bytes | str) -> None:
    if isinstance(data, str):
        data = data.encode("utf-8")
    with capture_file(path) as f:
        f.write(data)
