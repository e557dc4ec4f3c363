import json
import os
from pathlib import Path
from typing import Any

import pytest

from mesh_must_gather import config
from mesh_must_gather.errors import ClusterCommandError, ResourceNotFound
from mesh_must_gather.model import ResourceReference

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

PROXY_IMAGE = "registry.redhat.io/openshift-service-mesh/proxyv2-rhel8:2.4.0"
APP_IMAGE = "quay.io/example/app:1.0"


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_fixture(filename: str) -> dict[str, Any]:
    return load_json(os.path.join(FIXTURES_DIR, filename))


def make_pod(name: str, namespace: str, proxy: bool = True, app: str = "web") -> dict[str, Any]:
    containers = [{"name": app, "image": APP_IMAGE}]
    if proxy:
        containers.append({"name": config.PROXY_CONTAINER, "image": PROXY_IMAGE})
    return {
        "metadata": {"name": name, "namespace": namespace, "labels": {"app": app}},
        "spec": {"containers": containers},
    }


def make_named(name: str, namespace: str | None = None, **extra) -> dict[str, Any]:
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return {"metadata": metadata, **extra}


class FakeClusterClient:
    """
    In-memory stand-in for ClusterClient. Records every exec and inspect.
    """

    def __init__(self):
        self.operator_pods: list[dict[str, Any]] = []
        self.control_planes: list[dict[str, Any]] = []
        self.member_rolls: dict[str, dict[str, Any]] = {}
        self.discovery_pods: dict[str, list[dict[str, Any]]] = {}
        self.pods: dict[str, list[dict[str, Any]]] = {}
        self.labeled_crds: list[dict[str, Any]] = []
        self.unlabeled_crds: list[dict[str, Any]] = []

        self.failing_lists: set[tuple[str, str | None]] = set()
        self.unreadable_pods: set[str] = set()
        self.failing_exec_pods: set[str] = set()
        self.failing_inspects: set[str] = set()
        self.missing_inspects: set[str] = set()

        self.exec_calls: list[tuple[str, str, str, list[str]]] = []
        self.inspect_calls: list[tuple[ResourceReference, bool]] = []

    # ----------------------------
    # Scenario helpers
    # ----------------------------

    def add_control_plane(self, namespace: str, members: list[str] | None = None, app: str = "istiod"):
        self.control_planes.append(
            make_named("basic", namespace, status={"conditions": [{"type": "Ready", "status": "True"}]})
        )
        self.discovery_pods[namespace] = [
            make_named(f"{app}-basic-5d8f7b9c4-x2k9p", namespace)
        ]
        if members is not None:
            self.member_rolls[namespace] = make_named(
                config.MEMBER_ROLL_NAME, namespace, spec={"members": members}
            )

    def add_pod(self, pod: dict[str, Any]):
        namespace = pod["metadata"]["namespace"]
        self.pods.setdefault(namespace, []).append(pod)

    # ----------------------------
    # ClusterClient interface
    # ----------------------------

    def _fail(self, *args):
        raise ClusterCommandError(["oc", *args], 1, "error: connection refused")

    def list_objects(self, kind, namespace=None, all_namespaces=False, selector=None):
        if (kind, namespace) in self.failing_lists:
            self._fail("get", kind)
        if kind == "pods":
            if selector == config.OPERATOR_SELECTOR:
                return self.operator_pods
            if selector == config.DISCOVERY_SELECTOR:
                return self.discovery_pods.get(namespace, [])
            return self.pods.get(namespace, [])
        if kind == config.CONTROL_PLANE_KIND:
            if all_namespaces:
                return self.control_planes
            return [
                cp for cp in self.control_planes
                if cp["metadata"]["namespace"] == namespace
            ]
        if kind == config.CRD_KIND:
            if selector == config.CRD_PROJECT_LABEL:
                return self.labeled_crds
            return self.unlabeled_crds
        return []

    def get_object(self, kind, name, namespace=None):
        if name in self.unreadable_pods:
            self._fail("get", kind, name)
        if kind == "pod":
            for pod in self.pods.get(namespace, []):
                if pod["metadata"]["name"] == name:
                    return pod
        if kind == config.MEMBER_ROLL_KIND and namespace in self.member_rolls:
            return self.member_rolls[namespace]
        raise ResourceNotFound(
            ["oc", "get", kind, name], 1, f'Error from server (NotFound): {kind} "{name}" not found'
        )

    def exec_in_container(self, namespace, pod, container, command):
        self.exec_calls.append((namespace, pod, container, command))
        if pod in self.failing_exec_pods:
            self._fail("exec", pod)
        return f"{container}@{pod}.{namespace}: {command[-1]}".encode("utf-8")

    def inspect(self, dest_dir, ref, all_namespaces=False):
        self.inspect_calls.append((ref, all_namespaces))
        if ref.target in self.missing_inspects:
            raise ResourceNotFound(["oc", "adm", "inspect", ref.target], 1, "not found")
        if ref.target in self.failing_inspects:
            self._fail("adm", "inspect", ref.target)


@pytest.fixture
def fake_client() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture
def bundle_root(tmp_path) -> Path:
    return tmp_path / "must-gather"
