import logging
from pathlib import Path

import yaml

from mesh_must_gather import config
from mesh_must_gather.bundle import BundleLayout, capture_file, write_capture
from mesh_must_gather.client import ClusterClient
from mesh_must_gather.discovery import find_discovery_pod
from mesh_must_gather.errors import ClusterCommandError, ResourceNotFound
from mesh_must_gather.model import (
    ResourceReference,
    get_name,
    has_proxy_container,
)

logger = logging.getLogger(__name__)


def _capture_exec(
    client: ClusterClient,
    path: Path,
    namespace: str,
    pod: str,
    container: str,
    command: list[str],
) -> None:
    """
    Run command in the container and write whatever it printed to path.
    A failure to run it at all is written to the file instead.
    """
    with capture_file(path) as f:
        try:
            f.write(client.exec_in_container(namespace, pod, container, command))
        except ClusterCommandError as e:
            logger.error("Could not exec in %s/%s: %s", namespace, pod, e)
            f.write(f"{e}\n".encode("utf-8"))


def _locate_discovery_pod(client: ClusterClient, namespace: str) -> str | None:
    try:
        pod = find_discovery_pod(client, namespace)
    except ClusterCommandError as e:
        logger.error("Could not list discovery pods in %s: %s", namespace, e)
        return None
    if pod is None:
        logger.warning("No discovery pod (%s) in %s", config.DISCOVERY_SELECTOR, namespace)
    return pod


def _missing_discovery_notice(namespace: str) -> str:
    return f"no pod matching '{config.DISCOVERY_SELECTOR}' in namespace {namespace}\n"


def _capture_pod(
    client: ClusterClient,
    layout: BundleLayout,
    control_plane_ns: str,
    target_ns: str,
    pod_name: str,
    pilot_pod: str | None,
) -> None:
    pilot_path = layout.pilot_configuration(target_ns, pod_name)
    if pilot_pod:
        _capture_exec(
            client,
            pilot_path,
            control_plane_ns,
            pilot_pod,
            config.DISCOVERY_CONTAINER,
            config.pilot_config_command(pod_name, target_ns),
        )
    else:
        write_capture(pilot_path, _missing_discovery_notice(control_plane_ns))

    _capture_exec(
        client,
        layout.envoy_configuration(target_ns, pod_name),
        target_ns,
        pod_name,
        config.PROXY_CONTAINER,
        config.PROXY_CONFIG_COMMAND,
    )


# ----------------------------
# Proxy configuration
# ----------------------------


def collect_proxy_configs(
    client: ClusterClient,
    layout: BundleLayout,
    control_plane_ns: str,
    target_ns: str,
    failures: list[str] | None = None,
) -> list[str]:
    """
    Capture the discovery-side and proxy-side configuration of every
    sidecar-carrying pod in target_ns. Returns the names of captured pods.
    Pods whose capture files cannot be written are skipped and, when
    failures is given, recorded there.
    """
    pilot_pod = _locate_discovery_pod(client, control_plane_ns)
    captured: list[str] = []

    for pod in client.list_objects("pods", namespace=target_ns):
        pod_name = get_name(pod)
        if not pod_name:
            continue

        try:
            full = client.get_object("pod", pod_name, target_ns)
        except ClusterCommandError as e:
            logger.error("Could not read pod %s/%s: %s", target_ns, pod_name, e)
            continue

        if not has_proxy_container(full, config.PROXY_IMAGE_MARKER):
            continue

        logger.info("Collecting proxy configuration for pod %s.%s", pod_name, target_ns)

        try:
            _capture_pod(client, layout, control_plane_ns, target_ns, pod_name, pilot_pod)
        except OSError as e:
            logger.error("Could not write captures for %s.%s: %s", pod_name, target_ns, e)
            if failures is not None:
                failures.append(f"pod {pod_name}.{target_ns}: {e}")
            continue
        captured.append(pod_name)

    return captured


# ----------------------------
# Control plane state
# ----------------------------


def collect_synchronization(
    client: ClusterClient, layout: BundleLayout, control_plane_ns: str
) -> Path:
    logger.info("Collecting synchronization status for %s", control_plane_ns)
    path = layout.synchronization(control_plane_ns)

    pilot_pod = _locate_discovery_pod(client, control_plane_ns)
    if pilot_pod is None:
        write_capture(path, _missing_discovery_notice(control_plane_ns))
        return path

    _capture_exec(
        client,
        path,
        control_plane_ns,
        pilot_pod,
        config.DISCOVERY_CONTAINER,
        config.SYNCZ_COMMAND,
    )
    return path


def collect_control_plane_status(
    client: ClusterClient, layout: BundleLayout, control_plane_ns: str
) -> Path:
    """
    Write the status stanza of each control-plane resource in the
    namespace, keyed by resource name, as YAML.
    """
    logger.info("Collecting control plane status for %s", control_plane_ns)
    path = layout.control_plane_status(control_plane_ns)

    try:
        items = client.list_objects(config.CONTROL_PLANE_KIND, namespace=control_plane_ns)
    except ClusterCommandError as e:
        logger.error("Could not read control planes in %s: %s", control_plane_ns, e)
        write_capture(path, f"{e}\n")
        return path

    statuses = {get_name(item): item.get("status", {}) for item in items}
    write_capture(path, yaml.safe_dump(statuses, sort_keys=False))
    return path


# ----------------------------
# Dependency resources
# ----------------------------


def collect_dependency_resources(
    client: ClusterClient, dest_dir: str | Path, control_plane_ns: str
) -> list[ResourceReference]:
    """
    Persist resources of kinds the control plane creates but another
    operator defines. Returns the references that could not be persisted.
    """
    failed: list[ResourceReference] = []
    for kind in config.DEPENDENCY_KINDS:
        ref = ResourceReference(kind=kind, namespace=control_plane_ns)
        logger.info("Inspecting %s", ref)
        try:
            client.inspect(dest_dir, ref)
        except ResourceNotFound:
            logger.info("No %s in %s", kind, control_plane_ns)
        except ClusterCommandError as e:
            logger.warning("Could not inspect %s: %s", ref, e)
            failed.append(ref)
    return failed
