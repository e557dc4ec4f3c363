import logging
from pathlib import Path

from mesh_must_gather import config
from mesh_must_gather.bundle import BundleLayout
from mesh_must_gather.client import ClusterClient
from mesh_must_gather.collectors import (
    collect_control_plane_status,
    collect_dependency_resources,
    collect_proxy_configs,
    collect_synchronization,
)
from mesh_must_gather.discovery import (
    discover_control_planes,
    discover_crds,
    discover_operator_namespace,
    resolve_members,
)
from mesh_must_gather.errors import ClusterCommandError, GatherError
from mesh_must_gather.model import ResourceReference, build_references
from mesh_must_gather.output import ControlPlaneSummary, GatherSummary, write_summary

logger = logging.getLogger(__name__)


class GatherRun:
    """
    One pass over the cluster: discover the mesh, capture live debug state,
    then persist manifests for every reference gathered on the way.

    Failures are isolated per control plane, member, pod and reference;
    the run always reaches the final dump.
    """

    def __init__(self, client: ClusterClient, dest_dir: str | Path = config.BASE_COLLECTION_PATH):
        self.client = client
        self.dest_dir = Path(dest_dir)
        self.layout = BundleLayout(self.dest_dir)

    def run(self) -> GatherSummary:
        summary = GatherSummary()
        references: list[ResourceReference] = []

        # ----------------------------
        # Operator + webhooks
        # ----------------------------
        try:
            operator_ns = discover_operator_namespace(self.client)
        except GatherError as e:
            logger.error("Could not locate the mesh operator: %s", e)
            summary.failures.append(f"operator: {e}")
        else:
            summary.operator_namespace = operator_ns
            references += build_references(config.NAMESPACE_KIND, [operator_ns])

        references += [ResourceReference(kind=kind) for kind in config.WEBHOOK_KINDS]

        # ----------------------------
        # Control planes
        # ----------------------------
        try:
            control_planes = discover_control_planes(self.client)
        except ClusterCommandError as e:
            logger.error("Could not list control planes: %s", e)
            summary.failures.append(f"control planes: {e}")
            control_planes = []

        if not control_planes:
            logger.info("No control planes found")

        for namespace in control_planes:
            cp_summary = ControlPlaneSummary(namespace=namespace)
            summary.control_planes.append(cp_summary)
            try:
                self._gather_control_plane(cp_summary, references, summary)
            except (GatherError, OSError) as e:
                logger.error("Gathering control plane %s failed: %s", namespace, e)
                summary.failures.append(f"control plane {namespace}: {e}")

        # ----------------------------
        # CRDs
        # ----------------------------
        try:
            crds = discover_crds(self.client)
        except ClusterCommandError as e:
            logger.error("Could not list CRDs: %s", e)
            summary.failures.append(f"crds: {e}")
            crds = []
        summary.crds = crds
        references += build_references(config.CRD_KIND, crds)

        # ----------------------------
        # Manifest dump
        # ----------------------------
        for ref in references:
            if self._inspect(ref, summary):
                summary.references.append(str(ref))

        for crd in crds:
            if self._inspect(ResourceReference(kind=crd), summary, all_namespaces=True):
                summary.instance_dumps += 1

        try:
            write_summary(summary, self.layout.summary)
        except OSError as e:
            logger.error("Could not write run summary: %s", e)
        return summary

    def _gather_control_plane(
        self,
        cp_summary: ControlPlaneSummary,
        references: list[ResourceReference],
        summary: GatherSummary,
    ) -> None:
        namespace = cp_summary.namespace
        logger.info("Gathering control plane %s", namespace)
        references += build_references(config.NAMESPACE_KIND, [namespace])

        try:
            members = resolve_members(self.client, namespace)
        except ClusterCommandError as e:
            logger.error("Could not read members of %s: %s", namespace, e)
            summary.failures.append(f"members of {namespace}: {e}")
            members = []
        cp_summary.members = members
        references += build_references(config.NAMESPACE_KIND, members)

        for label, collect in (
            ("synchronization", collect_synchronization),
            ("control plane status", collect_control_plane_status),
        ):
            try:
                collect(self.client, self.layout, namespace)
            except OSError as e:
                logger.error("Could not write %s of %s: %s", label, namespace, e)
                summary.failures.append(f"{label} of {namespace}: {e}")

        for ref in collect_dependency_resources(self.client, self.dest_dir, namespace):
            summary.failures.append(f"inspect {ref}")

        for target in [namespace, *members]:
            if not target.strip():
                continue
            logger.info("Collecting proxies in %s (control plane %s)", target, namespace)
            try:
                cp_summary.proxy_pods[target] = collect_proxy_configs(
                    self.client, self.layout, namespace, target, summary.failures
                )
            except (ClusterCommandError, OSError) as e:
                logger.error("Could not collect proxies in %s: %s", target, e)
                summary.failures.append(f"proxies in {target}: {e}")

    def _inspect(
        self, ref: ResourceReference, summary: GatherSummary, all_namespaces: bool = False
    ) -> bool:
        logger.info("Inspecting %s%s", ref, " (all namespaces)" if all_namespaces else "")
        try:
            self.client.inspect(self.dest_dir, ref, all_namespaces=all_namespaces)
        except ClusterCommandError as e:
            logger.warning("Could not inspect %s: %s", ref, e)
            summary.failures.append(f"inspect {ref}: {e}")
            return False
        return True
