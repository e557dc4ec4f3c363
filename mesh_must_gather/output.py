from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ControlPlaneSummary:
    namespace: str
    members: list[str] = field(default_factory=list)
    proxy_pods: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class GatherSummary:
    """
    What one run found and captured.
    """

    operator_namespace: str | None = None
    control_planes: list[ControlPlaneSummary] = field(default_factory=list)
    crds: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    instance_dumps: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def proxy_pod_count(self) -> int:
        return sum(
            len(pods) for cp in self.control_planes for pods in cp.proxy_pods.values()
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["proxy_pod_count"] = self.proxy_pod_count
        return data


# ----------------------------
# Output formatting
# ----------------------------


def output_summary(summary: GatherSummary) -> None:
    print(f"Operator namespace: {summary.operator_namespace or '<not found>'}")
    print(f"Control planes: {len(summary.control_planes)}")
    for cp in summary.control_planes:
        members = ", ".join(cp.members) if cp.members else "<none>"
        print(f"  - {cp.namespace} (members: {members})")
        for namespace, pods in cp.proxy_pods.items():
            print(f"      {namespace}: {len(pods)} proxy pod(s)")
    print(f"CRDs: {len(summary.crds)}")
    print(f"References persisted: {len(summary.references)}")
    print(f"CRD instance dumps: {summary.instance_dumps}")

    if summary.failures:
        print(f"\nFailures ({len(summary.failures)}):")
        for failure in summary.failures:
            print(f"  - {failure}")


def write_summary(summary: GatherSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(summary.to_dict(), f, sort_keys=False)
