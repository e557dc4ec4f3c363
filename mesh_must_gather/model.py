from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

# ----------------------------
# Resource references
# ----------------------------


@dataclass(frozen=True)
class ResourceReference:
    """
    An object (or a whole kind when name is None) to persist as a manifest.
    namespace=None means cluster scoped.
    """

    kind: str
    name: str | None = None
    namespace: str | None = None

    @property
    def target(self) -> str:
        if self.name:
            return f"{self.kind}/{self.name}"
        return self.kind

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}:{self.target}"
        return self.target


def build_references(
    kind: str, names: Iterable[str | None], namespace: str | None = None
) -> list[ResourceReference]:
    refs: list[ResourceReference] = []
    for name in names:
        if not name or not name.strip():
            continue
        refs.append(ResourceReference(kind=kind, name=name.strip(), namespace=namespace))
    return refs


# ----------------------------
# Object accessors
# ----------------------------


def get_name(obj: dict[str, Any]) -> str:
    return obj.get("metadata", {}).get("name", "")


def get_namespace(obj: dict[str, Any]) -> str:
    return obj.get("metadata", {}).get("namespace", "")


def container_images(pod: dict[str, Any]) -> list[str]:
    spec = pod.get("spec", {})
    images = []
    for key in ("initContainers", "containers"):
        for c in spec.get(key) or []:
            image = c.get("image")
            if image:
                images.append(image)
    return images


def has_proxy_container(pod: dict[str, Any], marker: str) -> bool:
    return any(marker in image for image in container_images(pod))


def dedupe(values: Iterable[str]) -> list[str]:
    """
    Drop repeats and blanks, keeping first-seen order.
    """
    return list(dict.fromkeys(v for v in values if v))
