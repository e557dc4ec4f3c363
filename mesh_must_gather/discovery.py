import logging
import re

from mesh_must_gather import config
from mesh_must_gather.client import ClusterClient
from mesh_must_gather.errors import OperatorNotFound, ResourceNotFound
from mesh_must_gather.model import dedupe, get_name, get_namespace

logger = logging.getLogger(__name__)

_MEMBER_SEPARATORS = re.compile(r"[,\s]+")


# ----------------------------
# Operator / control planes
# ----------------------------


def discover_operator_namespace(client: ClusterClient) -> str:
    pods = client.list_objects(
        "pods", all_namespaces=True, selector=config.OPERATOR_SELECTOR
    )
    for pod in pods:
        namespace = get_namespace(pod)
        if namespace:
            return namespace
    raise OperatorNotFound(
        f"no pod matching '{config.OPERATOR_SELECTOR}' in any namespace"
    )


def discover_control_planes(client: ClusterClient) -> list[str]:
    """
    Namespaces holding at least one control-plane resource, in listing order.
    """
    try:
        items = client.list_objects(config.CONTROL_PLANE_KIND, all_namespaces=True)
    except ResourceNotFound:
        return []
    return dedupe(get_namespace(item) for item in items)


def find_discovery_pod(client: ClusterClient, namespace: str) -> str | None:
    """
    First pod labelled app=istiod or app=pilot in the namespace.
    When both exist, whichever the API lists first wins.
    """
    pods = client.list_objects(
        "pods", namespace=namespace, selector=config.DISCOVERY_SELECTOR
    )
    for pod in pods:
        name = get_name(pod)
        if name:
            return name
    return None


# ----------------------------
# Membership
# ----------------------------


def parse_member_list(text: str | None) -> list[str]:
    """
    Parse a member list printed as text, e.g. '["bookinfo","mesh-b"]' or
    "[bookinfo mesh-b]", into bare namespace names.
    """
    if not text:
        return []
    cleaned = text.strip().strip("[]")
    names = []
    for token in _MEMBER_SEPARATORS.split(cleaned):
        token = token.strip().strip("[]\"'").strip()
        if token:
            names.append(token)
    return dedupe(names)


def resolve_members(client: ClusterClient, namespace: str) -> list[str]:
    try:
        roll = client.get_object(
            config.MEMBER_ROLL_KIND, config.MEMBER_ROLL_NAME, namespace
        )
    except ResourceNotFound:
        logger.info("No member roll in %s", namespace)
        return []

    status = roll.get("status") or {}
    spec = roll.get("spec") or {}

    # Members enrolled through memberSelectors only show up in status
    for field in (status.get("members"), status.get("configuredMembers"), spec.get("members")):
        names = _decode_members(field)
        if names:
            return names
    return []


def _decode_members(members) -> list[str]:
    if isinstance(members, str):
        return parse_member_list(members)
    if not isinstance(members, list):
        return []

    names = []
    for member in members:
        if isinstance(member, str):
            names.extend(parse_member_list(member))
    return dedupe(names)


# ----------------------------
# CRDs
# ----------------------------


def _matches_mesh_name(name: str) -> bool:
    return any(fragment in name for fragment in config.CRD_NAME_FRAGMENTS)


def discover_crds(client: ClusterClient) -> list[str]:
    """
    Union of CRDs labelled for the mesh project and unlabelled CRDs whose
    name matches the mesh API groups. Each name appears once.
    """
    labeled = client.list_objects(config.CRD_KIND, selector=config.CRD_PROJECT_LABEL)
    unlabeled = client.list_objects(
        config.CRD_KIND, selector=f"!{config.CRD_PROJECT_LABEL}"
    )

    names = [get_name(crd) for crd in labeled]
    names += [get_name(crd) for crd in unlabeled if _matches_mesh_name(get_name(crd))]
    return dedupe(names)
