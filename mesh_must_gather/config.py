import os

# ----------------------------
# Bundle location / tooling
# ----------------------------

BASE_COLLECTION_PATH = os.environ.get("BASE_COLLECTION_PATH", "/must-gather")
OC_BINARY = os.environ.get("OC_BINARY", "oc")
LOG_LEVEL = os.environ.get("MUST_GATHER_LOG_LEVEL", "INFO")

# ----------------------------
# Mesh resources
# ----------------------------

CONTROL_PLANE_KIND = "servicemeshcontrolplanes"
MEMBER_ROLL_KIND = "servicemeshmemberrolls"
MEMBER_ROLL_NAME = "default"
NAMESPACE_KIND = "namespace"
CRD_KIND = "crd"

OPERATOR_SELECTOR = "name=istio-operator"

WEBHOOK_KINDS = [
    "mutatingwebhookconfigurations",
    "validatingwebhookconfigurations",
]

# Created by the control plane, defined by other operators
DEPENDENCY_KINDS = [
    "jaegers",
    "kialis",
]

CRD_PROJECT_LABEL = "maistra-version"
CRD_NAME_FRAGMENTS = ("maistra.io", "istio.io")

# ----------------------------
# Discovery process / proxy
# ----------------------------

DISCOVERY_APPS = ("istiod", "pilot")
DISCOVERY_SELECTOR = f"app in ({','.join(DISCOVERY_APPS)})"
DISCOVERY_CONTAINER = "discovery"

PROXY_CONTAINER = "istio-proxy"
PROXY_IMAGE_MARKER = "proxyv2"

PILOT_DISCOVERY = "/usr/local/bin/pilot-discovery"
PILOT_AGENT = "/usr/local/bin/pilot-agent"

SYNCZ_COMMAND = [PILOT_DISCOVERY, "request", "GET", "/debug/syncz"]
PROXY_CONFIG_COMMAND = [PILOT_AGENT, "request", "GET", "config_dump"]


def pilot_config_command(pod_name: str, namespace: str) -> list[str]:
    return [
        PILOT_DISCOVERY,
        "request",
        "GET",
        f"/debug/config_dump?proxyID={pod_name}.{namespace}",
    ]
