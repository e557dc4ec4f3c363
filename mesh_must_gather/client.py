import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from mesh_must_gather import config
from mesh_must_gather.errors import ClusterCommandError, ResourceNotFound
from mesh_must_gather.model import ResourceReference

logger = logging.getLogger(__name__)


_NOT_FOUND_MARKERS = (
    "(NotFound)",
    "doesn't have a resource type",
)


def _is_not_found(stderr: str) -> bool:
    return any(marker in stderr for marker in _NOT_FOUND_MARKERS)


class ClusterClient:
    """
    Thin wrapper around the cluster CLI.

    Listing and reads decode JSON output. Every call blocks until the
    CLI process exits; there is no retry.
    """

    def __init__(self, binary: str = config.OC_BINARY):
        self.binary = binary

    # ----------------------------
    # Process helpers
    # ----------------------------

    def _run(self, args: list[str]) -> str:
        cmd = [self.binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as e:
            raise ClusterCommandError(cmd, None, str(e)) from e

        if result.returncode != 0:
            if _is_not_found(result.stderr):
                raise ResourceNotFound(cmd, result.returncode, result.stderr)
            raise ClusterCommandError(cmd, result.returncode, result.stderr)
        return result.stdout

    def _get_json(self, args: list[str]) -> dict[str, Any]:
        out = self._run([*args, "-o", "json"])
        if not out.strip():
            return {}
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise ClusterCommandError(
                [self.binary, *args], 0, f"unparseable output: {e}"
            ) from e

    # ----------------------------
    # Listing / reads
    # ----------------------------

    def list_objects(
        self,
        kind: str,
        namespace: str | None = None,
        all_namespaces: bool = False,
        selector: str | None = None,
    ) -> list[dict[str, Any]]:
        args = ["get", kind]
        if all_namespaces:
            args.append("--all-namespaces")
        elif namespace:
            args += ["-n", namespace]
        if selector:
            args += ["-l", selector]
        return self._get_json(args).get("items", []) or []

    def get_object(
        self, kind: str, name: str, namespace: str | None = None
    ) -> dict[str, Any]:
        args = ["get", kind, name]
        if namespace:
            args += ["-n", namespace]
        return self._get_json(args)

    # ----------------------------
    # Remote execution
    # ----------------------------

    def exec_in_container(
        self, namespace: str, pod: str, container: str, command: list[str]
    ) -> bytes:
        """
        Run command inside a container and return stdout and stderr merged.
        A non-zero exit status is not an error here: the output is kept as is.
        """
        cmd = [self.binary, "exec", "-n", namespace, pod, "-c", container, "--", *command]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
            )
        except OSError as e:
            raise ClusterCommandError(cmd, None, str(e)) from e
        if result.returncode != 0:
            logger.warning(
                "exec in %s/%s (%s) exited %s", namespace, pod, container, result.returncode
            )
        return result.stdout

    # ----------------------------
    # Manifest persistence
    # ----------------------------

    def inspect(
        self, dest_dir: str | Path, ref: ResourceReference, all_namespaces: bool = False
    ) -> None:
        args = ["adm", "inspect", f"--dest-dir={dest_dir}"]
        if all_namespaces:
            args.append("--all-namespaces")
        elif ref.namespace:
            args += ["-n", ref.namespace]
        args.append(ref.target)
        self._run(args)
