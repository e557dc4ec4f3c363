class GatherError(Exception):
    """Base class for failures raised while collecting the bundle."""


class ClusterCommandError(GatherError):
    """
    A cluster CLI call exited non-zero (or could not be started).
    """

    def __init__(self, command: list[str], returncode: int | None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        super().__init__(
            f"{' '.join(command)} failed (exit {returncode}): {self.stderr}"
        )


class ResourceNotFound(ClusterCommandError):
    pass


class OperatorNotFound(GatherError):
    pass
