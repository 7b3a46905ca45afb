"""Error hierarchy for exo-components.

Every error raised while discovering, packaging, or declaring components
inherits from ExoComponentsError so a Pulumi program can catch them in one place.
"""

from pathlib import Path


class ExoComponentsError(Exception):
    """Base error for all exo-components operations."""


class ConfigError(ExoComponentsError):
    """Invalid or missing component configuration."""


class NotFoundError(ExoComponentsError):
    """An expected file or directory does not exist."""

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = Path(path)
        super().__init__(message or f"Not found: {self.path}")


class BuildCommandError(ExoComponentsError):
    """A build command exited non-zero or ran past its time limit.

    Attributes:
        command: The shell command as it was run.
        exit_code: Process exit status, or *None* when the command timed out.
        timed_out: True when the command was killed for exceeding its limit.
        output: Tail of the combined stdout/stderr, for diagnosis.

    """

    def __init__(
        self,
        command: str,
        exit_code: int | None,
        *,
        timed_out: bool = False,
        output: str = "",
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.timed_out = timed_out
        self.output = output
        if timed_out:
            reason = "timed out"
        else:
            reason = f"exited with status {exit_code}"
        msg = f"Build command {command!r} {reason}"
        if output:
            msg = f"{msg}:\n{output}"
        super().__init__(msg)

    @property
    def reason(self) -> str:
        return "timed out" if self.timed_out else "non-zero exit"


class PackagingError(ExoComponentsError):
    """Writing a deployable archive failed."""
