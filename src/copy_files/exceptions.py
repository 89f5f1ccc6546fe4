from dataclasses import dataclass


@dataclass(frozen=True)
class CopyFilesError(Exception):
    """Base exception for errors in the copy_files package."""


@dataclass(frozen=True)
class ToolNotFoundError(CopyFilesError):
    """Raised when an external tool is not available on PATH."""

    tool: str

    def __str__(self) -> str:
        return f"'{self.tool}' command not found"


@dataclass(frozen=True)
class ToolInvocationError(CopyFilesError):
    """Raised when an external tool exits with a failure."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        return f"{self.command!r} exited with status {self.returncode}: {self.stderr.strip()}"


@dataclass(frozen=True)
class FileReadError(CopyFilesError):
    """Raised when a file cannot be read."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"cannot read {self.path}: {self.reason}"
