from __future__ import annotations

from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field

OUTPUT_FILE_NAME = "output.txt"
MAX_TEXT_BYTES = 20 * 1024 * 1024
TREE_DEPTH = 3
SNIFF_BYTES = 4096

MIME_EMPTY = "inode/x-empty"
MIME_OCTET_STREAM = "application/octet-stream"
MIME_TEXT_PLAIN = "text/plain"

TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/javascript",
        "application/x-sh",
        "application/x-python",
        "application/x-perl",
        "application/x-executable",
        MIME_EMPTY,
    },
)
LARGE_FILE_MIME_CATEGORIES = frozenset({"text", "inode"})

SHEBANG = b"#!"

EMPTY_FILE_MARKER = "(empty file)"
READ_ERROR_MARKER = "(Error reading file content)"


class TargetKind(StrEnum):
    """What a positional target names once checked against the filesystem."""

    FILE = auto()
    DIRECTORY = auto()
    PATTERN = auto()


class ContentState(StrEnum):
    """How a processed file's content is rendered in the output."""

    TEXT = auto()
    EMPTY = auto()
    READ_ERROR = auto()


class ResolvedTargets(BaseModel):
    """Positional targets partitioned by kind, each in command-line order.

    Attributes:
        files: Existing regular files given explicitly.
        search_dirs: Directories to walk (may include an implicit ".").
        name_patterns: Globs applied to base names during the walk.
    """

    model_config = ConfigDict(frozen=True)

    files: list[str] = Field(default_factory=list)
    search_dirs: list[str] = Field(default_factory=list)
    name_patterns: list[str] = Field(default_factory=list)


class ProcessedFile(BaseModel):
    """A file accepted into the output.

    Attributes:
        abs_path: Absolute path, used as the deduplication key.
        display_path: Path as given or walked, without a leading "./".
        index: 1-based ordinal in emission order.
        content: Raw bytes (empty unless `state` is TEXT).
        state: Which of the content renderings applies.
    """

    model_config = ConfigDict(frozen=True)

    abs_path: str = Field(..., description="Absolute file path")
    display_path: str = Field(..., description="Path shown in the output")
    index: int = Field(..., ge=1, description="Ordinal in the output")
    content: bytes = Field(default=b"", description="Raw file content")
    state: ContentState = Field(default=ContentState.TEXT)
