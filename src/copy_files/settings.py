from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from copy_files.config import MAX_TEXT_BYTES, OUTPUT_FILE_NAME, TREE_DEPTH

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "COPY_FILES_"

_ENV_FIELDS = ("output", "max_text_bytes", "tree_depth", "log_file", "log_level")


class Settings(BaseModel):
    """Configuration settings for a single copy_files run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    recursive: bool = Field(default=False, description="Search target directories recursively.")
    skip_patterns: list[str] = Field(
        default_factory=list,
        description="Globs excluding files and directories.",
    )
    targets: list[str] = Field(
        default_factory=list,
        description="Files, directories or name globs.",
    )

    output: Path = Field(
        default=Path(OUTPUT_FILE_NAME),
        description="Output file, relative to the working directory.",
    )
    max_text_bytes: int = Field(
        default=MAX_TEXT_BYTES,
        ge=0,
        description="Files above are kept only if probed as text.",
    )
    tree_depth: int = Field(default=TREE_DEPTH, ge=1, description="Depth limit of the tree report.")
    log_file: str = Field(default="", description="Log file path.")
    log_level: str = Field(default="INFO", description="Minimum log level.")

    @classmethod
    def from_env(
        cls,
        environ: dict[str, str] | None = None,
        env_file: str | None = None,
        **overrides: Any,  # noqa: ANN401
    ) -> Settings:
        """Build settings from a `.env` file, the process environment and explicit overrides.

        Precedence, lowest first: `.env` values, environment variables, `overrides`.
        Only variables prefixed with `COPY_FILES_` are considered.

        Args:
            environ: Environment mapping; defaults to `os.environ`.
            env_file: Path to a dotenv file; defaults to the one found from the working directory.
            **overrides: Field values taken from the command line.

        Returns:
            Settings: the merged, validated settings.
        """
        dotenv_file = ENV_FILE if env_file is None else env_file
        merged: dict[str, str | None] = dict(dotenv_values(dotenv_file)) if dotenv_file else {}
        merged.update(os.environ if environ is None else environ)

        values: dict[str, Any] = {}
        for name in _ENV_FIELDS:
            raw = merged.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update(overrides)
        return cls(**values)

    def output_path(self, cwd: Path | None = None) -> Path:
        """Return the output file resolved against `cwd` (the working directory by default)."""
        base = Path.cwd() if cwd is None else cwd
        return self.output if self.output.is_absolute() else base / self.output
