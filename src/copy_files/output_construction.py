from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pyperclip

from copy_files.config import (
    EMPTY_FILE_MARKER,
    MAX_TEXT_BYTES,
    READ_ERROR_MARKER,
    TREE_DEPTH,
    ContentState,
    ProcessedFile,
)
from copy_files.exceptions import FileReadError, ToolInvocationError, ToolNotFoundError
from copy_files.file_manipulation import (
    absolute_path,
    display_path,
    is_text_file,
    matches_skip_pattern,
    path_forms,
    read_file_bytes,
    run_tool,
)
from copy_files.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


@dataclass
class RunContext:
    """Mutable state of one invocation: emitted blocks and the paths already seen.

    Attributes:
        skip_patterns: Globs checked again for every file before it is emitted.
        max_text_bytes: Size threshold handed to the text classifier.
        blocks: Files accepted so far, in emission order.
        seen: Absolute paths of accepted files; the first occurrence of a path wins.
    """

    skip_patterns: Sequence[str] = ()
    max_text_bytes: int = MAX_TEXT_BYTES
    blocks: list[ProcessedFile] = field(default_factory=list)
    seen: set[str] = field(default_factory=set)

    @property
    def next_index(self) -> int:
        return len(self.blocks) + 1

    def process_file(self, path: str) -> ProcessedFile | None:
        """Run one file through dedup, skip and text checks, then read and record it.

        Args:
            path (str): the file as given or walked

        Returns:
            ProcessedFile | None: the recorded block, or None when the file is skipped
        """
        abs_path = absolute_path(path)
        if abs_path in self.seen:
            logger.debug("Already processed %s", path)
            return None

        pattern = matches_skip_pattern(self.skip_patterns, path_forms(path))
        if pattern is not None:
            logger.debug("Skipping %s due to pattern '%s'", path, pattern)
            return None

        if not is_text_file(path, max_bytes=self.max_text_bytes):
            return None

        self.seen.add(abs_path)
        try:
            content = read_file_bytes(path)
        except FileReadError as e:
            logger.warning("Error reading file: %s", e)
            content, state = b"", ContentState.READ_ERROR
        else:
            state = ContentState.TEXT if content else ContentState.EMPTY

        rec = ProcessedFile(
            abs_path=abs_path,
            display_path=display_path(path),
            index=self.next_index,
            content=content,
            state=state,
        )
        self.blocks.append(rec)
        return rec

    def process_explicit_files(self, files: Sequence[str]) -> int:
        """Process files named on the command line, skipping those matching a skip pattern.

        Args:
            files (Sequence[str]): explicit file targets in command-line order

        Returns:
            int: how many files were handed to `process_file`
        """
        handed = 0
        for path in files:
            pattern = matches_skip_pattern(self.skip_patterns, path_forms(path))
            if pattern is not None:
                logger.info("Skipping specified file due to pattern '%s': %s", pattern, path)
                continue
            self.process_file(path)
            handed += 1
        return handed

    def render(self, tree_report: str = "") -> bytes:
        """Render the tree report followed by every block, separated by blank lines."""
        body = b"\n".join(render_block(rec) for rec in self.blocks)
        return tree_report.encode("utf-8") + body


def render_block(rec: ProcessedFile) -> bytes:
    """Render one `N. path:` block, newline-terminated.

    Trailing newlines of the content are collapsed into the single terminating one.

    Args:
        rec (ProcessedFile): the file to render

    Returns:
        bytes: the block
    """
    header = f"{rec.index}. ".encode() + os.fsencode(rec.display_path) + b":\n"
    if rec.state == ContentState.READ_ERROR:
        body = READ_ERROR_MARKER.encode()
    elif rec.state == ContentState.EMPTY:
        body = EMPTY_FILE_MARKER.encode()
    else:
        body = rec.content.rstrip(b"\n")
    return header + body + b"\n"


def build_tree_report(
    search_dirs: Sequence[str],
    skip_patterns: Sequence[str],
    depth: int = TREE_DEPTH,
) -> str:
    """Render a `tree` listing for each search directory.

    Directories matching a skip pattern get a placeholder instead of a listing,
    and so do failed invocations. When `tree` is not installed, nothing is rendered.

    Args:
        search_dirs (Sequence[str]): directories as given (or the implicit ".")
        skip_patterns (Sequence[str]): globs passed to `tree -I` and checked against each directory
        depth (int): the `tree -L` depth limit

    Returns:
        str: the report, or an empty string when there is nothing to show
    """
    if not search_dirs:
        return ""
    if shutil.which("tree") is None:
        logger.warning(
            "'tree' command not found. Skipping directory structure generation. "
            "(Install with 'apt install tree' or 'brew install tree')",
        )
        return ""

    command = ["tree", "-L", str(depth)]
    for pattern in skip_patterns:
        command.extend(["-I", pattern])

    parts = [
        "Directory Structure:\n",
        f"Based on: {' '.join(search_dirs)}. Skipped items might not appear if filtered by 'tree -I'.\n\n",
    ]
    for directory in search_dirs:
        pattern = matches_skip_pattern(skip_patterns, path_forms(directory))
        if pattern is not None:
            parts.append(f"Tree for '{directory}': (Skipped based on pattern '{pattern}')\n\n")
            continue
        if not os.path.isdir(directory):
            if directory != ".":
                parts.append(f"Tree for '{directory}': (Not a directory)\n\n")
            continue
        try:
            listing = run_tool([*command, directory])
        except (ToolNotFoundError, ToolInvocationError) as e:
            logger.warning("Tree generation failed for %s: %s", directory, e)
            parts.append(
                f"Tree for '{directory}':\n"
                f"  (Could not generate tree for '{directory}' - possibly invalid or permissions issue)\n\n",
            )
            continue
        listing = listing.rstrip("\n")
        parts.append(f"Tree for '{directory}':\n{listing}\n\n")

    logger.info("Generated directory tree structure for %s", list(search_dirs))
    return "".join(parts)


def write_output(content: bytes, output: Path) -> bool:
    """Write the combined output, or truncate/skip when there is nothing to write.

    Args:
        content (bytes): the rendered artifact
        output (Path): destination file

    Returns:
        bool: True if non-empty content was written
    """
    if not content.strip():
        if output.exists():
            logger.info("No text files processed or found. Clearing existing output file %s", output)
            output.write_bytes(b"")
        else:
            logger.info("No text files processed or found. Output file not created.")
        return False

    output.write_bytes(content)
    print(f"Combined output saved to: {output}")
    return True


def copy_to_clipboard(output: Path) -> bool:
    """Copy the output file's content to the system clipboard, best effort.

    Args:
        output (Path): the file written by `write_output`

    Returns:
        bool: True on success; failures are logged as warnings only
    """
    if not output.is_file():
        return False
    data = output.read_bytes()
    if not data:
        logger.info("Output file %s is empty. Nothing copied to clipboard.", output)
        return False
    try:
        pyperclip.copy(data.decode("utf-8", errors="replace"))
    except pyperclip.PyperclipException as e:
        logger.warning("Could not copy to clipboard; output is only saved to %s: %s", output, e)
        return False
    print("Output copied to clipboard successfully.")
    return True
