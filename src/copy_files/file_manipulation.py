from __future__ import annotations

import fnmatch
import os
import shutil
import stat
import subprocess  # noqa: S404
from pathlib import Path
from typing import TYPE_CHECKING

from copy_files.config import (
    LARGE_FILE_MIME_CATEGORIES,
    MAX_TEXT_BYTES,
    MIME_EMPTY,
    MIME_OCTET_STREAM,
    MIME_TEXT_PLAIN,
    SHEBANG,
    SNIFF_BYTES,
    TEXT_MIME_TYPES,
    ResolvedTargets,
    TargetKind,
)
from copy_files.exceptions import FileReadError, ToolInvocationError, ToolNotFoundError
from copy_files.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def display_path(path: str) -> str:
    """Strip a leading `./` from a path for display."""
    return path.removeprefix("./")


def absolute_path(path: str) -> str:
    """Absolute, normalized form of `path`; symlinks are not resolved."""
    return os.path.abspath(path)


def base_name(path: str) -> str:
    """Last component of `path`, ignoring trailing separators (`dir/` gives `dir`)."""
    return os.path.basename(os.path.normpath(path))


def path_forms(path: str) -> tuple[str, str, str]:
    """Return the three representations skip patterns are matched against.

    Args:
        path (str): the path as given on the command line or produced by the walk

    Returns:
        tuple[str, str, str]: base name, the path itself and its absolute form
    """
    return base_name(path), path, absolute_path(path)


def matches_skip_pattern(patterns: Sequence[str], candidates: Iterable[str]) -> str | None:
    """Find the first pattern matching any of the candidate path representations.

    Matching is case-sensitive and `*` also matches `/`, so `*/build/*` works
    against full paths.

    Args:
        patterns (Sequence[str]): the skip globs, checked in order
        candidates (Iterable[str]): representations of one path (base name, relative, absolute)

    Returns:
        str | None: the first matching pattern, or None when nothing matches
    """
    forms = [c for c in candidates if c]
    for pattern in patterns:
        if any(fnmatch.fnmatchcase(form, pattern) for form in forms):
            return pattern
    return None


def is_regular_file(path: str) -> bool:
    """Check if a path is a regular file, without following symlinks.

    Args:
        path (str): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode)


def classify_target(target: str) -> TargetKind:
    """Classify a positional target by looking at the filesystem now.

    Args:
        target (str): the user-supplied target

    Returns:
        TargetKind: FILE for an existing regular file, DIRECTORY for an existing
            directory, PATTERN otherwise
    """
    if os.path.isfile(target):
        return TargetKind.FILE
    if os.path.isdir(target):
        return TargetKind.DIRECTORY
    return TargetKind.PATTERN


def resolve_targets(targets: Sequence[str], *, recursive: bool) -> ResolvedTargets:
    """Partition targets into explicit files, search directories and name patterns.

    - No targets at all means searching ".".
    - In recursive mode, patterns with neither files nor directories search ".".
    - Patterns with no directory outside recursive mode are unused; a warning is logged.

    Args:
        targets (Sequence[str]): positional targets in command-line order
        recursive (bool): whether recursive mode is on

    Returns:
        ResolvedTargets: the partitioned targets
    """
    files: list[str] = []
    search_dirs: list[str] = []
    name_patterns: list[str] = []
    buckets = {
        TargetKind.FILE: files,
        TargetKind.DIRECTORY: search_dirs,
        TargetKind.PATTERN: name_patterns,
    }
    for target in targets:
        buckets[classify_target(target)].append(target)

    if not targets:
        search_dirs.append(".")

    if recursive and not search_dirs and not files and name_patterns:
        logger.info(
            "No search directory specified with -a and patterns. Defaulting search to current directory '.'",
        )
        search_dirs.append(".")

    if name_patterns and not search_dirs and not recursive:
        logger.warning(
            "Name patterns %s provided without -a and no directories specified. Nothing to search.",
            name_patterns,
        )

    return ResolvedTargets(files=files, search_dirs=search_dirs, name_patterns=name_patterns)


def _log_walk_error(err: OSError) -> None:
    logger.warning("Cannot list directory %s: %s", err.filename, err.strerror)


def walk_search_dirs(
    search_dirs: Sequence[str],
    *,
    recursive: bool,
    name_patterns: Sequence[str],
    skip_patterns: Sequence[str],
) -> list[str]:
    """Collect candidate files under `search_dirs`.

    Directories matching a skip pattern (by base name, walked path or absolute
    path) are pruned, including a search directory itself. Files must be regular,
    match at least one name pattern when any are given, and must not match a skip
    pattern by walked path or base name.

    Args:
        search_dirs (Sequence[str]): directories to walk, as given
        recursive (bool): descend into subdirectories; otherwise only direct children
        name_patterns (Sequence[str]): globs a file's base name must match (any of them)
        skip_patterns (Sequence[str]): globs excluding files and directories

    Returns:
        list[str]: walked file paths from every search directory, sorted together
    """
    found: list[str] = []
    for search_dir in search_dirs:
        pattern = matches_skip_pattern(skip_patterns, path_forms(search_dir))
        if pattern is not None:
            logger.info("Skipping directory %s due to pattern '%s'", search_dir, pattern)
            continue

        for root, dirs, files in os.walk(search_dir, onerror=_log_walk_error):
            kept_dirs: list[str] = []
            for d in dirs:
                sub = os.path.join(root, d)
                pattern = matches_skip_pattern(skip_patterns, path_forms(sub))
                if pattern is None:
                    kept_dirs.append(d)
                else:
                    logger.debug("Pruning directory %s due to pattern '%s'", sub, pattern)
            dirs[:] = kept_dirs if recursive else []

            for name in files:
                path = os.path.join(root, name)
                if not is_regular_file(path):
                    continue
                if name_patterns and not any(fnmatch.fnmatchcase(name, p) for p in name_patterns):
                    continue
                pattern = matches_skip_pattern(skip_patterns, (name, path))
                if pattern is not None:
                    logger.debug("Skipping file %s due to pattern '%s'", path, pattern)
                    continue
                found.append(path)
    return sorted(found)


def run_tool(command: Sequence[str]) -> str:
    """Run an external tool and return its stdout.

    Args:
        command (Sequence[str]): the program followed by its arguments

    Raises:
        ToolNotFoundError: if the program is not on PATH.
        ToolInvocationError: if it cannot be started or exits non-zero.

    Returns:
        str: the captured stdout
    """
    if shutil.which(command[0]) is None:
        raise ToolNotFoundError(tool=command[0])
    try:
        out = subprocess.run(
            list(command),
            text=True,
            capture_output=True,
            check=False,
            errors="replace",
        )
    except OSError as e:
        raise ToolInvocationError(
            command=" ".join(command),
            returncode=-1,
            stdout="",
            stderr=str(e),
        ) from e
    if out.returncode != 0:
        raise ToolInvocationError(
            command=" ".join(command),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return out.stdout


def sniff_text_utf8(path: str, nbytes: int = SNIFF_BYTES) -> bool:
    """Check if path points to a utf-8 encoded text file.

    Args:
        path (str): path to test.
        nbytes (int, optional): number of bytes to read for testing. Defaults to 4096.

    Returns:
        bool: True if the leading bytes decode as utf-8, False otherwise.
    """
    try:
        with Path(path).open("rb") as f:
            chunk = f.read(nbytes)
        chunk.decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    else:
        return True


def guess_mime_type(path: str) -> str:
    """Local stand-in for `file --mime-type`: empty, utf-8 text, or opaque bytes."""
    try:
        if Path(path).stat().st_size == 0:
            return MIME_EMPTY
    except OSError:
        return MIME_OCTET_STREAM
    return MIME_TEXT_PLAIN if sniff_text_utf8(path) else MIME_OCTET_STREAM


def probe_mime_type(path: str) -> str:
    """Probe the declared content type of a file with `file -b --mime-type`.

    Falls back to `guess_mime_type` when `file` is missing or fails.

    Args:
        path (str): the file to probe

    Returns:
        str: a mime type such as "text/plain" or "inode/x-empty"
    """
    try:
        mime = run_tool(["file", "-b", "--mime-type", "--", path]).strip()
    except ToolNotFoundError:
        return guess_mime_type(path)
    except ToolInvocationError as e:
        logger.debug("Mime probe failed for %s: %s", path, e)
        return guess_mime_type(path)
    return mime or guess_mime_type(path)


def starts_with_shebang(path: str) -> bool:
    """Check whether the first line of a file starts with `#!`."""
    try:
        with Path(path).open("rb") as f:
            return f.read(len(SHEBANG)) == SHEBANG
    except OSError:
        return False


def is_textlike_mime(mime: str) -> bool:
    """Whether a probed mime type is accepted as text without further checks."""
    return mime.startswith("text/") or mime in TEXT_MIME_TYPES


def is_text_file(path: str, *, max_bytes: int = MAX_TEXT_BYTES) -> bool:
    """Decide whether a file should be embedded as text.

    The checks run in order and the first conclusive one wins:

    1. unreadable files are excluded;
    2. files above `max_bytes` are kept only if their mime category is text or inode;
    3. text-like mime types (text/*, json, xml, scripts, executables, empty) are kept;
    4. `application/octet-stream` files starting with a shebang are kept;
    5. zero-length files are kept;
    6. everything else is excluded.

    Args:
        path (str): the candidate file, already filtered by skip patterns
        max_bytes (int): size above which only text/inode mime categories pass

    Returns:
        bool: True to include the file, False to skip it
    """
    logger.debug("Checking text content of %s", path)
    if not os.access(path, os.R_OK):
        logger.info("Cannot read file %s. Skipping.", path)
        return False
    try:
        size = Path(path).stat().st_size
    except OSError as e:
        logger.info("Cannot stat file %s: %s. Skipping.", path, e)
        return False

    mime = probe_mime_type(path)
    logger.debug("MIME type for %s is %s", path, mime)

    if size > max_bytes:
        category = mime.split("/", 1)[0]
        if category not in LARGE_FILE_MIME_CATEGORIES:
            logger.info(
                "Skipping large file (> %s bytes): %s (mime prefix: %s)",
                max_bytes,
                path,
                category or "?",
            )
            return False

    if is_textlike_mime(mime):
        return True
    if mime == MIME_OCTET_STREAM and starts_with_shebang(path):
        logger.debug("Shebang found in %s, keeping it as text", path)
        return True
    if size == 0:
        return True

    logger.info("Skipping non-text file %s (mime: %s)", path, mime)
    return False


def read_file_bytes(path: str) -> bytes:
    """Read the full content of a file.

    Args:
        path (str): the file to read

    Raises:
        FileReadError: if the file vanished or cannot be read.

    Returns:
        bytes: the raw content
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise FileReadError(path=path, reason=e.strerror or str(e)) from e
