"""copy_files: combine the text content of files into a single output file.

Targets can be specific files, directories, or glob patterns. Explicit files come
first, then the files found in the target directories, sorted by path. Each file
becomes a numbered block:

    1. src/app.py:
    <content>

The result overwrites `output.txt` in the current directory and, when a clipboard
is available, is copied to it. A `tree` listing of the searched directories is
prepended when the `tree` command is installed.

Usage
-----
    # Options first: process all *.py recursively from the current dir, skip build/
    copy-files -a -s 'build' -- . "*.py"

    # Process a specific file and the files directly within dir1 (non-recursive)
    copy-files file1.txt dir1
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from pydantic import ValidationError

from copy_files import __version__
from copy_files.config import OUTPUT_FILE_NAME
from copy_files.file_manipulation import absolute_path, resolve_targets, walk_search_dirs
from copy_files.logging import logger, setup_logging
from copy_files.output_construction import (
    RunContext,
    build_tree_report,
    copy_to_clipboard,
    write_output,
)
from copy_files.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence

HELP_EXIT_CODE = 1

EPILOG = f"""\
Targets can be specific files, directories, or glob patterns (requires -a).
Options MUST come before targets; anything after the first target is a target.

Examples:
  # Options first: process all *.py recursively from current dir, skip build/
  %(prog)s -a -s 'build' -- . "*.py"

  # Process specific file and files directly within dir1 (non-recursive)
  %(prog)s file1.txt dir1

  # Process file1.py and recursively search dir1 for *.py files, skipping venv
  %(prog)s -a -s 'venv' file1.py dir1 "*.py"

Notes:
  - Uses 'file' and optionally 'tree' when installed.
  - Clipboard support needs a platform tool (xclip, xsel, wl-copy, pbcopy).
  - Quote patterns containing wildcards to prevent shell expansion.
  - A skip pattern starting with '-' must be attached: -s='-*.tmp' or -s'-*.tmp'.
  - Output file: {OUTPUT_FILE_NAME} (override with COPY_FILES_OUTPUT).
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="copy-files",
        description=(
            "Copy and format the contents of text files specified by targets to the "
            f"clipboard and save the combined output to '{OUTPUT_FILE_NAME}'."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    p.add_argument(
        "-a",
        dest="recursive",
        action="store_true",
        help=(
            "Process recursively. Search within target directories. Non-file/non-directory "
            "targets become glob patterns filtering the files found (e.g. '*.py')."
        ),
    )
    p.add_argument(
        "-s",
        dest="skip_patterns",
        metavar="PATTERN",
        action="append",
        default=[],
        help=(
            "Skip files or directories matching the glob pattern. Use 'dirname' or "
            "'*/dirname/*' to skip a directory. Repeatable."
        ),
    )
    p.add_argument("-h", "--help", action="store_true", help="Display this help message and exit.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("targets", nargs=argparse.REMAINDER, help="Files, directories or glob patterns.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse leading flags and the target list into settings.

    Flags are only recognised before the first target; later flag-like tokens are targets.

    Args:
        argv (Sequence[str] | None): arguments without the program name; defaults to sys.argv

    Returns:
        Settings: the run settings, merged with environment configuration
    """
    p = build_parser()
    args = p.parse_args(argv)
    if args.help:
        p.print_help()
        p.exit(HELP_EXIT_CODE)

    targets = list(args.targets)
    if targets and targets[0] == "--":
        targets = targets[1:]

    try:
        return Settings.from_env(
            recursive=args.recursive,
            skip_patterns=args.skip_patterns,
            targets=targets,
        )
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        p.error(f"invalid configuration ({problems})")


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file or settings.log_level.upper() != "INFO":
        setup_logging(settings.log_file or None, settings.log_level, force=True)

    output = settings.output_path()
    resolved = resolve_targets(settings.targets, recursive=settings.recursive)

    tree_report = build_tree_report(
        resolved.search_dirs,
        settings.skip_patterns,
        depth=settings.tree_depth,
    )

    ctx = RunContext(
        skip_patterns=settings.skip_patterns,
        max_text_bytes=settings.max_text_bytes,
    )
    # a previous run's output must not be collected into the next one
    ctx.seen.add(absolute_path(str(output)))

    if resolved.files:
        logger.info("Processing explicitly specified files...")
        handed = ctx.process_explicit_files(resolved.files)
        logger.info("Processed %d specific file(s).", handed)

    if resolved.search_dirs:
        logger.info("Searching in directories: %s", resolved.search_dirs)
        found = walk_search_dirs(
            resolved.search_dirs,
            recursive=settings.recursive,
            name_patterns=resolved.name_patterns,
            skip_patterns=settings.skip_patterns,
        )
        for path in found:
            ctx.process_file(path)
    else:
        logger.info("No search directories specified or implied.")

    logger.info("Processed %d total text file(s).", len(ctx.blocks))

    write_output(ctx.render(tree_report), output)
    copy_to_clipboard(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
