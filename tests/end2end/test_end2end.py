from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from structlog.testing import capture_logs

from copy_files import cli

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path
    from unittest.mock import MagicMock


pytestmark = pytest.mark.end2end


def test_recursive_patterns_with_skip(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    a_content = "".join(f"a line {i}\n" for i in range(10))
    b_content = "".join(f"b line {i}\n" for i in range(5))
    make_file(workdir / "a.py", a_content)
    make_file(workdir / "sub" / "b.py", b_content)
    make_file(workdir / "sub" / "_test.py", "assert True\n")
    make_file(workdir / "README.md", "docs\n")

    exit_code = cli.main(["-a", "-s", "*_test.py", "*.py"])

    assert exit_code == 0
    content = (workdir / "output.txt").read_text(encoding="utf-8")
    assert content == f"1. a.py:\n{a_content}\n2. sub/b.py:\n{b_content}"
    assert "_test.py" not in content


def test_no_targets_reads_current_directory(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    make_file(workdir / "notes.txt", "first line\nsecond line\n")

    assert cli.main([]) == 0

    assert (workdir / "output.txt").read_text(encoding="utf-8") == "1. notes.txt:\nfirst line\nsecond line\n"


def test_missing_target_without_recursion_is_not_fatal(no_external_tools: MagicMock, workdir: Path) -> None:
    with capture_logs() as logs:
        exit_code = cli.main(["does-not-exist.txt"])

    assert exit_code == 0
    assert not (workdir / "output.txt").exists()
    assert any(log["log_level"] == "warning" and "does-not-exist.txt" in log["event"] for log in logs)
    no_external_tools.assert_not_called()


def test_runs_are_deterministic(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    for name in ("z.txt", "b/a.txt", "a/z.txt", "a/b/c.txt", "m.txt"):
        make_file(workdir / name, f"{name}\n")

    cli.main(["-a"])
    first = (workdir / "output.txt").read_bytes()
    cli.main(["-a"])
    second = (workdir / "output.txt").read_bytes()

    assert first == second
    assert b"output.txt" not in first
    assert first.index(b"a/b/c.txt") < first.index(b"a/z.txt") < first.index(b"b/a.txt") < first.index(b"m.txt")


def test_non_recursive_search_stays_at_depth_one(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    make_file(workdir / "dir" / "top.txt", "top\n")
    make_file(workdir / "dir" / "x" / "y" / "deep.txt", "deep\n")

    cli.main(["dir"])
    flat = (workdir / "output.txt").read_text(encoding="utf-8")
    cli.main(["-a", "dir"])
    recursive = (workdir / "output.txt").read_text(encoding="utf-8")

    assert flat == "1. dir/top.txt:\ntop\n"
    assert recursive == "1. dir/top.txt:\ntop\n\n2. dir/x/y/deep.txt:\ndeep\n"


def test_skipped_directory_hides_matching_files(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    make_file(workdir / "app.py", "app\n")
    make_file(workdir / "build" / "gen.py", "gen\n")
    make_file(workdir / "pkg" / "build" / "deep.py", "deep\n")

    cli.main(["-a", "-s", "build", "*.py"])

    assert (workdir / "output.txt").read_text(encoding="utf-8") == "1. app.py:\napp\n"


def test_binary_excluded_and_empty_included(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
    png_bytes: bytes,
) -> None:
    make_file(workdir / "logo.png", png_bytes)
    make_file(workdir / "empty.json", "")
    make_file(workdir / "run", "#!/bin/sh\necho hi\n")

    for argv in ([], ["-a"], ["logo.png", "."]):
        cli.main(argv)
        content = (workdir / "output.txt").read_text(encoding="utf-8")
        assert "logo.png" not in content
        assert content == "1. empty.json:\n(empty file)\n\n2. run:\n#!/bin/sh\necho hi\n"


def test_empty_result_truncates_previous_output(
    no_external_tools: MagicMock,
    workdir: Path,
    make_file: Callable[..., Path],
) -> None:
    make_file(workdir / "a.txt", "a\n")
    cli.main([])
    assert (workdir / "output.txt").read_text(encoding="utf-8")

    cli.main(["-s", "a.txt"])

    assert (workdir / "output.txt").read_bytes() == b""
