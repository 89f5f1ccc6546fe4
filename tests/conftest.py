from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"


@pytest.fixture
def no_external_tools(mocker: MockerFixture) -> MagicMock:
    """Hide `file` and `tree` from PATH and stub the clipboard.

    Returns:
        MagicMock: the stubbed `pyperclip.copy`
    """
    mocker.patch("shutil.which", return_value=None)
    return mocker.patch("pyperclip.copy")


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from inside `tmp_path`, without any COPY_FILES_* configuration."""
    for name in ("OUTPUT", "MAX_TEXT_BYTES", "TREE_DEPTH", "LOG_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(f"COPY_FILES_{name}", raising=False)
    monkeypatch.setattr("copy_files.settings.ENV_FILE", "")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def make_file() -> Callable[..., Path]:
    """Return a helper writing text or bytes to a path, creating parent directories."""

    def write(path: Path, content: str | bytes = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return write


@pytest.fixture
def only_tree_installed(no_external_tools: MagicMock, mocker: MockerFixture) -> MagicMock:
    """Like `no_external_tools`, but `tree` is found on PATH.

    Returns:
        MagicMock: the stubbed `pyperclip.copy`
    """
    mocker.patch("shutil.which", side_effect=lambda name: "/usr/bin/tree" if name == "tree" else None)
    return no_external_tools
