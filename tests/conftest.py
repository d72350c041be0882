"""Shared fixtures for typesnap tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from typesnap.files import FileProvider

STUBS_DIR = Path(__file__).parent / "stubs"

AWESOME_APP = """\
class Api:
    def set_auth_token(self, token: str) -> None: ...

class Button:
    def click(self) -> None: ...

api: Api
logout: Button
save: Button
"""


@pytest.fixture
def stubs_dir() -> Path:
    return STUBS_DIR


@pytest.fixture
def provider() -> FileProvider:
    """Provider with the on-disk user_events stub and a synthetic application module."""
    return FileProvider(paths=[STUBS_DIR], files={"awesome_app.pyi": AWESOME_APP})


@pytest.fixture(scope="session")
def frontend():
    from typesnap.adapters.mypy import MypyFrontend

    return MypyFrontend()


@pytest.fixture
def make_stub_dir(tmp_path):
    """Create a directory holding the given ``name -> contents`` files."""

    def _make(dirname: str, files: dict[str, str]) -> Path:
        directory = tmp_path / dirname
        directory.mkdir()
        for name, contents in files.items():
            path = directory / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents)
        return directory

    return _make
