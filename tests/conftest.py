from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import FakeSource  # noqa: E402


@pytest.fixture
def knowit_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the workspace at a per-test directory."""

    home = tmp_path / "knowit-home"
    monkeypatch.setenv("KNOWIT_DATA_HOME", str(home))
    monkeypatch.delenv("KNOWIT_CONFIG", raising=False)
    return home


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture(autouse=True)
def _release_knowit_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("knowit")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
