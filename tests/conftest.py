"""
Shared pytest fixtures for the extractor test suite.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import logging
import os
import sys

_tests_dir = os.path.dirname(__file__)
_root_dir = os.path.join(_tests_dir, "..")
for _p in (_tests_dir, _root_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

import pytest

from factories import FakeConverter, write_paper

from ets_extract.dispatcher import PositionalDispatcher
from ets_extract.renderer import DocumentRenderer


# ─── pytest fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def paper_dir(tmp_path):
    return write_paper(tmp_path / "165519")


@pytest.fixture
def sheet(paper_dir):
    return PositionalDispatcher().extract(paper_dir)


@pytest.fixture
def renderer():
    return DocumentRenderer()


@pytest.fixture
def fake_converter():
    return FakeConverter()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the engine attaches so streams don't leak between tests."""
    yield
    package_logger = logging.getLogger("ets_extract")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
