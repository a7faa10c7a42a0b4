"""Fixtures for core DB tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from atask.core import AtaskDB


@pytest.fixture
def memory_db() -> Generator[AtaskDB, None, None]:
    d = AtaskDB.in_memory()
    yield d
    d.close()
