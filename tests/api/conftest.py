"""Fixtures for HTTP dashboard API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

import atask.dashboard as dash_module
from atask.core import AtaskDB
from atask.dashboard import create_app


@pytest.fixture
def dashboard_db(populated_db: AtaskDB) -> AtaskDB:
    """The populated store, reconnected so it can be shared with the ASGI app."""
    populated_db.reconnect(check_same_thread=False)
    return populated_db


@pytest.fixture
async def client(dashboard_db: AtaskDB) -> AsyncIterator[AsyncClient]:
    """Create a test client backed by the populated DB."""
    dash_module._db = dashboard_db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._db = None
