"""Fixtures for route tests: an app wired to a temp store and a mock registry."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import create_app
from core.app_store import AppStore
from core.constants import Settings


@pytest.fixture
def app(test_settings: Settings, store: AppStore, mock_mcp_manager: MagicMock) -> FastAPI:
    return create_app(settings=test_settings, store=store, mcp_manager=mock_mcp_manager)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    # Context manager runs the lifespan (startup sync + registry init)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
