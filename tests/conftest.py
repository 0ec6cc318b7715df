"""Shared pytest fixtures for the gateway tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gsheets_gateway.app import create_app

TEST_API_KEY = "test-key-0123456789"


@pytest.fixture
def google_services() -> MagicMock:
    """Stand-in for GoogleServices; each API's ``execute()`` returns an empty dict by default."""
    services = MagicMock()
    sheets_values = services.sheets.spreadsheets.return_value.values.return_value
    for method in ("get", "update", "append", "clear"):
        getattr(sheets_values, method).return_value.execute.return_value = {}
    services.sheets.spreadsheets.return_value.get.return_value.execute.return_value = {}
    services.docs.documents.return_value.get.return_value.execute.return_value = {}
    services.docs.documents.return_value.batchUpdate.return_value.execute.return_value = {}
    for method in ("create", "get", "list", "delete"):
        getattr(services.drive.files.return_value, method).return_value.execute.return_value = {}
    services.analytics.reports.return_value.batchGet.return_value.execute.return_value = {}
    return services


@pytest.fixture
def app(tmp_path: Path, google_services: MagicMock):
    app = create_app({
        "TESTING": True,
        "DATABASE_URL": f"sqlite:///{tmp_path / 'keys.db'}",
        "GATEWAY_API_KEY": TEST_API_KEY,
        "DEFAULT_SPREADSHEET_ID": "default-sheet-id",
        "GOOGLE_SERVICES": google_services,
    })
    try:
        yield app
    finally:
        app.extensions["api_key_engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"x-api-key": TEST_API_KEY}


@pytest.fixture
def engine(app):
    return app.extensions["api_key_engine"]
