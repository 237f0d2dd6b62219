"""
Shared fixtures for the filedesk test suite.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from filedesk.config import Settings
from filedesk.main import create_app
from filedesk.services.converters import build_default_registry
from filedesk.services.renderers import ReportLabRenderer
from filedesk.services.storage import StorageManager
from filedesk.services.tracker import ConversionTaskTracker


@pytest.fixture
def storage(tmp_path: Path) -> StorageManager:
    """Storage manager over an existing temporary directory."""
    manager = StorageManager(tmp_path / "storage")
    manager.ensure_ready()
    return manager


@pytest.fixture
def tracker(storage: StorageManager) -> ConversionTaskTracker:
    """Tracker with the default registry and passthrough enabled."""
    registry = build_default_registry(ReportLabRenderer(), allow_passthrough=True)
    return ConversionTaskTracker(storage, registry)


@pytest.fixture
def make_upload(storage: StorageManager):
    """Write bytes into storage under a generated name, as an upload would be."""

    def _make(content: bytes, extension: str) -> Path:
        path = storage.new_path(extension)
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary storage directory."""
    return Settings(
        STORAGE_DIR=str(tmp_path / "uploads"),
        ALLOWED_HOSTS=["*"],
        ENVIRONMENT="development",
        DEBUG=True,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(test_settings: Settings):
    """Test client running the application lifespan."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client
