"""Root-level pytest fixtures: in-memory services and an aiohttp test client."""

from __future__ import annotations

import pytest
from aiohttp.test_utils import TestClient, TestServer

from flatfile_api.files.routes import create_app
from flatfile_api.services.filesystem.memory_filesystem import MemoryFileSystem
from flatfile_api.services.logger.memory_logger import MemoryLogger
from flatfile_api.services.metrics.memory_metrics import MemoryMetrics


@pytest.fixture
def fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def log() -> MemoryLogger:
    return MemoryLogger()


@pytest.fixture
def metrics() -> MemoryMetrics:
    return MemoryMetrics()


@pytest.fixture
async def client(fs, log, metrics):
    """Test client for the API under the default /api prefix, backed by ``fs``."""
    cli = TestClient(TestServer(create_app(fs, log, metrics)))
    await cli.start_server()
    yield cli
    await cli.close()
