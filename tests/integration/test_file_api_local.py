"""End-to-end tests: the HTTP API over a real LocalFileSystem in tmp_path."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from aiohttp.test_utils import TestClient, TestServer

from flatfile_api.files.routes import create_app
from flatfile_api.services.filesystem.local_filesystem import LocalFileSystem
from flatfile_api.services.logger.memory_logger import MemoryLogger
from flatfile_api.services.metrics.memory_metrics import MemoryMetrics
from flatfile_api.services.secrets.env_secrets import EnvSecrets


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
async def local_client(root: Path):
    fs = LocalFileSystem(EnvSecrets(overrides={"FS_LOCAL_ROOT": str(root)}))
    fs.health_check()
    async with TestClient(TestServer(create_app(fs, MemoryLogger(), MemoryMetrics()))) as cli:
        yield cli


async def test_generic_lifecycle_on_disk(local_client: TestClient, root: Path):
    resp = await local_client.post("/api/hello", json={"filename": "notes.txt", "content": "línea 1\n"})
    assert resp.status == 200
    assert (root / "notes.txt").read_text(encoding="utf-8") == "línea 1\n"

    resp = await local_client.put("/api/hello/notes.txt", json={"content": "línea 2\n"})
    assert resp.status == 200
    resp = await local_client.get("/api/hello/notes.txt")
    assert (await resp.json())["contenido"] == "línea 2\n"

    resp = await local_client.delete("/api/hello/notes.txt")
    assert resp.status == 200
    assert not (root / "notes.txt").exists()
    resp = await local_client.get("/api/hello/notes.txt")
    assert resp.status == 404


async def test_listing_reflects_disk(local_client: TestClient, root: Path):
    (root / "people.csv").write_text("name,age\nAna,31\n\"Ruiz, Luis\",40\n")
    (root / "config.json").write_text(json.dumps({"debug": True}))
    (root / "broken.json").write_text("{")

    resp = await local_client.get("/api/hello")
    assert (await resp.json())["contenido"] == ["broken.json", "config.json", "people.csv"]

    resp = await local_client.get("/api/csv")
    assert (await resp.json())["contenido"] == ["people.csv"]

    resp = await local_client.get("/api/json")
    assert (await resp.json())["contenido"] == ["config.json"]

    resp = await local_client.get("/api/csv/people.csv")
    assert (await resp.json())["contenido"] == [
        {"name": "Ana", "age": "31"},
        {"name": "Ruiz, Luis", "age": "40"},
    ]


async def test_concurrent_creates_produce_one_winner(local_client: TestClient, root: Path):
    responses = await asyncio.gather(*(
        local_client.post("/api/json", json={"filename": "race.json", "content": json.dumps({"n": n})})
        for n in range(5)
    ))
    statuses = sorted(r.status for r in responses)
    assert statuses == [200, 409, 409, 409, 409]
    assert json.loads((root / "race.json").read_text())["n"] in range(5)


async def test_traversal_name_rejected(local_client: TestClient, root: Path):
    resp = await local_client.post("/api/hello", json={"filename": "../outside.txt", "content": "x"})
    assert resp.status == 422
    assert (await resp.json())["mensaje"] == "Nombre de fichero no válido"
    assert not (root.parent / "outside.txt").exists()


async def test_dot_prefixed_names_are_listed(local_client: TestClient, root: Path):
    resp = await local_client.post("/api/csv", json={"filename": ".tmp-report.csv", "content": "a,b\n1,2"})
    assert resp.status == 200
    resp = await local_client.get("/api/csv")
    assert (await resp.json())["contenido"] == [".tmp-report.csv"]

    resp = await local_client.post("/api/hello", json={"filename": ".staging", "content": "x"})
    assert resp.status == 422
    assert (await resp.json())["mensaje"] == "Nombre de fichero no válido"
