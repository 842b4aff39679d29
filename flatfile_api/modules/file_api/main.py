"""Flat File API service module.

Serves the generic (``/hello``), CSV (``/csv``) and JSON (``/json``) file
families over the storage backend selected with ``--fs``. See
:mod:`flatfile_api.files.routes` for the endpoint list.

Run::

    python -m flatfile_api run file_api --fs local \\
        --env '{"FS_LOCAL_ROOT": "./storage"}' --port 8000
"""

from __future__ import annotations

import asyncio

from aiohttp import web

from flatfile_api.config.context import ModuleConfig
from flatfile_api.files.routes import create_app, normalize_prefix
from flatfile_api.modules.base import Module
from flatfile_api.services.filesystem.interface import FileSystemInterface
from flatfile_api.services.lifecycle.lifecycle_manager import LifecycleManager
from flatfile_api.services.logger.factory import LoggerFactory
from flatfile_api.services.logger.interface import LoggingInterface
from flatfile_api.services.metrics.interface import MetricsInterface


class FileApiModule(Module):
    log: LoggingInterface

    def __init__(
        self,
        config: ModuleConfig,
        logger: LoggerFactory,
        fs: FileSystemInterface,
        metrics: MetricsInterface,
        lifecycle: LifecycleManager,
    ) -> None:
        self.config = config
        self.logger = logger
        self.fs = fs
        self.metrics = metrics
        self.lifecycle = lifecycle
        self._runner: web.AppRunner | None = None

    async def initialize(self) -> None:
        self.log = self.logger.create()
        self.port = int(self.config.get("port", 8000))
        self.host = self.config.get("host", "0.0.0.0")
        self.prefix = normalize_prefix(self.config.get("prefix", "/api"))

    async def validate(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {self.port}")
        if not self.fs.health_check():
            self.log.error("Storage backend is not writable", module="file_api")
            raise ValueError("storage backend failed its health check")

    def create_app(self) -> web.Application:
        return create_app(self.fs, self.log, self.metrics, prefix=self.prefix)

    async def execute(self) -> int:
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()

        self.log.info("File API listening", host=self.host, port=self.port, prefix=self.prefix or "/")
        self.lifecycle.on_shutdown(self._stop_server)

        while not self.lifecycle.is_shutting_down:
            await asyncio.sleep(0.1)

        self.log.info("File API stopping")
        return 0

    async def teardown(self) -> None:
        await self._stop_server()

    async def _stop_server(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None


module_class = FileApiModule
