"""Shutdown orchestration: signal handling and ordered cleanup hooks."""

from __future__ import annotations

import asyncio
import inspect
import signal
from typing import Any, Awaitable, Callable, Union

ShutdownHook = Union[Callable[[], None], Callable[[], Awaitable[None]]]


class LifecycleManager:
    def __init__(self) -> None:
        self._hooks: list[ShutdownHook] = []
        self._shutting_down = False
        self._shutdown_done = False
        self.hook_errors: list[BaseException] = []

    @property
    def is_shutting_down(self) -> bool:
        """Service loops poll this to know when to stop."""
        return self._shutting_down

    def on_shutdown(self, callback: ShutdownHook) -> None:
        """Register a cleanup callback. Executed in reverse order on shutdown."""
        self._hooks.append(callback)

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Register SIGTERM and SIGINT handlers.

        With a *loop*, uses loop.add_signal_handler (async-safe); otherwise
        falls back to signal.signal.
        """
        if loop is not None:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._trigger_shutdown_from_signal)
        else:
            for sig in (signal.SIGTERM, signal.SIGINT):
                signal.signal(sig, self._handle_signal)

    def request_shutdown(self) -> None:
        """Ask polling loops to stop without running hooks yet."""
        self._shutting_down = True

    async def shutdown(self) -> None:
        """Run every hook once, newest first."""
        if self._shutdown_done:
            return
        self._shutting_down = True
        self._shutdown_done = True

        for hook in reversed(self._hooks):
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                # One failing hook must not prevent the others from running.
                self.hook_errors.append(exc)

    def _handle_signal(self, signum: int, frame: Any) -> None:
        self._shutting_down = True

    def _trigger_shutdown_from_signal(self) -> None:
        if not self._shutting_down:
            self._shutting_down = True
            asyncio.get_running_loop().create_task(self.shutdown())
