from __future__ import annotations

from flatfile_api.services.logger.interface import LoggingInterface
from flatfile_api.services.logger.memory_logger import MemoryLogger
from flatfile_api.services.logger.pretty_logger import PrettyLogger


class LoggerFactory:
    """Creates and caches logger instances by implementation name."""

    _registry: dict[str, type[LoggingInterface]] = {
        "pretty": PrettyLogger,
        "memory": MemoryLogger,
    }

    def __init__(self, default_impl: str = "pretty") -> None:
        self._check(default_impl)
        self._default_impl = default_impl
        self._instances: dict[str, LoggingInterface] = {}

    @property
    def default_impl(self) -> str:
        return self._default_impl

    def _check(self, name: str) -> None:
        if name not in self._registry:
            raise ValueError(
                f"Unknown logger implementation: '{name}' "
                f"(available: {', '.join(self._registry)})"
            )

    def create(self, impl_name: str | None = None) -> LoggingInterface:
        """Return a logger instance, creating one if not yet cached."""
        name = impl_name or self._default_impl
        if name not in self._instances:
            self._check(name)
            self._instances[name] = self._registry[name]()
        return self._instances[name]
