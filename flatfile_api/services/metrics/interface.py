from __future__ import annotations

from abc import ABC, abstractmethod


class MetricsInterface(ABC):
    """Sink for request metrics.

    The API middleware emits one ``counter`` per request and one ``histogram``
    observation of its duration, both tagged by service, family and method.
    """

    @abstractmethod
    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        """Add *value* to the counter *name* for the given tag set."""

    @abstractmethod
    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        """Record one observation, e.g. a request duration in seconds."""
