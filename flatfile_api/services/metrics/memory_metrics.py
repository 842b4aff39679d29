from __future__ import annotations

from flatfile_api.services.metrics.interface import MetricsInterface


def _key(name: str, tags: dict[str, str] | None) -> tuple[str, tuple[tuple[str, str], ...]]:
    return name, tuple(sorted((tags or {}).items()))


class MemoryMetrics(MetricsInterface):
    """In-memory metrics for test assertions.

    ``counters`` aggregates by name only. ``tagged_counters`` keeps a separate
    total per (name, tags) pair so tests can assert on label values.
    """

    def __init__(self) -> None:
        self.counters: dict[str, float] = {}
        self.tagged_counters: dict[tuple[str, tuple[tuple[str, str], ...]], float] = {}
        self.histograms: dict[str, list[float]] = {}

    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        self.counters[name] = self.counters.get(name, 0) + value
        key = _key(name, tags)
        self.tagged_counters[key] = self.tagged_counters.get(key, 0) + value

    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.histograms.setdefault(name, []).append(value)

    def count(self, name: str, **tags: str) -> float:
        """Total for *name* with exactly the given tags."""
        return self.tagged_counters.get(_key(name, tags), 0)
