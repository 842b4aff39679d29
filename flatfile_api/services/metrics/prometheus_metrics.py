"""Prometheus metrics implementation using prometheus_client."""

from __future__ import annotations

from typing import Any

from flatfile_api.services.metrics.interface import MetricsInterface
from flatfile_api.services.secrets.interface import SecretsInterface


class PrometheusMetrics(MetricsInterface):
    """Metrics backend that exposes a Prometheus scrape endpoint.

    Config (via secrets):
        METRICS_PROMETHEUS_PORT - Port to expose /metrics on (default: 9091).
                                  Set to 0 or empty to disable the HTTP server.

    Dashes and dots in metric names become underscores.
    """

    def __init__(self, secrets: SecretsInterface, registry: Any = None) -> None:
        import prometheus_client as prom

        self._prom = prom
        self._registry = registry if registry is not None else prom.REGISTRY
        self._metrics: dict[tuple[str, str, tuple[str, ...]], Any] = {}

        port_str = secrets.get_or_default("METRICS_PROMETHEUS_PORT", "9091")
        port = int(port_str) if port_str else 0
        if port:
            prom.start_http_server(port, registry=self._registry)

    @staticmethod
    def _sanitize(name: str) -> str:
        return name.replace("-", "_").replace(".", "_")

    def _get(self, kind: str, name: str, tags: dict[str, str] | None) -> Any:
        safe = self._sanitize(name)
        label_names = tuple(sorted(tags)) if tags else ()
        key = (kind, safe, label_names)
        if key not in self._metrics:
            cls = self._prom.Counter if kind == "counter" else self._prom.Histogram
            self._metrics[key] = cls(safe, safe, label_names, registry=self._registry)
        metric = self._metrics[key]
        if label_names:
            return metric.labels(*(tags[n] for n in label_names))
        return metric

    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        self._get("counter", name, tags).inc(value)

    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._get("histogram", name, tags).observe(value)
