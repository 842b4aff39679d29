from flatfile_api.services.metrics.interface import MetricsInterface


class NoopMetrics(MetricsInterface):
    """Used when the service runs without ``--metrics``."""

    def counter(self, name: str, value: float = 1, tags: dict[str, str] | None = None) -> None:
        return None

    def histogram(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        return None
