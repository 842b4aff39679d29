from __future__ import annotations

import os

from flatfile_api.services.secrets.interface import SecretsInterface


class EnvSecrets(SecretsInterface):
    """Settings from the process environment, with *overrides* layered on top.

    The runner builds the overrides from ``--env-file`` and ``--env``. Backends read
    ``FS_LOCAL_ROOT`` and ``METRICS_PROMETHEUS_PORT`` through it.
    """

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._env = dict(os.environ)
        if overrides:
            self._env.update(overrides)

    def get(self, key: str) -> str | None:
        return self._env.get(key)

    def get_or_default(self, key: str, default: str) -> str:
        return self._env.get(key, default)

    def require(self, key: str) -> str:
        value = self._env.get(key)
        if value is None:
            raise KeyError(f"Required setting '{key}' is not set")
        return value
