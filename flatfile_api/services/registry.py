"""Maps (flag, implementation name) to concrete class paths.

String paths keep imports lazy: importing the registry does not pull in
prometheus_client unless that implementation is selected.
"""

import importlib
from typing import Any

REGISTRY: dict[str, dict[str, str]] = {
    "fs": {
        "memory": "flatfile_api.services.filesystem.memory_filesystem.MemoryFileSystem",
        "local": "flatfile_api.services.filesystem.local_filesystem.LocalFileSystem",
    },
    "metrics": {
        "noop": "flatfile_api.services.metrics.noop_metrics.NoopMetrics",
        "memory": "flatfile_api.services.metrics.memory_metrics.MemoryMetrics",
        "prometheus": "flatfile_api.services.metrics.prometheus_metrics.PrometheusMetrics",
    },
    "secrets": {
        "env": "flatfile_api.services.secrets.env_secrets.EnvSecrets",
    },
}

# Flag name -> interface ABC used as the DI container key
INTERFACE_TYPES: dict[str, str] = {
    "fs": "flatfile_api.services.filesystem.interface.FileSystemInterface",
    "metrics": "flatfile_api.services.metrics.interface.MetricsInterface",
    "secrets": "flatfile_api.services.secrets.interface.SecretsInterface",
}


def resolve_class(dotted_path: str) -> type[Any]:
    """Import and return a class from a dotted module.ClassName path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def available(flag_name: str) -> list[str]:
    return list(REGISTRY.get(flag_name, {}))


def resolve_implementation(flag_name: str, impl_name: str) -> type[Any]:
    """Look up the concrete class for a given flag and implementation name."""
    impls = REGISTRY.get(flag_name)
    if impls is None:
        raise ValueError(f"Unknown interface flag: --{flag_name}")
    dotted = impls.get(impl_name)
    if dotted is None:
        raise ValueError(
            f"Unknown implementation '{impl_name}' for --{flag_name} "
            f"(available: {', '.join(impls)})"
        )
    return resolve_class(dotted)


def resolve_interface_type(flag_name: str) -> type[Any]:
    """Return the ABC registered in the container for a given flag."""
    dotted = INTERFACE_TYPES.get(flag_name)
    if dotted is None:
        raise ValueError(f"Unknown interface flag: --{flag_name}")
    return resolve_class(dotted)
