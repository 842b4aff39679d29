from __future__ import annotations

import asyncio
import importlib
import json
import sys
from pathlib import Path
from typing import Any

from flatfile_api.config.container import Container
from flatfile_api.config.context import ModuleConfig
from flatfile_api.config.env_loader import load_env_file
from flatfile_api.modules.base import Module
from flatfile_api.services.lifecycle.lifecycle_manager import LifecycleManager
from flatfile_api.services.logger.factory import LoggerFactory
from flatfile_api.services.registry import (
    available,
    resolve_implementation,
    resolve_interface_type,
)
from flatfile_api.services.secrets.env_secrets import EnvSecrets
from flatfile_api.services.secrets.interface import SecretsInterface

MODULES_DIR = Path(__file__).resolve().parent.parent / "modules"

USAGE = "Usage: python -m flatfile_api run <module_name> [flags] [module args]"

# Global flags that select interface implementations, with their defaults.
_GLOBAL_FLAGS: dict[str, str] = {
    "fs": "local",
    "metrics": "noop",
    "log": "pretty",
}

# Module types that get signal handling and shutdown hooks
_SERVICE_TYPES = {"service", "worker"}


def load_module_descriptor(module_name: str) -> dict[str, Any]:
    module_json = MODULES_DIR / module_name / "module.json"
    if not module_json.exists():
        raise FileNotFoundError(f"module '{module_name}' not found at {module_json}")
    with open(module_json) as f:
        return json.load(f)


def parse_module_args(
    descriptor: dict[str, Any], raw_args: list[str]
) -> dict[str, Any]:
    """Parse CLI args against the module.json arg definitions."""
    arg_defs: list[dict[str, Any]] = descriptor.get("args", [])
    known = {a["name"] for a in arg_defs}
    parsed: dict[str, str] = {}

    i = 0
    while i < len(raw_args):
        arg = raw_args[i]
        if not arg.startswith("--"):
            raise ValueError(f"Unexpected argument: {arg}")
        key = arg[2:]
        if key not in known:
            raise ValueError(f"Unknown argument: --{key}")
        if i + 1 < len(raw_args) and not raw_args[i + 1].startswith("--"):
            parsed[key] = raw_args[i + 1]
            i += 2
        else:
            parsed[key] = "true"
            i += 1

    result: dict[str, Any] = {}
    errors: list[str] = []

    for arg_def in arg_defs:
        name = arg_def["name"]
        if name in parsed:
            try:
                result[name] = _cast_value(parsed[name], arg_def.get("type", "string"))
            except ValueError:
                errors.append(f"Invalid value for --{name}: '{parsed[name]}'")
                continue
        elif "default" in arg_def:
            result[name] = arg_def["default"]
        elif arg_def.get("required", False):
            errors.append(f"Missing required argument: --{name}")

        if name in result and "choices" in arg_def:
            if result[name] not in arg_def["choices"]:
                errors.append(
                    f"Invalid value for --{name}: '{result[name]}' "
                    f"(choices: {', '.join(str(c) for c in arg_def['choices'])})"
                )

    if errors:
        raise ValueError("; ".join(errors))

    return result


def _cast_value(value: str, type_name: str) -> Any:
    match type_name:
        case "integer":
            return int(value)
        case "float":
            return float(value)
        case "boolean":
            return value.lower() in ("true", "1", "yes")
        case _:
            return value


def _parse_env_overrides(raw: str) -> dict[str, str]:
    """Parse a JSON string into env overrides. Validates types."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--env value is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("--env value must be a JSON object")
    for k, v in data.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise ValueError("--env JSON must have string keys and string values")
    return data


def _extract_global_flags(
    remaining: list[str],
    project_root: Path | None = None,
) -> tuple[dict[str, str], dict[str, str], list[str]]:
    """Split global flags off the argument list.

    Returns (impl_flags, env_overrides, module_args). impl_flags holds the
    explicitly selected implementation per flag (fs, metrics, log).
    """
    impl_flags: dict[str, str] = {}
    env_overrides: dict[str, str] = {}
    env_file: str | None = None
    filtered_args: list[str] = []

    all_flag_names = set(_GLOBAL_FLAGS) | {"env", "env-file"}

    i = 0
    while i < len(remaining):
        flag = remaining[i]
        if flag.startswith("--") and flag[2:] in all_flag_names and i + 1 < len(remaining):
            name = flag[2:]
            value = remaining[i + 1]
            if name == "env":
                env_overrides.update(_parse_env_overrides(value))
            elif name == "env-file":
                env_file = value
            else:
                impl_flags[name] = value
            i += 2
        else:
            filtered_args.append(flag)
            i += 1

    if env_file:
        # File values are lower priority than --env
        merged = load_env_file(env_file, project_root=project_root)
        merged.update(env_overrides)
        env_overrides = merged

    if "log" in impl_flags and "LOG_IMPL" not in env_overrides:
        env_overrides["LOG_IMPL"] = impl_flags["log"]

    return impl_flags, env_overrides, filtered_args


def print_module_help(descriptor: dict[str, Any]) -> None:
    version = descriptor.get("version", "")
    version_suffix = f" v{version}" if version else ""
    print(f"\n  {descriptor['display_name']}{version_suffix}")
    print(f"  {descriptor['description']}\n")
    module_type = descriptor.get("type")
    if module_type:
        print(f"  Type: {module_type}\n")

    args = descriptor.get("args", [])
    if args:
        print("  Module arguments:")
        for arg in args:
            required = " (required)" if arg.get("required") else ""
            default = f" [default: {arg['default']}]" if "default" in arg else ""
            print(f"    --{arg['name']:20s} {arg['description']}{required}{default}")
        print()

    print("  Global flags:")
    print(f"    --{'fs':20s} Storage backend: {', '.join(available('fs'))} [default: {_GLOBAL_FLAGS['fs']}]")
    print(f"    --{'metrics':20s} Metrics: {', '.join(available('metrics'))} [default: {_GLOBAL_FLAGS['metrics']}]")
    print(f"    --{'log':20s} Logging format: pretty, memory [default: {_GLOBAL_FLAGS['log']}]")
    print(f"    --{'env':20s} JSON string of env var overrides")
    print(f"    --{'env-file':20s} Environment file name (loads .env/<name>.env)")
    print()


def _get_init_hints(cls: type) -> dict[str, Any]:
    """Get type hints for cls.__init__, returning an empty dict on failure."""
    try:
        from typing import get_type_hints

        hints = get_type_hints(cls.__init__)
        hints.pop("return", None)
        return hints
    except Exception:
        return {}


def _build_container(
    impl_flags: dict[str, str],
    env_overrides: dict[str, str],
    module_args: dict[str, Any],
) -> Container:
    """Build the DI container with every service a module may ask for."""
    container = Container()

    secrets = EnvSecrets(overrides=env_overrides)
    container.register_instance(SecretsInterface, secrets)
    container.register_instance(ModuleConfig, ModuleConfig(module_args))

    # --log takes precedence, then LOG_IMPL
    log_impl = impl_flags.get("log") or env_overrides.get("LOG_IMPL", _GLOBAL_FLAGS["log"])
    container.register_instance(LoggerFactory, LoggerFactory(default_impl=log_impl))

    container.register_instance(LifecycleManager, LifecycleManager())

    for flag_name, default_impl in _GLOBAL_FLAGS.items():
        if flag_name == "log":
            continue
        impl_cls = resolve_implementation(flag_name, impl_flags.get(flag_name, default_impl))
        instance = container.resolve(impl_cls) if _get_init_hints(impl_cls) else impl_cls()
        container.register_instance(resolve_interface_type(flag_name), instance)

    return container


async def _run_service_module(module_instance: Module, container: Container) -> int:
    """Run a service module with signal handling and shutdown hooks."""
    lifecycle = container.get(LifecycleManager)
    lifecycle.install_signal_handlers(loop=asyncio.get_running_loop())
    try:
        return await module_instance.run()
    finally:
        await lifecycle.shutdown()


def run_module(argv: list[str]) -> tuple[int, Module | None]:
    """Parse args, build the container and run the module.

    Returns (exit_code, module_instance); the instance is None when only
    help was printed.
    """
    if len(argv) < 2 or argv[0] != "run":
        raise ValueError(USAGE)

    module_name = argv[1]
    remaining = argv[2:]

    descriptor = load_module_descriptor(module_name)

    if "--help" in remaining or "-h" in remaining:
        print_module_help(descriptor)
        return (0, None)

    module_type = descriptor.get("type", "job")

    impl_flags, env_overrides, filtered_args = _extract_global_flags(remaining)
    module_args = parse_module_args(descriptor, filtered_args)
    container = _build_container(impl_flags, env_overrides, module_args)

    mod = importlib.import_module(f"flatfile_api.modules.{module_name}.main")
    if not hasattr(mod, "module_class"):
        raise AttributeError(
            f"Module 'flatfile_api.modules.{module_name}.main' must define a 'module_class' attribute"
        )

    module_instance = container.resolve(mod.module_class)

    if module_type in _SERVICE_TYPES:
        exit_code = asyncio.run(_run_service_module(module_instance, container))
    else:
        exit_code = asyncio.run(module_instance.run())

    return (exit_code, module_instance)


def run_cli(argv: list[str] | None = None) -> None:
    args = argv if argv is not None else sys.argv[1:]
    try:
        exit_code, _ = run_module(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)
