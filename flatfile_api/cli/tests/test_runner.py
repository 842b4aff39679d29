"""Tests for CLI parsing and DI container wiring in runner.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flatfile_api.cli.runner import (
    _build_container,
    _extract_global_flags,
    load_module_descriptor,
    parse_module_args,
    run_cli,
    run_module,
)
from flatfile_api.config.context import ModuleConfig
from flatfile_api.modules.file_api.main import FileApiModule
from flatfile_api.services.filesystem.interface import FileSystemInterface
from flatfile_api.services.filesystem.local_filesystem import LocalFileSystem
from flatfile_api.services.filesystem.memory_filesystem import MemoryFileSystem
from flatfile_api.services.lifecycle.lifecycle_manager import LifecycleManager
from flatfile_api.services.logger.factory import LoggerFactory
from flatfile_api.services.logger.memory_logger import MemoryLogger
from flatfile_api.services.metrics.interface import MetricsInterface
from flatfile_api.services.metrics.memory_metrics import MemoryMetrics
from flatfile_api.services.metrics.noop_metrics import NoopMetrics
from flatfile_api.services.secrets.interface import SecretsInterface

DESCRIPTOR = {
    "args": [
        {"name": "port", "type": "integer", "default": 8000},
        {"name": "prefix", "type": "string", "default": "/api"},
        {"name": "mode", "type": "string", "choices": ["a", "b"], "required": True},
        {"name": "verbose", "type": "boolean", "default": False},
    ]
}


# ── Module args ───────────────────────────────────────────────────────────────


def test_parse_module_args_casts_and_defaults():
    args = parse_module_args(DESCRIPTOR, ["--port", "9000", "--mode", "a"])
    assert args == {"port": 9000, "prefix": "/api", "mode": "a", "verbose": False}


def test_parse_module_args_bare_flag_is_true():
    args = parse_module_args(DESCRIPTOR, ["--mode", "b", "--verbose"])
    assert args["verbose"] is True


def test_parse_module_args_missing_required():
    with pytest.raises(ValueError, match="Missing required argument: --mode"):
        parse_module_args(DESCRIPTOR, [])


def test_parse_module_args_invalid_choice():
    with pytest.raises(ValueError, match="choices: a, b"):
        parse_module_args(DESCRIPTOR, ["--mode", "c"])


def test_parse_module_args_bad_integer():
    with pytest.raises(ValueError, match="Invalid value for --port"):
        parse_module_args(DESCRIPTOR, ["--mode", "a", "--port", "eighty"])


def test_parse_module_args_unknown_flag():
    with pytest.raises(ValueError, match="Unknown argument: --colour"):
        parse_module_args(DESCRIPTOR, ["--mode", "a", "--colour", "red"])


def test_file_api_descriptor_is_a_service():
    descriptor = load_module_descriptor("file_api")
    assert descriptor["type"] == "service"
    assert {a["name"] for a in descriptor["args"]} == {"port", "host", "prefix"}


def test_unknown_module_descriptor():
    with pytest.raises(FileNotFoundError, match="module 'nope' not found"):
        load_module_descriptor("nope")


# ── Global flags ──────────────────────────────────────────────────────────────


def test_extract_global_flags_splits_module_args():
    impl, env, rest = _extract_global_flags(
        ["--fs", "memory", "--port", "9000", "--env", '{"FS_LOCAL_ROOT": "/data"}']
    )
    assert impl == {"fs": "memory"}
    assert env == {"FS_LOCAL_ROOT": "/data"}
    assert rest == ["--port", "9000"]


def test_extract_global_flags_log_sets_env():
    _, env, _ = _extract_global_flags(["--log", "memory"])
    assert env["LOG_IMPL"] == "memory"


def test_env_rejects_non_object():
    with pytest.raises(ValueError, match="JSON object"):
        _extract_global_flags(["--env", "[1, 2]"])


def test_env_rejects_malformed_json():
    with pytest.raises(ValueError, match="not valid JSON"):
        _extract_global_flags(["--env", "{oops"])


def test_env_file_loaded_with_env_taking_precedence(tmp_path: Path):
    env_dir = tmp_path / ".env"
    env_dir.mkdir()
    (env_dir / "dev.env").write_text("FS_LOCAL_ROOT=/from/file\nMETRICS_PROMETHEUS_PORT=0\n")
    _, env, _ = _extract_global_flags(
        ["--env-file", "dev", "--env", json.dumps({"FS_LOCAL_ROOT": "/from/flag"})],
        project_root=tmp_path,
    )
    assert env == {"FS_LOCAL_ROOT": "/from/flag", "METRICS_PROMETHEUS_PORT": "0"}


# ── Container wiring ──────────────────────────────────────────────────────────


def test_container_defaults(tmp_path: Path):
    container = _build_container({}, {"FS_LOCAL_ROOT": str(tmp_path)}, {})
    fs = container.get(FileSystemInterface)
    assert isinstance(fs, LocalFileSystem)
    assert fs.root == tmp_path
    assert isinstance(container.get(MetricsInterface), NoopMetrics)
    assert container.has(LifecycleManager)
    assert container.has(SecretsInterface)


def test_container_honours_flags():
    container = _build_container({"fs": "memory", "metrics": "memory", "log": "memory"}, {}, {"port": 1})
    assert isinstance(container.get(FileSystemInterface), MemoryFileSystem)
    assert isinstance(container.get(MetricsInterface), MemoryMetrics)
    assert isinstance(container.get(LoggerFactory).create(), MemoryLogger)
    assert container.get(ModuleConfig).get("port") == 1


def test_container_log_impl_from_env():
    container = _build_container({"fs": "memory"}, {"LOG_IMPL": "memory"}, {})
    assert container.get(LoggerFactory).default_impl == "memory"


def test_container_unknown_implementation():
    with pytest.raises(ValueError, match="Unknown implementation 's3' for --fs"):
        _build_container({"fs": "s3"}, {}, {})


def test_container_resolves_file_api_module():
    container = _build_container({"fs": "memory", "log": "memory"}, {}, {"port": 8000})
    module = container.resolve(FileApiModule)
    assert isinstance(module.fs, MemoryFileSystem)
    assert module.lifecycle is container.get(LifecycleManager)


# ── Entry points ──────────────────────────────────────────────────────────────


def test_run_module_requires_run_command():
    with pytest.raises(ValueError, match="Usage"):
        run_module(["serve", "file_api"])


def test_run_module_help(capsys):
    exit_code, module = run_module(["run", "file_api", "--help"])
    assert exit_code == 0
    assert module is None
    out = capsys.readouterr().out
    assert "Flat File API" in out
    assert "--prefix" in out
    assert "memory, local" in out


def test_run_cli_reports_errors(capsys):
    with pytest.raises(SystemExit) as exc_info:
        run_cli(["run", "does_not_exist"])
    assert exc_info.value.code == 1
    assert "Error: module 'does_not_exist' not found" in capsys.readouterr().err
