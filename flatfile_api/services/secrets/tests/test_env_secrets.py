import pytest

from flatfile_api.services.secrets.env_secrets import EnvSecrets


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("FS_LOCAL_ROOT", "/from/env")
    assert EnvSecrets().get("FS_LOCAL_ROOT") == "/from/env"


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("FS_LOCAL_ROOT", "/from/env")
    assert EnvSecrets(overrides={"FS_LOCAL_ROOT": "/override"}).get("FS_LOCAL_ROOT") == "/override"


def test_get_missing_returns_none():
    assert EnvSecrets().get("FLATFILE_SURELY_UNSET") is None


def test_get_or_default():
    secrets = EnvSecrets(overrides={"SET": "1"})
    assert secrets.get_or_default("SET", "x") == "1"
    assert secrets.get_or_default("FLATFILE_SURELY_UNSET", "x") == "x"


def test_require():
    assert EnvSecrets(overrides={"KEY": "v"}).require("KEY") == "v"
    with pytest.raises(KeyError, match="FLATFILE_SURELY_UNSET"):
        EnvSecrets().require("FLATFILE_SURELY_UNSET")
