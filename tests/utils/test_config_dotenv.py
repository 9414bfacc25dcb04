import importlib
import sys
import builtins
import types
import logging
import os
from pathlib import Path

import pytest


def _reload_config():
    sys.modules.pop("pagechain.config", None)
    return importlib.import_module("pagechain.config")


def test_missing_dotenv_logs_warning(monkeypatch, caplog):
    orig_import = builtins.__import__

    def fake_import(name, globals=None, locals=None, fromlist=(), level=0):
        if name == "dotenv" or name.startswith("dotenv."):
            raise ImportError
        return orig_import(name, globals, locals, fromlist, level)

    monkeypatch.setattr(builtins, "__import__", fake_import)
    caplog.set_level(logging.WARNING)
    cfg = _reload_config()
    assert "python-dotenv not available" in caplog.text

    # environment fallback works
    monkeypatch.setenv("USER_AGENT", "X-Agent")
    cfg = _reload_config()
    assert cfg.get_str_env("USER_AGENT", "PageChain/0.1") == "X-Agent"


def test_dotenv_present_but_fails_to_load(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("USER_AGENT=FromFile")
    monkeypatch.chdir(tmp_path)

    fake = types.SimpleNamespace(load_dotenv=lambda: False)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    with pytest.raises(RuntimeError):
        _reload_config()


def test_dotenv_loads_sets_variables(monkeypatch, tmp_path):
    tmp_path.joinpath(".env").write_text("REQUEST_TIMEOUT_MS=2500")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REQUEST_TIMEOUT_MS", raising=False)

    def fake_load():
        # emulate dotenv behavior: read .env and set os.environ
        p = Path(".env")
        for line in p.read_text().splitlines():
            if "=" in line:
                k, v = line.split("=", 1)
                os.environ[k] = v
        return True

    fake = types.SimpleNamespace(load_dotenv=fake_load)
    monkeypatch.setitem(sys.modules, "dotenv", fake)
    try:
        cfg = _reload_config()
        assert cfg.get_int_env("REQUEST_TIMEOUT_MS", 15_000) == 2500
    finally:
        os.environ.pop("REQUEST_TIMEOUT_MS", None)


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("yes", True), ("OFF", False), ("0", False), ("", True), ("maybe", True)],
)
def test_get_bool_env(monkeypatch, raw, expected):
    from pagechain import config

    monkeypatch.setenv("PAGECHAIN_FLAG", raw)
    assert config.get_bool_env("PAGECHAIN_FLAG", True) is expected


def test_get_int_env_invalid_falls_back(monkeypatch):
    from pagechain import config

    monkeypatch.setenv("PAGECHAIN_NUMBER", "ten")
    assert config.get_int_env("PAGECHAIN_NUMBER", 10) == 10
    monkeypatch.setenv("PAGECHAIN_NUMBER", "12")
    assert config.get_int_env("PAGECHAIN_NUMBER", 10) == 12


def test_container_env_is_read_through_helpers(monkeypatch):
    monkeypatch.setenv("MAX_PAGES_DEFAULT", "42")
    monkeypatch.setenv("PAGECHAIN_RETRY_FAILED_FETCH", "yes")
    monkeypatch.delitem(sys.modules, "pagechain.container", raising=False)
    container_module = importlib.import_module("pagechain.container")

    assert container_module.ENV["MAX_PAGES_DEFAULT"] == 42
    assert container_module.ENV["PAGECHAIN_RETRY_FAILED_FETCH"] is True
    container = container_module.Container()
    assert container.profile_parser().max_pages_default == 42
