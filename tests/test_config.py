"""
Tests for YAML/env configuration loading.
"""
import textwrap

import yaml

from shiptivity.config import Config


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("SHIPTIVITY_DB", raising=False)
    monkeypatch.delenv("SHIPTIVITY_API_SECRET", raising=False)
    monkeypatch.delenv("SHIPTIVITY_LOG_LEVEL", raising=False)
    cfg = Config.load(str(tmp_path / "nope.yaml"))
    assert cfg.port == 3001
    assert cfg.api_secret == ""
    assert cfg.db_path.endswith("clients.db")


def test_load_yaml_ignores_unknown_keys(tmp_path, monkeypatch):
    monkeypatch.delenv("SHIPTIVITY_DB", raising=False)
    path = tmp_path / "shiptivity.yaml"
    path.write_text(textwrap.dedent("""
        db_path: /srv/board/clients.db
        port: 8080
        colour: blue
    """))
    cfg = Config.load(str(path))
    assert cfg.db_path == "/srv/board/clients.db"
    assert cfg.port == 8080
    assert not hasattr(cfg, "colour")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "shiptivity.yaml"
    path.write_text(yaml.safe_dump({"db_path": "/from/file.db", "api_secret": "file"}))
    monkeypatch.setenv("SHIPTIVITY_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("SHIPTIVITY_API_SECRET", "env")
    monkeypatch.setenv("SHIPTIVITY_LOG_LEVEL", "DEBUG")
    cfg = Config.load(str(path))
    assert cfg.db_path == str(tmp_path / "env.db")
    assert cfg.api_secret == "env"
    assert cfg.log_level == "DEBUG"


def test_empty_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("SHIPTIVITY_DB", raising=False)
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert Config.load(str(path)).host == "127.0.0.1"
