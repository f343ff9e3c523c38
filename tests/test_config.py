from pathlib import Path

import pytest

from tourbook.config import load_config, substitute_env_vars

CONFIG = """\
api:
  base_url: <TOURBOOK_API_URL>
  timeout: 10
storage_path: state/cart.json
"""


def test_load_config_substitutes_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TOURBOOK_API_URL", "https://api.test/api/")
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)

    config = load_config(path)

    assert config.api.base_url == "https://api.test/api/"
    assert config.api.timeout == 10
    assert config.api.retries == 0
    assert config.storage_path == Path("state/cart.json")
    assert config.default_timezone == "America/Phoenix"


def test_missing_environment_variable(tmp_path, monkeypatch):
    monkeypatch.delenv("TOURBOOK_API_URL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)

    with pytest.raises(ValueError, match="TOURBOOK_API_URL"):
        load_config(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_substitute_env_vars_leaves_plain_text(monkeypatch):
    monkeypatch.setenv("TENANT", "acme")

    assert substitute_env_vars("tenant <TENANT>, not <lower>") == "tenant acme, not <lower>"
