# tests/core/config/test_loader.py
"""
Testes do loader de configuração (YAML/JSON) e da resolução sobre
DEFAULT_CONFIG.

Os testes asseguram que:
- o arquivo de defaults é obrigatório e o local é opcional
- a precedência é DEFAULT_CONFIG ← defaults ← local
- tipos raiz inválidos e extensões não suportadas falham explicitamente
"""

import json
from pathlib import Path

import pytest

from atlas_formflow.core.config.defaults import DEFAULT_CONFIG, resolve_config
from atlas_formflow.core.config.errors import (
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from atlas_formflow.core.config.loader import load_config


DEFAULTS_YAML = """
compute:
  concat_separator: " "
  precision: 2
layout:
  grid_columns: 12
"""

LOCAL_YAML = """
compute:
  precision: 0
runtime:
  notify_on_validate: false
"""


def test_missing_defaults_raises(tmp_path: Path):
    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=str(tmp_path / "defaults.yaml"))


def test_load_defaults_only_fills_builtin_defaults(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(DEFAULTS_YAML, encoding="utf-8")

    out = load_config(defaults_path=str(defaults))

    assert out["compute"] == {"concat_separator": " ", "precision": 2}
    assert out["activation"]["block_on_errors"] is True
    assert out["versioning"]["default_author"] == "system"


def test_load_defaults_and_local(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yaml"
    defaults.write_text(DEFAULTS_YAML, encoding="utf-8")
    local.write_text(LOCAL_YAML, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(local))

    assert out["compute"]["precision"] == 0
    assert out["compute"]["concat_separator"] == " "
    assert out["runtime"]["notify_on_validate"] is False
    assert out["runtime"]["revalidate_on_change"] is True


def test_missing_local_is_ok(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(DEFAULTS_YAML, encoding="utf-8")
    out = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "local.yaml"))
    assert out["compute"]["precision"] == 2


def test_json_defaults_supported(tmp_path: Path):
    defaults = tmp_path / "defaults.json"
    defaults.write_text(json.dumps({"layout": {"grid_columns": 24}}), encoding="utf-8")
    assert load_config(defaults_path=str(defaults))["layout"]["grid_columns"] == 24


def test_empty_yaml_is_empty_dict(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("", encoding="utf-8")
    assert load_config(defaults_path=str(defaults)) == resolve_config()


def test_invalid_root_type_raises(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("- just\n- a\n- list\n", encoding="utf-8")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))


def test_unsupported_extension_raises(tmp_path: Path):
    defaults = tmp_path / "defaults.toml"
    defaults.write_text("compute = { precision = 2 }\n", encoding="utf-8")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))


def test_type_conflict_with_builtin_defaults_raises(tmp_path: Path):
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text("layout: 12\n", encoding="utf-8")
    with pytest.raises(ConfigTypeConflictError):
        load_config(defaults_path=str(defaults))


def test_resolve_config_never_mutates_defaults():
    before = json.dumps(DEFAULT_CONFIG, sort_keys=True)
    cfg = resolve_config({"compute": {"concat_separator": "-"}})
    cfg["layout"]["grid_columns"] = 6
    assert json.dumps(DEFAULT_CONFIG, sort_keys=True) == before
