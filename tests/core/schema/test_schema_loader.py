# tests/core/schema/test_schema_loader.py
"""
Testes do loader/dumper de schema (YAML/JSON) e do hashing canônico.
"""

from pathlib import Path

import pytest

from atlas_formflow.core.schema.errors import (
    SchemaFileNotFoundError,
    SchemaParseError,
    SchemaPathMissingError,
    UnsupportedSchemaFormatError,
)
from atlas_formflow.core.schema.hashing import compute_schema_hash
from atlas_formflow.core.schema.loader import dump_schema, load_schema


@pytest.mark.parametrize("name", ["form.yaml", "form.yml", "form.json"])
def test_dump_then_load(tmp_path: Path, cascade_schema, name):
    path = dump_schema(cascade_schema, tmp_path / "nested" / name)
    assert path.exists()
    assert load_schema(path=str(path)) == cascade_schema


def test_missing_path_raises():
    with pytest.raises(SchemaPathMissingError):
        load_schema(path=None)
    with pytest.raises(SchemaPathMissingError):
        load_schema(path="  ")


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(SchemaFileNotFoundError):
        load_schema(path=str(tmp_path / "missing.yaml"))


def test_unsupported_format_raises(tmp_path: Path, cascade_schema):
    p = tmp_path / "form.toml"
    p.write_text("id = 'x'\n", encoding="utf-8")
    with pytest.raises(UnsupportedSchemaFormatError):
        load_schema(path=str(p))
    with pytest.raises(UnsupportedSchemaFormatError):
        dump_schema(cascade_schema, tmp_path / "out.txt")


def test_parse_errors(tmp_path: Path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(SchemaParseError):
        load_schema(path=str(broken))

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(SchemaParseError):
        load_schema(path=str(empty))

    listed = tmp_path / "list.yaml"
    listed.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(SchemaParseError):
        load_schema(path=str(listed))


def test_schema_hash_is_canonical(cascade_schema, cascade_schema_dict):
    assert compute_schema_hash(cascade_schema) == compute_schema_hash(cascade_schema.to_dict())
    assert len(compute_schema_hash(cascade_schema)) == 64

    changed = dict(cascade_schema_dict, title="Outro título")
    from atlas_formflow.core.schema.model import FormSchema

    assert compute_schema_hash(FormSchema.from_dict(changed)) != compute_schema_hash(cascade_schema)
