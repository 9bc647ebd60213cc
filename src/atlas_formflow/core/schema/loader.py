"""Loader canônico de schema de formulário (YAML/JSON).

Notas:
- YAML é preferencial, JSON é alternativo.
- O formato é inferido pela extensão do arquivo.
- O resultado é sempre um `FormSchema` estruturalmente válido; a validação
  semântica é responsabilidade de `validate_schema`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

import yaml

from .errors import (
    SchemaFileNotFoundError,
    SchemaParseError,
    SchemaPathMissingError,
    UnsupportedSchemaFormatError,
)
from .model import FormSchema


_YAML_SUFFIXES = {".yml", ".yaml"}


def load_schema(*, path: Optional[Union[str, Path]]) -> FormSchema:
    """Carrega um schema de formulário a partir de YAML/JSON.

    Args:
        path: caminho para o arquivo do schema.

    Raises:
        SchemaPathMissingError: se path estiver ausente.
        SchemaFileNotFoundError: se arquivo não existir.
        UnsupportedSchemaFormatError: se extensão não suportada.
        SchemaParseError: se parsing falhar ou o arquivo estiver vazio.
        SchemaStructureError: se a estrutura não corresponder ao modelo.
    """
    if not path or not str(path).strip():
        raise SchemaPathMissingError("schema path is required")

    p = Path(path)
    if not p.exists():
        raise SchemaFileNotFoundError(f"schema file not found: {p}")

    suffix = p.suffix.lower()
    raw = p.read_text(encoding="utf-8")

    try:
        if suffix in _YAML_SUFFIXES:
            data = yaml.safe_load(raw)
        elif suffix == ".json":
            data = json.loads(raw)
        else:
            raise UnsupportedSchemaFormatError(f"unsupported schema format: {suffix}")
    except UnsupportedSchemaFormatError:
        raise
    except Exception as e:
        raise SchemaParseError(str(e) or "failed to parse schema") from e

    if data is None:
        # YAML vazio -> None
        raise SchemaParseError("schema file is empty")

    if not isinstance(data, dict):
        raise SchemaParseError("schema root must be a mapping/dict")

    return FormSchema.from_dict(data)


def dump_schema(schema: FormSchema, path: Union[str, Path]) -> Path:
    """Persiste o schema em YAML ou JSON (pela extensão) e retorna o caminho."""
    p = Path(path)
    suffix = p.suffix.lower()
    data = schema.to_dict()

    if suffix in _YAML_SUFFIXES:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    elif suffix == ".json":
        text = json.dumps(data, ensure_ascii=False, indent=2)
    else:
        raise UnsupportedSchemaFormatError(f"unsupported schema format: {suffix}")

    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p
