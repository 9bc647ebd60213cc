"""Hashing canônico de schema de formulário.

O hash do schema serve para:
- identificar o conteúdo de cada snapshot no histórico de versões
- detectar divergência entre duas versões sem comparar estrutura

Decisão: o hash é calculado a partir de JSON canônico (sort_keys, separators).
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Union

from .model import FormSchema


def canonical_json(data: Dict[str, Any]) -> str:
    """
    Serializa um dicionário em JSON canônico (determinístico).

    Raises:
        TypeError: Se houver valor não nativo de JSON; nada é convertido
            implicitamente para string.
    """
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_schema_hash(schema: Union[FormSchema, Dict[str, Any]]) -> str:
    """Computa SHA-256 do schema em formato canônico."""
    data = schema.to_dict() if isinstance(schema, FormSchema) else schema
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()
