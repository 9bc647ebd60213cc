# src/atlas_formflow/core/runtime/types.py
"""
Tipos canônicos do runtime do Atlas FormFlow.

Componentes principais:
    - ChangeOrigin       → origem de uma mudança (usuário ou motor)
    - FieldChange        → aspectos alterados de um campo num settle
    - ChangeSet          → notificação entregue aos assinantes
    - FormValidationResult → resultado de `validate_all()`
    - DerivedState       → visibilidade, obrigatoriedade e erros por campo

Invariantes:
    - Enums possuem valores textuais canônicos
    - Todos os tipos expõem `to_dict()` serializável
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ChangeOrigin(str, Enum):
    USER = "user"
    ENGINE = "engine"


# aspectos de um campo observáveis por assinantes
ASPECT_VALUE = "value"
ASPECT_VISIBILITY = "visibility"
ASPECT_REQUIRED = "required"
ASPECT_ERRORS = "errors"


@dataclass(frozen=True)
class FieldChange:
    key: str
    aspects: List[str]
    origin: ChangeOrigin
    rule_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "aspects": list(self.aspects),
            "origin": self.origin.value,
            "rule_id": self.rule_id,
        }


@dataclass(frozen=True)
class ChangeSet:
    """
    Lote de mudanças produzido por uma única operação (escrita, settle,
    validação ou reset). `trigger` é a chave escrita pelo usuário, quando houver.
    """

    trigger: Optional[str]
    origin: ChangeOrigin
    changes: Dict[str, FieldChange] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def keys(self) -> List[str]:
        return list(self.changes.keys())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger,
            "origin": self.origin.value,
            "changes": {k: c.to_dict() for k, c in self.changes.items()},
        }


@dataclass(frozen=True)
class FormValidationResult:
    valid: bool
    errors: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": {k: list(v) for k, v in self.errors.items()}}


@dataclass(frozen=True)
class DerivedState:
    visibility: Dict[str, bool]
    required: Dict[str, bool]
    errors: Dict[str, List[Dict[str, Any]]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "visibility": dict(self.visibility),
            "required": dict(self.required),
            "errors": {k: list(v) for k, v in self.errors.items()},
        }
