"""
Atlas FormFlow — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do Atlas FormFlow.

Objetivo:
- Permitir que validador, grafo e Data Engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para AtlasErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Taxonomia:
- Ativação (fatais): SchemaValidationError, CyclicDependencyError
- Escrita em runtime (rejeição atômica): UnknownFieldError, ComputedFieldReadOnlyError
- Avaliação (não fatais, isoladas por campo): ComputationError, RuleEvaluationError
- Versionamento: VersionNotFoundError

Regras:
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import (
    AtlasErrorPayload,
    COMPUTATION_ERROR,
    COMPUTED_FIELD_READ_ONLY,
    CYCLIC_DEPENDENCY,
    RULE_EVALUATION_ERROR,
    SCHEMA_VALIDATION_ERROR,
    UNKNOWN_FIELD,
    VERSION_NOT_FOUND,
)


@dataclass(eq=False)
class AtlasException(Exception):
    """Base class para exceções internas do Atlas.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    @property
    def code(self) -> str:
        return _CODES.get(type(self).__name__, type(self).__name__)

    def to_payload(self) -> AtlasErrorPayload:
        """Converte a exceção em AtlasErrorPayload (serializável, acionável)."""
        return AtlasErrorPayload(
            type=self.code,
            message=self.message or "Erro de execução",
            details=dict(self.details or {}),
            hint=self.hint,
            decision_required=bool(self.decision_required),
        )


# ---------------------------------------------------------------------------
# Ativação
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class SchemaValidationError(AtlasException):
    """Schema possui erros estruturais que bloqueiam a ativação.

    `details["errors"]` carrega a lista de payloads reportados pelo validador.
    """

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return list(self.details.get("errors", []) or [])


@dataclass(eq=False)
class CyclicDependencyError(AtlasException):
    """Grafo de dependências entre campos contém ciclo; a sessão não pode iniciar."""

    @property
    def cycle(self) -> List[str]:
        return list(self.details.get("cycle", []) or [])


# ---------------------------------------------------------------------------
# Runtime / Escrita
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class UnknownFieldError(AtlasException):
    """Chave de campo não declarada no schema ativo."""


@dataclass(eq=False)
class ComputedFieldReadOnlyError(AtlasException):
    """Tentativa de escrita direta em campo calculado."""


# ---------------------------------------------------------------------------
# Avaliação
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ComputationError(AtlasException):
    """Falha ao avaliar a fórmula de um campo calculado."""


@dataclass(eq=False)
class RuleEvaluationError(AtlasException):
    """Falha ao avaliar a condição ou o efeito de uma regra."""


# ---------------------------------------------------------------------------
# Versionamento
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class VersionNotFoundError(AtlasException):
    """Identificador de versão inexistente no histórico."""


_CODES = {
    "SchemaValidationError": SCHEMA_VALIDATION_ERROR,
    "CyclicDependencyError": CYCLIC_DEPENDENCY,
    "UnknownFieldError": UNKNOWN_FIELD,
    "ComputedFieldReadOnlyError": COMPUTED_FIELD_READ_ONLY,
    "ComputationError": COMPUTATION_ERROR,
    "RuleEvaluationError": RULE_EVALUATION_ERROR,
    "VersionNotFoundError": VERSION_NOT_FOUND,
}
