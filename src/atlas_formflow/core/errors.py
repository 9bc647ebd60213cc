"""
Atlas FormFlow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Atlas FormFlow.
Erros são considerados artefatos de domínio e fazem parte do contrato
operacional do motor, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Os payloads aqui definidos alimentam tanto o relatório do validador de
schema quanto o canal de erros por campo do Data Engine.

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AtlasErrorPayload:
    """
    Payload canônico de erro do Atlas FormFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao autor do schema ou ao usuário
    - decision_required: indica que a ativação está bloqueada aguardando
      correção explícita (sem auto-correção, sem fallback silencioso).
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        # o chamador deve garantir que details seja serializável
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Schema / Ativação
SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
SCHEMA_WARNING = "SCHEMA_WARNING"
CYCLIC_DEPENDENCY = "CYCLIC_DEPENDENCY"

# Runtime / Escrita
UNKNOWN_FIELD = "UNKNOWN_FIELD"
COMPUTED_FIELD_READ_ONLY = "COMPUTED_FIELD_READ_ONLY"

# Avaliação (não fatais, isolados por campo)
COMPUTATION_ERROR = "COMPUTATION_ERROR"
RULE_EVALUATION_ERROR = "RULE_EVALUATION_ERROR"

# Validação de valores
FIELD_REQUIRED = "FIELD_REQUIRED"
FIELD_INVALID_TYPE = "FIELD_INVALID_TYPE"
FIELD_OUT_OF_RANGE = "FIELD_OUT_OF_RANGE"
FIELD_INVALID_LENGTH = "FIELD_INVALID_LENGTH"
FIELD_PATTERN_MISMATCH = "FIELD_PATTERN_MISMATCH"
FIELD_INVALID_OPTION = "FIELD_INVALID_OPTION"

# Versionamento
VERSION_NOT_FOUND = "VERSION_NOT_FOUND"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def schema_validation_error(
    *,
    message: str,
    path: str,
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Corrija o schema no designer antes de ativar o formulário.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=SCHEMA_VALIDATION_ERROR,
        message=message,
        details={"path": path, **(details or {})},
        hint=hint,
        decision_required=True,
    )


def schema_warning(
    *,
    message: str,
    path: str,
    details: Optional[Dict[str, Any]] = None,
    hint: Optional[str] = None,
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=SCHEMA_WARNING,
        message=message,
        details={"path": path, **(details or {})},
        hint=hint,
        decision_required=False,
    )


def cyclic_dependency(
    *,
    cycle: List[str],
    hint: str = "Remova uma das regras ou fórmulas que fecham o ciclo; ciclos nunca são quebrados em runtime.",
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=CYCLIC_DEPENDENCY,
        message="Ciclo detectado no grafo de dependências entre campos",
        details={"cycle": list(cycle)},
        hint=hint,
        decision_required=True,
    )


def unknown_field(*, field: str, operation: str) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=UNKNOWN_FIELD,
        message="Campo inexistente no schema ativo",
        details={"field": field, "operation": operation},
        hint="Verifique a chave do campo; apenas chaves declaradas no schema são aceitas.",
        decision_required=False,
    )


def computed_field_read_only(*, field: str) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=COMPUTED_FIELD_READ_ONLY,
        message="Campo calculado não aceita escrita direta",
        details={"field": field},
        hint="Altere os campos de origem da fórmula; o valor é derivado automaticamente.",
        decision_required=False,
    )


def computation_error(
    *,
    field: str,
    function: str,
    reason: str,
    source_field: Optional[str] = None,
    exc_type: Optional[str] = None,
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=COMPUTATION_ERROR,
        message="Falha ao calcular campo derivado",
        details={
            "field": field,
            "function": function,
            "reason": reason,
            "source_field": source_field,
            "exc_type": exc_type,
        },
        hint="Revise os valores de origem; o campo mantém o último valor válido ou o fallback definido.",
        decision_required=False,
    )


def rule_evaluation_error(
    *,
    rule_id: str,
    field: str,
    reason: str,
    operator: Optional[str] = None,
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=RULE_EVALUATION_ERROR,
        message="Regra avaliada como falsa por incompatibilidade de valores",
        details={
            "rule_id": rule_id,
            "field": field,
            "operator": operator,
            "reason": reason,
        },
        hint="Ajuste o valor de comparação da regra ao tipo declarado do campo gatilho.",
        decision_required=False,
    )


def field_required(*, field: str, message: Optional[str] = None) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_REQUIRED,
        message=message or "Este campo é obrigatório",
        details={"field": field},
        hint=None,
        decision_required=False,
    )


def field_invalid_type(*, field: str, expected_type: str, actual_type: str) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_INVALID_TYPE,
        message="Valor incompatível com o tipo do campo",
        details={
            "field": field,
            "expected_type": expected_type,
            "actual_type": actual_type,
        },
        hint=None,
        decision_required=False,
    )


def field_out_of_range(
    *,
    field: str,
    value: Any,
    min_value: Optional[Any] = None,
    max_value: Optional[Any] = None,
    message: Optional[str] = None,
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_OUT_OF_RANGE,
        message=message or "Valor fora do intervalo permitido",
        details={"field": field, "value": value, "min": min_value, "max": max_value},
        hint=None,
        decision_required=False,
    )


def field_invalid_length(
    *,
    field: str,
    length: int,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    message: Optional[str] = None,
) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_INVALID_LENGTH,
        message=message or "Quantidade de caracteres fora do permitido",
        details={
            "field": field,
            "length": length,
            "min_length": min_length,
            "max_length": max_length,
        },
        hint=None,
        decision_required=False,
    )


def field_pattern_mismatch(*, field: str, pattern: str, message: Optional[str] = None) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_PATTERN_MISMATCH,
        message=message or "Formato inválido",
        details={"field": field, "pattern": pattern},
        hint=None,
        decision_required=False,
    )


def field_invalid_option(*, field: str, value: Any, allowed: List[Any]) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=FIELD_INVALID_OPTION,
        message="Valor fora das opções declaradas",
        details={"field": field, "value": value, "allowed": list(allowed)},
        hint=None,
        decision_required=False,
    )


def version_not_found(*, version_id: str) -> AtlasErrorPayload:
    return AtlasErrorPayload(
        type=VERSION_NOT_FOUND,
        message="Versão de schema não encontrada no histórico",
        details={"version_id": version_id},
        hint="Consulte o histórico para obter identificadores válidos.",
        decision_required=False,
    )
