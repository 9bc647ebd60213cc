"""
Ativação de sessão: validação do schema seguida da construção do Data Engine.

Decisões arquiteturais:
    - Ciclos sempre bloqueiam a ativação (CyclicDependencyError)
    - Demais erros do validador bloqueiam enquanto
      `activation.block_on_errors` for verdadeiro (padrão)
    - Avisos nunca bloqueiam; são copiados para o SessionContext
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from atlas_formflow.core.config.defaults import resolve_config
from atlas_formflow.core.errors import cyclic_dependency
from atlas_formflow.core.exceptions import CyclicDependencyError, SchemaValidationError
from atlas_formflow.core.schema.model import FormSchema
from atlas_formflow.core.schema.validator import validate_schema

from .context import SessionContext
from .engine import DataEngine


def activate(
    schema: FormSchema,
    initial_data: Optional[Dict[str, Any]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> DataEngine:
    """
    Valida o schema e inicia uma sessão de preenchimento.

    Args:
        schema: Schema a ativar.
        initial_data: Valores iniciais por chave.
        config: Configuração parcial ou completa.

    Returns:
        DataEngine pronto para uso.

    Raises:
        CyclicDependencyError: Se o grafo de dependências tiver ciclo.
        SchemaValidationError: Se houver erros e o bloqueio estiver ativo.
    """
    cfg = resolve_config(config)
    report = validate_schema(schema, cfg)

    if report.cycle is not None:
        payload = cyclic_dependency(cycle=report.cycle)
        raise CyclicDependencyError(
            message=f"Ciclo detectado no grafo de dependências: {' -> '.join(report.cycle)}",
            details=payload.details,
            hint=payload.hint,
            decision_required=True,
        )

    if report.errors and cfg["activation"]["block_on_errors"]:
        raise SchemaValidationError(
            message=f"Schema possui {len(report.errors)} erro(s) de validação",
            details={"errors": report.errors, "warnings": report.warnings},
            hint="Corrija o schema ou desative activation.block_on_errors.",
            decision_required=True,
        )

    ctx = SessionContext(config=cfg)
    for w in report.warnings:
        ctx.add_warning(message=w["message"], field_key=(w.get("details") or {}).get("field"))
    if report.errors:
        ctx.log(level="warning", message="activated with schema errors", event="activation_errors", errors=report.errors)

    return DataEngine(schema, initial_data=initial_data, config=cfg, context=ctx)
