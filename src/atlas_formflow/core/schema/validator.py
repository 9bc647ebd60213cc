"""
Validador semântico de schema de formulário.

O validador inspeciona um `FormSchema` estruturalmente válido e produz um
relatório com erros e avisos serializáveis (`AtlasErrorPayload.to_dict()`).

Decisões arquiteturais:
    - A validação nunca lança exceção: todo achado vira entrada do relatório
    - Erros bloqueiam `activate()` por padrão; avisos são apenas informativos
    - Ciclos no grafo de dependências são sempre erro (e também reportados
      em `report.cycle`)

Invariantes:
    - O mesmo schema produz sempre o mesmo relatório (mesma ordem)
    - `report.valid` é True se e somente se `report.errors` estiver vazio

Limites explícitos:
    - Não avalia regras nem fórmulas contra valores
    - Não corrige o schema
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from atlas_formflow.core.config.defaults import resolve_config
from atlas_formflow.core.errors import (
    AtlasErrorPayload,
    cyclic_dependency,
    schema_validation_error,
    schema_warning,
)
from atlas_formflow.core.graph.dependency import build_dependency_graph, find_cycle

from .model import FieldType, FormSchema, RuleEffect, encode_value, is_json_native


_SCRIPT_MARKERS = ("${", "function")


@dataclass(frozen=True)
class SchemaValidationReport:
    """Resultado da validação de um schema."""

    valid: bool
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    cycle: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [dict(e) for e in self.errors],
            "warnings": [dict(w) for w in self.warnings],
            "cycle": list(self.cycle) if self.cycle is not None else None,
        }


def _serializable(value: Any) -> bool:
    return is_json_native(encode_value(value))


def _plain(value: Any) -> Any:
    # valor seguro para `details` (payloads são sempre serializáveis)
    return encode_value(value) if _serializable(value) else repr(value)


def _has_script(value: Any) -> bool:
    if isinstance(value, str):
        return any(m in value for m in _SCRIPT_MARKERS)
    if isinstance(value, (list, tuple)):
        return any(_has_script(v) for v in value)
    return False


def validate_schema(schema: FormSchema, config: Optional[Dict[str, Any]] = None) -> SchemaValidationReport:
    """
    Valida um schema de formulário e retorna o relatório de achados.

    Args:
        schema: Schema a validar.
        config: Configuração parcial ou completa; usa `layout.grid_columns`.

    Returns:
        SchemaValidationReport (nunca lança).
    """
    cfg = resolve_config(config)
    grid = int(cfg["layout"]["grid_columns"])

    errors: List[AtlasErrorPayload] = []
    warnings: List[AtlasErrorPayload] = []

    def error(message: str, path: str, **details: Any) -> None:
        errors.append(schema_validation_error(message=message, path=path, details=details))

    def warn(message: str, path: str, **details: Any) -> None:
        warnings.append(schema_warning(message=message, path=path, details=details))

    # --- formulário
    if not schema.title.strip():
        error("Título do formulário é obrigatório", "title")
    if not schema.id.strip():
        error("Identificador do formulário é obrigatório", "id")

    # --- campos
    known: Dict[str, int] = {}
    for i, f in enumerate(schema.fields):
        path = f"fields[{i}]"
        if not f.key.strip():
            error("Chave de campo vazia", f"{path}.key")
        elif f.key in known:
            error(f"Chave de campo duplicada: '{f.key}'", f"{path}.key", field=f.key)
        else:
            known[f.key] = i

        if f.type in (FieldType.SELECT, FieldType.RADIO) and not f.options:
            error(f"Campo '{f.key}' do tipo {f.type.value} exige ao menos uma opção", f"{path}.options", field=f.key)
        elif f.type == FieldType.CHECKBOX and not f.options:
            warn(f"Campo '{f.key}' do tipo checkbox não declara opções", f"{path}.options", field=f.key)

        if not _serializable(f.default_value):
            error(f"Campo '{f.key}' declara default_value não serializável", f"{path}.default_value", field=f.key)
        for j, o in enumerate(f.options):
            if not _serializable(o.value):
                error(f"Campo '{f.key}' declara opção não serializável", f"{path}.options[{j}].value", field=f.key)

        if f.computation is not None:
            if not f.computation.source_fields:
                error(f"Campo calculado '{f.key}' não declara campos de origem", f"{path}.computation.source_fields", field=f.key)

    keys = {f.key for f in schema.fields}
    computed = {f.key for f in schema.fields if f.is_computed}

    for i, f in enumerate(schema.fields):
        if f.computation is None:
            continue
        for j, src in enumerate(f.computation.source_fields):
            if src not in keys:
                error(
                    f"Fórmula de '{f.key}' referencia campo inexistente '{src}'",
                    f"fields[{i}].computation.source_fields[{j}]",
                    field=f.key,
                    reference=src,
                )

    # --- regras
    seen_rules: Dict[str, int] = {}
    for i, r in enumerate(schema.rules):
        path = f"rules[{i}]"
        if not r.id.strip():
            error("Identificador de regra vazio", f"{path}.id")
        elif r.id in seen_rules:
            error(f"Identificador de regra duplicado: '{r.id}'", f"{path}.id", rule_id=r.id)
        else:
            seen_rules[r.id] = i

        if r.trigger_field not in keys:
            error(
                f"Regra '{r.id}' referencia campo gatilho inexistente '{r.trigger_field}'",
                f"{path}.trigger_field",
                rule_id=r.id,
                reference=r.trigger_field,
            )
        if r.target_field not in keys:
            error(
                f"Regra '{r.id}' referencia campo alvo inexistente '{r.target_field}'",
                f"{path}.target_field",
                rule_id=r.id,
                reference=r.target_field,
            )

        if r.effect == RuleEffect.SET_VALUE and r.target_field in computed:
            error(
                f"Regra '{r.id}' tenta definir valor do campo calculado '{r.target_field}'",
                f"{path}.target_field",
                rule_id=r.id,
                field=r.target_field,
            )

        for attr in ("compare_value", "effect_value"):
            value = getattr(r, attr)
            if not _serializable(value):
                error(f"Regra '{r.id}' declara {attr} não serializável", f"{path}.{attr}", rule_id=r.id)
            elif _has_script(value):
                error(
                    f"Regra '{r.id}' contém script embutido em {attr}",
                    f"{path}.{attr}",
                    rule_id=r.id,
                )

        if r.effect in (RuleEffect.VISIBILITY, RuleEffect.REQUIRED) and not isinstance(r.effect_value, bool):
            error(
                f"Regra '{r.id}' com efeito {r.effect.value} exige effect_value booleano",
                f"{path}.effect_value",
                rule_id=r.id,
                effect_value=_plain(r.effect_value),
            )

    # --- layout
    placed = set()
    for i, row in enumerate(schema.layout):
        path = f"layout[{i}]"
        if not row.field_keys():
            warn("Linha de layout vazia", path)

        total = 0
        for j, col in enumerate(row.columns):
            total += col.span
            if col.span < 1 or col.span > grid:
                error(
                    f"Largura de coluna fora do intervalo [1, {grid}]",
                    f"{path}.columns[{j}].span",
                    span=col.span,
                )
            for key in col.fields:
                placed.add(key)
                if key not in keys:
                    error(
                        f"Layout referencia campo inexistente '{key}'",
                        f"{path}.columns[{j}].fields",
                        reference=key,
                    )
        if total > grid:
            error(f"Soma das larguras da linha excede {grid}", path, total=total)

    if schema.layout:
        for i, f in enumerate(schema.fields):
            if f.key and f.key not in placed:
                warn(f"Campo '{f.key}' não aparece no layout", f"fields[{i}]", field=f.key)

    # --- ciclos
    cycle = find_cycle(build_dependency_graph(schema, strict=False))
    if cycle is not None:
        errors.append(cyclic_dependency(cycle=cycle))

    return SchemaValidationReport(
        valid=not errors,
        errors=[e.to_dict() for e in errors],
        warnings=[w.to_dict() for w in warnings],
        cycle=cycle,
    )
