"""
Checagens de valor por campo (obrigatoriedade, tipo, faixa, tamanho,
padrão e opções).

Usadas por `DataEngine.validate_all()` e na revalidação incremental após
mudanças. A obrigatoriedade é recebida do chamador (estado derivado atual),
nunca lida diretamente do schema.
"""

from __future__ import annotations

import re
from typing import Any, List

from atlas_formflow.core.errors import (
    AtlasErrorPayload,
    field_invalid_length,
    field_invalid_option,
    field_invalid_type,
    field_out_of_range,
    field_pattern_mismatch,
    field_required,
)
from atlas_formflow.core.schema.model import FieldSchema, FieldType

from .values import ValueKind, coerce


def check_field(field: FieldSchema, raw: Any, required: bool) -> List[AtlasErrorPayload]:
    """
    Valida o valor atual de um campo.

    Args:
        field: Definição do campo.
        raw: Valor bruto atual.
        required: Obrigatoriedade efetiva (após regras).

    Returns:
        Lista de payloads (vazia quando o valor é válido). Valores vazios
        só geram FIELD_REQUIRED; as demais checagens exigem valor.
    """
    c = field.constraints
    typed = coerce(field.type, raw)

    if typed.kind == ValueKind.EMPTY:
        return [field_required(field=field.key, message=c.message)] if required else []

    if typed.kind == ValueKind.INVALID:
        return [
            field_invalid_type(
                field=field.key,
                expected_type=field.type.value,
                actual_type=type(raw).__name__,
            )
        ]

    errors: List[AtlasErrorPayload] = []

    if typed.kind == ValueKind.NUMBER:
        if (c.min is not None and typed.value < c.min) or (c.max is not None and typed.value > c.max):
            errors.append(
                field_out_of_range(
                    field=field.key,
                    value=typed.value,
                    min_value=c.min,
                    max_value=c.max,
                    message=c.message,
                )
            )

    if typed.kind == ValueKind.TEXT:
        length = len(typed.value)
        if (c.min_length is not None and length < c.min_length) or (
            c.max_length is not None and length > c.max_length
        ):
            errors.append(
                field_invalid_length(
                    field=field.key,
                    length=length,
                    min_length=c.min_length,
                    max_length=c.max_length,
                    message=c.message,
                )
            )
        if c.pattern:
            try:
                matched = re.search(c.pattern, typed.value) is not None
            except re.error:
                matched = False
            if not matched:
                errors.append(field_pattern_mismatch(field=field.key, pattern=c.pattern, message=c.message))

    allowed = field.option_values()
    if allowed:
        if field.type in (FieldType.SELECT, FieldType.RADIO) and typed.value not in allowed:
            errors.append(field_invalid_option(field=field.key, value=typed.value, allowed=allowed))
        elif field.type == FieldType.CHECKBOX:
            for v in typed.value:
                if v not in allowed:
                    errors.append(field_invalid_option(field=field.key, value=v, allowed=allowed))

    return errors
