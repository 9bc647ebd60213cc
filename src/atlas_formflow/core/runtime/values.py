"""
Valores tipados do runtime de formulários.

Todo valor bruto do FormData é interpretado segundo o tipo declarado do
campo antes de ser comparado (Rule Engine) ou agregado (Compute Engine).
Não há coerção implícita: "10" num campo `number` é INVALID, não 10.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from atlas_formflow.core.schema.model import FieldType


class ValueKind(str, Enum):
    EMPTY = "empty"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    LIST = "list"
    INVALID = "invalid"


@dataclass(frozen=True)
class TypedValue:
    kind: ValueKind
    value: Any = None

    @property
    def is_empty(self) -> bool:
        return self.kind == ValueKind.EMPTY


EMPTY = TypedValue(ValueKind.EMPTY)

_TEXT_TYPES = {FieldType.TEXT, FieldType.TEXTAREA, FieldType.SELECT, FieldType.RADIO}


def is_blank(raw: Any) -> bool:
    """None, string vazia e lista vazia contam como "sem valor"."""
    if raw is None:
        return True
    if isinstance(raw, str) and raw == "":
        return True
    if isinstance(raw, (list, tuple)) and len(raw) == 0:
        return True
    return False


def is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


def _parse_date(raw: Any):
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None
    return None


def coerce(field_type: FieldType, raw: Any) -> TypedValue:
    """
    Interpreta `raw` segundo o tipo declarado do campo.

    Args:
        field_type: Tipo declarado do campo.
        raw: Valor bruto armazenado no FormData.

    Returns:
        TypedValue; INVALID quando o valor não corresponde ao tipo.
    """
    if is_blank(raw):
        return EMPTY

    if field_type == FieldType.NUMBER:
        if not is_number(raw):
            return TypedValue(ValueKind.INVALID, raw)
        if isinstance(raw, float) and math.isnan(raw):
            return EMPTY
        return TypedValue(ValueKind.NUMBER, raw)

    if field_type in _TEXT_TYPES:
        if isinstance(raw, str):
            return TypedValue(ValueKind.TEXT, raw)
        return TypedValue(ValueKind.INVALID, raw)

    if field_type == FieldType.BOOLEAN:
        if isinstance(raw, bool):
            return TypedValue(ValueKind.BOOLEAN, raw)
        return TypedValue(ValueKind.INVALID, raw)

    if field_type == FieldType.DATE:
        parsed = _parse_date(raw)
        if parsed is None:
            return TypedValue(ValueKind.INVALID, raw)
        return TypedValue(ValueKind.DATE, parsed)

    if field_type == FieldType.CHECKBOX:
        if isinstance(raw, (list, tuple)):
            return TypedValue(ValueKind.LIST, list(raw))
        return TypedValue(ValueKind.INVALID, raw)

    return TypedValue(ValueKind.INVALID, raw)


def coerce_like(typed: TypedValue, raw: Any) -> TypedValue:
    """
    Interpreta o valor de comparação de uma regra na mesma família do gatilho.

    Para gatilhos LIST o valor de comparação pode ser lista ou escalar
    (pertinência); para DATE aceita string ISO.
    """
    if is_blank(raw):
        return EMPTY
    if typed.kind == ValueKind.DATE:
        parsed = _parse_date(raw)
        return TypedValue(ValueKind.DATE, parsed) if parsed is not None else TypedValue(ValueKind.INVALID, raw)
    return infer(raw)


def infer(raw: Any) -> TypedValue:
    """Classifica um valor sem tipo declarado (valores de comparação, fórmulas)."""
    if is_blank(raw):
        return EMPTY
    if isinstance(raw, bool):
        return TypedValue(ValueKind.BOOLEAN, raw)
    if is_number(raw):
        if isinstance(raw, float) and math.isnan(raw):
            return EMPTY
        return TypedValue(ValueKind.NUMBER, raw)
    if isinstance(raw, str):
        return TypedValue(ValueKind.TEXT, raw)
    if isinstance(raw, (datetime, date)):
        return TypedValue(ValueKind.DATE, _parse_date(raw))
    if isinstance(raw, (list, tuple)):
        return TypedValue(ValueKind.LIST, list(raw))
    return TypedValue(ValueKind.INVALID, raw)
