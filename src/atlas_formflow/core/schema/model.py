"""
Schema canônico de formulário — Atlas FormFlow v1.

Representação interna explícita do schema declarativo consumido pelo motor
de avaliação: campos, regras condicionais, fórmulas de campos calculados e
layout em grade.

Decisões arquiteturais:
    - Tipos imutáveis (frozen dataclasses) com listas ordenadas
    - Enums de domínio como `str, Enum` (serialização direta)
    - `to_dict()` / `from_dict()` simétricos com chaves snake_case
    - `from_dict()` valida apenas a estrutura (tipos de container, enums);
      a semântica (referências, ciclos, duplicidade) fica com o validador

Invariantes:
    - `FormSchema.from_dict(s.to_dict()) == s`; datas viajam como ISO-8601 e
      são restauradas pelo tipo declarado do campo
    - `to_dict()` produz apenas valores nativos de JSON quando os valores
      livres são nativos ou datas
    - A ordem de `fields` e `rules` é a ordem de declaração

Esta implementação evita dependências externas (ex.: Pydantic) para manter
o core leve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from .errors import SchemaStructureError


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"


# tipos que declaram lista de opções
OPTION_TYPES = {FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX}


class Operator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class RuleEffect(str, Enum):
    VISIBILITY = "visibility"
    REQUIRED = "required"
    SET_VALUE = "set_value"


class ComputeFunction(str, Enum):
    SUM = "SUM"
    COUNT = "COUNT"
    AVG = "AVG"
    MAX = "MAX"
    MIN = "MIN"
    CONCAT = "CONCAT"


E = TypeVar("E", bound=Enum)


# -----------------------------
# Helpers estruturais
# -----------------------------
def _expect(cond: bool, msg: str) -> None:
    if not cond:
        raise SchemaStructureError(msg)


def _mapping(data: Any, path: str) -> Dict[str, Any]:
    _expect(isinstance(data, dict), f"{path} must be a mapping")
    return data


def _list(data: Any, path: str) -> List[Any]:
    if data is None:
        return []
    _expect(isinstance(data, list), f"{path} must be a list")
    return data


def _str(data: Any, path: str, default: str = "") -> str:
    if data is None:
        return default
    _expect(isinstance(data, str), f"{path} must be a string")
    return data


def _opt_int(data: Any, path: str) -> Optional[int]:
    if data is None:
        return None
    _expect(isinstance(data, int) and not isinstance(data, bool), f"{path} must be an integer")
    return data


def _opt_number(data: Any, path: str) -> Optional[float]:
    if data is None:
        return None
    _expect(isinstance(data, (int, float)) and not isinstance(data, bool), f"{path} must be a number")
    return data


def _bool(data: Any, path: str, default: bool) -> bool:
    if data is None:
        return default
    _expect(isinstance(data, bool), f"{path} must be boolean")
    return data


# -----------------------------
# Valores livres (default_value, compare_value, effect_value)
# -----------------------------
def encode_value(value: Any) -> Any:
    """Converte datas em strings ISO-8601 (recursivo em listas e mapas)."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    return value


def decode_value(field_type: Optional["FieldType"], value: Any) -> Any:
    """
    Restaura datas ISO-8601 quando o tipo declarado é `date`.

    Strings que não são datas válidas são mantidas como estão; o validador
    e o Data Engine tratam o valor como inválido para o tipo.
    """
    if field_type != FieldType.DATE or not isinstance(value, str):
        return value
    try:
        if "T" in value or " " in value:
            return datetime.fromisoformat(value)
        return date.fromisoformat(value)
    except ValueError:
        return value


def is_json_native(value: Any) -> bool:
    """True se o valor (após `encode_value`) é serializável em JSON sem perda."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, list):
        return all(is_json_native(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_json_native(v) for k, v in value.items())
    return False


def _enum(enum_cls: Type[E], data: Any, path: str) -> E:
    try:
        return enum_cls(data)
    except (ValueError, TypeError):
        allowed = [m.value for m in enum_cls]
        raise SchemaStructureError(f"{path} must be one of {allowed}, got {data!r}") from None


# -----------------------------
# Tipos do modelo
# -----------------------------
@dataclass(frozen=True)
class FieldConstraints:
    """Restrições declaradas de um campo (obrigatoriedade padrão, limites, padrão)."""

    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "required": self.required,
            "min": self.min,
            "max": self.max,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "pattern": self.pattern,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "constraints") -> "FieldConstraints":
        if data is None:
            return cls()
        data = _mapping(data, path)
        pattern = data.get("pattern")
        _expect(pattern is None or isinstance(pattern, str), f"{path}.pattern must be a string")
        message = data.get("message")
        _expect(message is None or isinstance(message, str), f"{path}.message must be a string")
        return cls(
            required=_bool(data.get("required"), f"{path}.required", False),
            min=_opt_number(data.get("min"), f"{path}.min"),
            max=_opt_number(data.get("max"), f"{path}.max"),
            min_length=_opt_int(data.get("min_length"), f"{path}.min_length"),
            max_length=_opt_int(data.get("max_length"), f"{path}.max_length"),
            pattern=pattern,
            message=message,
        )


@dataclass(frozen=True)
class OptionItem:
    value: Any
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"value": encode_value(self.value), "label": self.label}

    @classmethod
    def from_dict(cls, data: Any, path: str = "option") -> "OptionItem":
        data = _mapping(data, path)
        _expect("value" in data, f"{path}.value is required")
        return cls(value=data["value"], label=_str(data.get("label"), f"{path}.label"))


@dataclass(frozen=True)
class ComputationConfig:
    """
    Fórmula de um campo calculado.

    `separator` e `precision` são opcionais; quando ausentes, o Compute Engine
    usa os valores da configuração (`compute.concat_separator`,
    `compute.precision`).
    """

    function: ComputeFunction
    source_fields: List[str] = field(default_factory=list)
    separator: Optional[str] = None
    precision: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "function": self.function.value,
            "source_fields": list(self.source_fields),
            "separator": self.separator,
            "precision": self.precision,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "computation") -> "ComputationConfig":
        data = _mapping(data, path)
        sources = _list(data.get("source_fields"), f"{path}.source_fields")
        for i, s in enumerate(sources):
            _expect(isinstance(s, str), f"{path}.source_fields[{i}] must be a string")
        separator = data.get("separator")
        _expect(separator is None or isinstance(separator, str), f"{path}.separator must be a string")
        return cls(
            function=_enum(ComputeFunction, data.get("function"), f"{path}.function"),
            source_fields=list(sources),
            separator=separator,
            precision=_opt_int(data.get("precision"), f"{path}.precision"),
        )


@dataclass(frozen=True)
class FieldSchema:
    key: str
    type: FieldType
    label: str = ""
    default_value: Any = None
    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    options: List[OptionItem] = field(default_factory=list)
    visible: bool = True
    computation: Optional[ComputationConfig] = None

    @property
    def is_computed(self) -> bool:
        """Campo derivado: nunca gravável diretamente pelo usuário."""
        return self.computation is not None

    def option_values(self) -> List[Any]:
        return [o.value for o in self.options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "type": self.type.value,
            "label": self.label,
            "default_value": encode_value(self.default_value),
            "constraints": self.constraints.to_dict(),
            "options": [o.to_dict() for o in self.options],
            "visible": self.visible,
            "computation": self.computation.to_dict() if self.computation else None,
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "field") -> "FieldSchema":
        data = _mapping(data, path)
        options = _list(data.get("options"), f"{path}.options")
        computation = data.get("computation")
        ftype = _enum(FieldType, data.get("type"), f"{path}.type")
        return cls(
            key=_str(data.get("key"), f"{path}.key"),
            type=ftype,
            label=_str(data.get("label"), f"{path}.label"),
            default_value=decode_value(ftype, data.get("default_value")),
            constraints=FieldConstraints.from_dict(data.get("constraints"), f"{path}.constraints"),
            options=[OptionItem.from_dict(o, f"{path}.options[{i}]") for i, o in enumerate(options)],
            visible=_bool(data.get("visible"), f"{path}.visible", True),
            computation=(
                ComputationConfig.from_dict(computation, f"{path}.computation")
                if computation is not None
                else None
            ),
        )


@dataclass(frozen=True)
class RuleSchema:
    """
    Regra condicional de gatilho único.

    Exatamente um campo gatilho, uma condição e um campo alvo; composição
    booleana entre regras não existe.
    """

    id: str
    trigger_field: str
    operator: Operator
    target_field: str
    effect: RuleEffect
    compare_value: Any = None
    effect_value: Any = None
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "trigger_field": self.trigger_field,
            "operator": self.operator.value,
            "compare_value": encode_value(self.compare_value),
            "target_field": self.target_field,
            "effect": self.effect.value,
            "effect_value": encode_value(self.effect_value),
        }

    @classmethod
    def from_dict(
        cls,
        data: Any,
        path: str = "rule",
        field_types: Optional[Mapping[str, FieldType]] = None,
    ) -> "RuleSchema":
        """
        Materializa uma regra.

        Com `field_types`, datas ISO em `compare_value` são restauradas pelo
        tipo do gatilho e, em `set_value`, `effect_value` pelo tipo do alvo.
        """
        data = _mapping(data, path)
        types = field_types or {}
        trigger = _str(data.get("trigger_field"), f"{path}.trigger_field")
        target = _str(data.get("target_field"), f"{path}.target_field")
        effect = _enum(RuleEffect, data.get("effect"), f"{path}.effect")
        effect_value = data.get("effect_value")
        if effect == RuleEffect.SET_VALUE:
            effect_value = decode_value(types.get(target), effect_value)
        return cls(
            id=_str(data.get("id"), f"{path}.id"),
            name=_str(data.get("name"), f"{path}.name"),
            trigger_field=trigger,
            operator=_enum(Operator, data.get("operator"), f"{path}.operator"),
            compare_value=decode_value(types.get(trigger), data.get("compare_value")),
            target_field=target,
            effect=effect,
            effect_value=effect_value,
        )


@dataclass(frozen=True)
class LayoutColumn:
    span: int
    fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"span": self.span, "fields": list(self.fields)}

    @classmethod
    def from_dict(cls, data: Any, path: str = "column") -> "LayoutColumn":
        data = _mapping(data, path)
        span = _opt_int(data.get("span"), f"{path}.span")
        _expect(span is not None, f"{path}.span is required")
        keys = _list(data.get("fields"), f"{path}.fields")
        for i, k in enumerate(keys):
            _expect(isinstance(k, str), f"{path}.fields[{i}] must be a string")
        return cls(span=span, fields=list(keys))


@dataclass(frozen=True)
class LayoutRow:
    columns: List[LayoutColumn] = field(default_factory=list)

    def field_keys(self) -> List[str]:
        return [k for c in self.columns for k in c.fields]

    def to_dict(self) -> Dict[str, Any]:
        return {"columns": [c.to_dict() for c in self.columns]}

    @classmethod
    def from_dict(cls, data: Any, path: str = "row") -> "LayoutRow":
        data = _mapping(data, path)
        cols = _list(data.get("columns"), f"{path}.columns")
        return cls(columns=[LayoutColumn.from_dict(c, f"{path}.columns[{i}]") for i, c in enumerate(cols)])


@dataclass(frozen=True)
class FormSchema:
    """Schema completo de um formulário (entrada do validador e do Data Engine)."""

    id: str
    title: str
    fields: List[FieldSchema] = field(default_factory=list)
    rules: List[RuleSchema] = field(default_factory=list)
    layout: List[LayoutRow] = field(default_factory=list)
    version: int = 1
    description: str = ""

    def field_keys(self) -> List[str]:
        return [f.key for f in self.fields]

    def field_by_key(self, key: str) -> Optional[FieldSchema]:
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def rule_by_id(self, rule_id: str) -> Optional[RuleSchema]:
        for r in self.rules:
            if r.id == rule_id:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "title": self.title,
            "description": self.description,
            "fields": [f.to_dict() for f in self.fields],
            "rules": [r.to_dict() for r in self.rules],
            "layout": [row.to_dict() for row in self.layout],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "FormSchema":
        data = _mapping(data, "schema")
        version = _opt_int(data.get("version"), "version")
        fields = _list(data.get("fields"), "fields")
        rules = _list(data.get("rules"), "rules")
        layout = _list(data.get("layout"), "layout")
        parsed = [FieldSchema.from_dict(f, f"fields[{i}]") for i, f in enumerate(fields)]
        types = {f.key: f.type for f in parsed}
        return cls(
            id=_str(data.get("id"), "id"),
            version=1 if version is None else version,
            title=_str(data.get("title"), "title"),
            description=_str(data.get("description"), "description"),
            fields=parsed,
            rules=[RuleSchema.from_dict(r, f"rules[{i}]", types) for i, r in enumerate(rules)],
            layout=[LayoutRow.from_dict(row, f"layout[{i}]") for i, row in enumerate(layout)],
        )
