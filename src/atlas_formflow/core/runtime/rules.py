"""
Rule Engine — avaliação pura de regras condicionais.

Cada regra tem exatamente um campo gatilho, uma condição e um campo alvo.
A avaliação é tipada: o valor do gatilho é interpretado pelo tipo declarado
do campo (`coerce`) e o valor de comparação na mesma família.

Decisões arquiteturais:
    - Comparações incompatíveis avaliam como False e geram um payload
      RULE_EVALUATION_ERROR indexado pelo campo alvo; nunca lançam
    - Regras são processadas em ordem de declaração; para o mesmo alvo e
      efeito, a última regra satisfeita prevalece
    - Efeitos `set_value` são apenas reportados; quem escreve é o Data Engine

Limites explícitos:
    - Não conhece o grafo de dependências
    - Não muta FormData
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from atlas_formflow.core.errors import AtlasErrorPayload, rule_evaluation_error
from atlas_formflow.core.schema.model import FieldType, Operator, RuleEffect, RuleSchema

from .values import TypedValue, ValueKind, coerce, coerce_like


@dataclass
class RuleEvaluationResult:
    """
    Resultado agregado da avaliação de um conjunto de regras.

    `visibility` e `required` contêm apenas alvos com ao menos uma regra
    satisfeita; `set_value_rules` indica, por alvo, a regra vencedora.
    """

    visibility: Dict[str, bool] = field(default_factory=dict)
    required: Dict[str, bool] = field(default_factory=dict)
    set_values: Dict[str, Any] = field(default_factory=dict)
    set_value_rules: Dict[str, str] = field(default_factory=dict)
    triggered: List[str] = field(default_factory=list)
    errors: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


def _members_equal(a: List[Any], b: List[Any]) -> bool:
    return all(x in b for x in a) and all(y in a for y in b)


class RuleEngine:
    """Avaliador stateless de regras."""

    def evaluate_rule(
        self,
        rule: RuleSchema,
        form_data: Mapping[str, Any],
        field_types: Mapping[str, FieldType],
    ) -> Tuple[bool, Optional[AtlasErrorPayload]]:
        """
        Avalia a condição de uma única regra.

        Returns:
            (satisfeita, payload de erro ou None)
        """
        ftype = field_types.get(rule.trigger_field)
        if ftype is None:
            return False, self._error(rule, "campo gatilho inexistente")

        trigger = coerce(ftype, form_data.get(rule.trigger_field))
        op = rule.operator

        if op == Operator.IS_EMPTY:
            return trigger.kind == ValueKind.EMPTY, None
        if op == Operator.IS_NOT_EMPTY:
            return trigger.kind != ValueKind.EMPTY, None

        if trigger.kind == ValueKind.INVALID:
            return False, self._error(rule, f"valor do gatilho incompatível com o tipo '{ftype.value}'")

        compare = coerce_like(trigger, rule.compare_value)
        if compare.kind == ValueKind.INVALID:
            return False, self._error(rule, "valor de comparação inválido")

        if op in (Operator.EQUALS, Operator.NOT_EQUALS):
            equal, reason = self._equals(trigger, compare)
            if reason is not None:
                return False, self._error(rule, reason)
            return (equal if op == Operator.EQUALS else not equal), None

        if op in (Operator.GREATER_THAN, Operator.LESS_THAN):
            if trigger.is_empty or compare.is_empty:
                return False, None
            ordered = {ValueKind.NUMBER, ValueKind.DATE}
            if trigger.kind != compare.kind or trigger.kind not in ordered:
                return False, self._error(
                    rule, f"comparação de ordem entre '{trigger.kind.value}' e '{compare.kind.value}'"
                )
            if op == Operator.GREATER_THAN:
                return trigger.value > compare.value, None
            return trigger.value < compare.value, None

        if op == Operator.CONTAINS:
            return self._contains(rule, trigger, compare)

        return False, self._error(rule, f"operador não suportado: {op}")

    def evaluate(
        self,
        rules: Sequence[RuleSchema],
        form_data: Mapping[str, Any],
        field_types: Mapping[str, FieldType],
    ) -> RuleEvaluationResult:
        """
        Avalia regras em ordem de declaração.

        Args:
            rules: Regras a avaliar (ordem = ordem de declaração).
            form_data: Valores atuais por chave.
            field_types: Tipo declarado de cada campo.

        Returns:
            RuleEvaluationResult com efeitos das regras satisfeitas.
        """
        result = RuleEvaluationResult()

        for rule in rules:
            satisfied, err = self.evaluate_rule(rule, form_data, field_types)
            if err is not None:
                result.errors.setdefault(rule.target_field, []).append(err.to_dict())
            if not satisfied:
                continue

            result.triggered.append(rule.id)
            if rule.effect == RuleEffect.VISIBILITY:
                result.visibility[rule.target_field] = bool(rule.effect_value)
            elif rule.effect == RuleEffect.REQUIRED:
                result.required[rule.target_field] = bool(rule.effect_value)
            elif rule.effect == RuleEffect.SET_VALUE:
                result.set_values[rule.target_field] = rule.effect_value
                result.set_value_rules[rule.target_field] = rule.id

        return result

    # -----------------------------
    # Operadores
    # -----------------------------
    @staticmethod
    def _equals(trigger: TypedValue, compare: TypedValue) -> Tuple[bool, Optional[str]]:
        if trigger.is_empty or compare.is_empty:
            return trigger.is_empty and compare.is_empty, None

        if trigger.kind == ValueKind.LIST:
            if compare.kind == ValueKind.LIST:
                return _members_equal(trigger.value, compare.value), None
            return compare.value in trigger.value, None

        if trigger.kind != compare.kind:
            return False, f"comparação entre '{trigger.kind.value}' e '{compare.kind.value}'"

        return trigger.value == compare.value, None

    def _contains(
        self, rule: RuleSchema, trigger: TypedValue, compare: TypedValue
    ) -> Tuple[bool, Optional[AtlasErrorPayload]]:
        if trigger.is_empty or compare.is_empty:
            return False, None

        if trigger.kind == ValueKind.TEXT:
            if compare.kind != ValueKind.TEXT:
                return False, self._error(rule, "contains em texto exige valor de comparação textual")
            return compare.value in trigger.value, None

        if trigger.kind == ValueKind.LIST:
            if compare.kind == ValueKind.LIST:
                return all(v in trigger.value for v in compare.value), None
            return compare.value in trigger.value, None

        return False, self._error(rule, f"contains não se aplica a '{trigger.kind.value}'")

    @staticmethod
    def _error(rule: RuleSchema, reason: str) -> AtlasErrorPayload:
        return rule_evaluation_error(
            rule_id=rule.id,
            field=rule.target_field,
            reason=reason,
            operator=rule.operator.value,
        )
