# tests/core/runtime/test_rule_engine.py
"""
Testes do Rule Engine.

Os testes asseguram que:
- operadores comparam de forma tipada pelo tipo declarado do gatilho
- comparações incompatíveis avaliam False com RULE_EVALUATION_ERROR (sem lançar)
- para o mesmo alvo e efeito, a última regra satisfeita prevalece
- efeitos set_value são reportados, não aplicados
"""

import pytest

from atlas_formflow.core.errors import RULE_EVALUATION_ERROR
from atlas_formflow.core.runtime.rules import RuleEngine
from atlas_formflow.core.schema.model import FieldType, RuleSchema


TYPES = {
    "n": FieldType.NUMBER,
    "t": FieldType.TEXT,
    "d": FieldType.DATE,
    "c": FieldType.CHECKBOX,
    "b": FieldType.BOOLEAN,
    "x": FieldType.TEXT,
}


# -----------------------------
# Helpers
# -----------------------------
def _rule(operator, compare_value=None, trigger="n", target="x", effect="visibility", effect_value=True, rule_id="r"):
    return RuleSchema.from_dict(
        {
            "id": rule_id,
            "trigger_field": trigger,
            "operator": operator,
            "compare_value": compare_value,
            "target_field": target,
            "effect": effect,
            "effect_value": effect_value,
        }
    )


def _eval(rule, data):
    return RuleEngine().evaluate_rule(rule, data, TYPES)


# -----------------------------
# Tests
# -----------------------------
@pytest.mark.parametrize(
    "operator,trigger,compare,value,expected",
    [
        ("equals", "n", 5, 5, True),
        ("equals", "n", 5, 5.0, True),
        ("not_equals", "n", 5, 6, True),
        ("equals", "t", "no", "no", True),
        ("equals", "t", None, None, True),
        ("equals", "t", "no", None, False),
        ("greater_than", "n", 100, 110, True),
        ("greater_than", "n", 100, 100, False),
        ("less_than", "n", 100, 80, True),
        ("greater_than", "n", 100, None, False),
        ("greater_than", "d", "2024-01-01", "2024-06-01", True),
        ("less_than", "d", "2024-01-01", "2023-12-31", True),
        ("contains", "t", "ell", "hello", True),
        ("contains", "t", "xyz", "hello", False),
        ("contains", "c", "a", ["a", "b"], True),
        ("contains", "c", "z", ["a", "b"], False),
        ("equals", "c", ["b", "a"], ["a", "b"], True),
        ("equals", "c", "a", ["a", "b"], True),
        ("is_empty", "t", None, "", True),
        ("is_empty", "c", None, [], True),
        ("is_not_empty", "n", None, 0, True),
        ("equals", "b", True, True, True),
    ],
)
def test_operators(operator, trigger, compare, value, expected):
    satisfied, err = _eval(_rule(operator, compare, trigger=trigger), {trigger: value})
    assert satisfied is expected
    assert err is None


@pytest.mark.parametrize(
    "operator,trigger,compare,value",
    [
        ("equals", "n", "5", 5),
        ("not_equals", "n", "5", 5),
        ("greater_than", "t", "a", "b"),
        ("contains", "t", 1, "hello"),
        ("contains", "n", 1, 10),
        ("equals", "n", 5, "five"),
    ],
)
def test_incompatible_is_false_with_error(operator, trigger, compare, value):
    satisfied, err = _eval(_rule(operator, compare, trigger=trigger), {trigger: value})
    assert satisfied is False
    assert err is not None
    assert err.type == RULE_EVALUATION_ERROR
    assert err.details["rule_id"] == "r"
    assert err.details["field"] == "x"


def test_invalid_trigger_value_is_not_empty():
    satisfied, err = _eval(_rule("is_empty", trigger="n"), {"n": "abc"})
    assert satisfied is False
    assert err is None


def test_later_declared_rule_wins():
    rules = [
        _rule("greater_than", 10, effect_value=True, rule_id="show"),
        _rule("greater_than", 5, effect_value=False, rule_id="hide"),
    ]
    result = RuleEngine().evaluate(rules, {"n": 20}, TYPES)
    assert result.triggered == ["show", "hide"]
    assert result.visibility == {"x": False}


def test_later_declared_rule_wins_for_required():
    rules = [
        _rule("greater_than", 10, effect="required", effect_value=False, rule_id="optional"),
        _rule("greater_than", 5, effect="required", effect_value=True, rule_id="mandatory"),
    ]
    result = RuleEngine().evaluate(rules, {"n": 20}, TYPES)
    assert result.required == {"x": True}
    assert RuleEngine().evaluate(list(reversed(rules)), {"n": 20}, TYPES).required == {"x": False}


def test_unsatisfied_rules_leave_no_effect():
    result = RuleEngine().evaluate([_rule("equals", 1)], {"n": 2}, TYPES)
    assert result.visibility == {}
    assert result.triggered == []


def test_set_value_is_reported_not_applied():
    data = {"n": 1, "x": "old"}
    result = RuleEngine().evaluate(
        [_rule("equals", 1, effect="set_value", effect_value="new", rule_id="sv")], data, TYPES
    )
    assert result.set_values == {"x": "new"}
    assert result.set_value_rules == {"x": "sv"}
    assert data["x"] == "old"


def test_errors_are_keyed_by_target():
    result = RuleEngine().evaluate(
        [_rule("equals", "5", target="t", effect="required")], {"n": 5}, TYPES
    )
    assert list(result.errors.keys()) == ["t"]
    assert result.errors["t"][0]["type"] == RULE_EVALUATION_ERROR
    assert result.required == {}


def test_unknown_trigger_is_false_with_error():
    satisfied, err = _eval(_rule("equals", 1, trigger="ghost"), {})
    assert satisfied is False
    assert err is not None
