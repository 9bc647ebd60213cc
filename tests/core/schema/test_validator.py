# tests/core/schema/test_validator.py
"""
Testes do validador semântico de schema.

Os testes asseguram que:
- um schema correto gera relatório válido, sem erros
- cada checagem produz um payload com `type` e `details.path` estáveis
- avisos não invalidam o relatório
- ciclos são reportados com as chaves participantes
- o validador nunca lança exceção
"""

import pytest

from atlas_formflow.core.errors import CYCLIC_DEPENDENCY, SCHEMA_VALIDATION_ERROR, SCHEMA_WARNING
from atlas_formflow.core.schema.validator import validate_schema


# -----------------------------
# Helpers
# -----------------------------
def _paths(entries):
    return [e["details"]["path"] for e in entries]


def _rule(rule_id, trigger, target, effect="visibility", effect_value=True, operator="equals", compare_value="x"):
    return {
        "id": rule_id,
        "trigger_field": trigger,
        "operator": operator,
        "compare_value": compare_value,
        "target_field": target,
        "effect": effect,
        "effect_value": effect_value,
    }


# -----------------------------
# Tests
# -----------------------------
def test_valid_schema(cascade_schema):
    report = validate_schema(cascade_schema)
    assert report.valid is True
    assert report.errors == []
    assert report.warnings == []
    assert report.cycle is None


def test_title_and_id_required(make_schema):
    report = validate_schema(make_schema(fields=[{"key": "a", "type": "text"}], title=" ", id=""))
    assert report.valid is False
    assert _paths(report.errors) == ["title", "id"]
    assert all(e["type"] == SCHEMA_VALIDATION_ERROR for e in report.errors)
    assert all(e["decision_required"] is True for e in report.errors)


def test_empty_and_duplicate_keys(make_schema):
    schema = make_schema(
        fields=[
            {"key": "", "type": "text"},
            {"key": "a", "type": "text"},
            {"key": "a", "type": "number"},
        ]
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["fields[0].key", "fields[2].key"]


def test_options_required_for_select_and_radio(make_schema):
    schema = make_schema(
        fields=[
            {"key": "s", "type": "select"},
            {"key": "r", "type": "radio"},
            {"key": "c", "type": "checkbox"},
        ]
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["fields[0].options", "fields[1].options"]
    assert _paths(report.warnings) == ["fields[2].options"]
    assert report.warnings[0]["type"] == SCHEMA_WARNING


def test_broken_references(make_schema):
    schema = make_schema(
        fields=[
            {"key": "a", "type": "number"},
            {"key": "t", "type": "number", "computation": {"function": "SUM", "source_fields": ["a", "ghost"]}},
            {"key": "e", "type": "number", "computation": {"function": "SUM", "source_fields": []}},
        ],
        rules=[_rule("r1", "nope", "a"), _rule("r2", "a", "missing")],
    )
    report = validate_schema(schema)
    paths = _paths(report.errors)
    assert "fields[2].computation.source_fields" in paths
    assert "fields[1].computation.source_fields[1]" in paths
    assert "rules[0].trigger_field" in paths
    assert "rules[1].target_field" in paths
    assert report.cycle is None


def test_set_value_on_computed_field_is_error(make_schema):
    schema = make_schema(
        fields=[
            {"key": "a", "type": "text"},
            {"key": "n", "type": "number"},
            {"key": "t", "type": "number", "computation": {"function": "SUM", "source_fields": ["n"]}},
        ],
        rules=[_rule("r1", "a", "t", effect="set_value", effect_value=5)],
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["rules[0].target_field"]


def test_script_markers_rejected(make_schema):
    fields = [{"key": "a", "type": "text"}, {"key": "b", "type": "text"}]
    schema = make_schema(
        fields=fields,
        rules=[
            _rule("r1", "a", "b", compare_value="${a}"),
            _rule("r2", "a", "b", effect="set_value", effect_value="function() { return 1 }"),
        ],
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["rules[0].compare_value", "rules[1].effect_value"]


def test_visibility_effect_value_must_be_bool(make_schema):
    schema = make_schema(
        fields=[{"key": "a", "type": "text"}, {"key": "b", "type": "text"}],
        rules=[_rule("r1", "a", "b", effect="required", effect_value="yes")],
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["rules[0].effect_value"]


def test_duplicate_rule_ids(make_schema):
    schema = make_schema(
        fields=[{"key": "a", "type": "text"}, {"key": "b", "type": "text"}],
        rules=[_rule("r1", "a", "b"), _rule("r1", "a", "b", effect_value=False)],
    )
    report = validate_schema(schema)
    assert _paths(report.errors) == ["rules[1].id"]


def test_layout_checks(make_schema):
    schema = make_schema(
        fields=[{"key": "a", "type": "text"}, {"key": "b", "type": "text"}, {"key": "c", "type": "text"}],
        layout=[
            {"columns": [{"span": 8, "fields": ["a"]}, {"span": 6, "fields": ["ghost"]}]},
            {"columns": [{"span": 0, "fields": ["b"]}]},
            {"columns": []},
        ],
    )
    report = validate_schema(schema)
    paths = _paths(report.errors)
    assert "layout[0].columns[1].fields" in paths
    assert "layout[0]" in paths
    assert "layout[1].columns[0].span" in paths
    assert _paths(report.warnings) == ["layout[2]", "fields[2]"]


def test_unplaced_fields_not_warned_without_layout(make_schema):
    report = validate_schema(make_schema(fields=[{"key": "a", "type": "text"}]))
    assert report.warnings == []


def test_grid_columns_from_config(make_schema):
    schema = make_schema(
        fields=[{"key": "a", "type": "text"}],
        layout=[{"columns": [{"span": 16, "fields": ["a"]}]}],
    )
    assert validate_schema(schema).valid is False
    assert validate_schema(schema, {"layout": {"grid_columns": 24}}).valid is True


def test_cycle_reported_with_keys(make_schema):
    schema = make_schema(
        fields=[
            {"key": "a", "type": "number", "computation": {"function": "SUM", "source_fields": ["c"]}},
            {"key": "b", "type": "number", "computation": {"function": "SUM", "source_fields": ["a"]}},
            {"key": "c", "type": "number", "computation": {"function": "SUM", "source_fields": ["b"]}},
        ]
    )
    report = validate_schema(schema)
    assert report.valid is False
    assert set(report.cycle) == {"a", "b", "c"}
    cyc = [e for e in report.errors if e["type"] == CYCLIC_DEPENDENCY]
    assert len(cyc) == 1
    assert cyc[0]["details"]["cycle"] == report.cycle


def test_report_is_serializable(cascade_schema):
    import json

    json.dumps(validate_schema(cascade_schema).to_dict())


@pytest.mark.parametrize("run", range(3))
def test_report_is_deterministic(make_schema, run):
    schema = make_schema(
        fields=[{"key": "s", "type": "select"}, {"key": "s", "type": "radio"}],
        rules=[_rule("r", "ghost", "s")],
    )
    assert validate_schema(schema).to_dict() == validate_schema(schema).to_dict()


def test_non_serializable_values_are_errors(make_schema):
    import json
    from datetime import date

    schema = make_schema(
        fields=[
            {"key": "a", "type": "text", "default_value": {1, 2}},
            {"key": "d", "type": "date", "default_value": date(2024, 1, 1)},
        ],
        rules=[
            _rule("r1", "a", "d", operator="equals", compare_value=object()),
            _rule("r2", "a", "d", effect="visibility", effect_value=date(2024, 1, 1)),
        ],
    )
    report = validate_schema(schema)
    paths = _paths(report.errors)
    assert paths[:2] == ["fields[0].default_value", "rules[0].compare_value"]
    assert "rules[1].effect_value" in paths
    json.dumps(report.to_dict())
