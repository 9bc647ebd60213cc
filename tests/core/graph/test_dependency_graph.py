# tests/core/graph/test_dependency_graph.py
"""
Testes do grafo de dependências entre campos.

Os testes asseguram que:
- arestas de regras e fórmulas são construídas e colapsadas
- a ordem topológica respeita dependências e desempata pela declaração
- ciclos são detectados (inclusive auto-laços) nomeando as chaves
- referências inexistentes falham em modo estrito e são ignoradas fora dele
"""

import pytest

from atlas_formflow.core.exceptions import CyclicDependencyError, SchemaValidationError
from atlas_formflow.core.graph.dependency import build_dependency_graph, find_cycle, topological_order


# -----------------------------
# Helpers
# -----------------------------
def _sum(key, *sources):
    return {"key": key, "type": "number", "computation": {"function": "SUM", "source_fields": list(sources)}}


def _num(key):
    return {"key": key, "type": "number"}


def _vis(rule_id, trigger, target):
    return {
        "id": rule_id,
        "trigger_field": trigger,
        "operator": "is_not_empty",
        "target_field": target,
        "effect": "visibility",
        "effect_value": True,
    }


# -----------------------------
# Tests
# -----------------------------
def test_edges_from_rules_and_computations(cascade_schema):
    graph = build_dependency_graph(cascade_schema)
    assert graph.keys == ["Price", "Tax", "Total", "Approval"]
    assert graph.successors("Price") == ["Total"]
    assert graph.successors("Total") == ["Approval"]
    assert graph.dependencies("Total") == ["Price", "Tax"]
    assert graph.descendants("Price") == {"Total", "Approval"}
    assert graph.descendants("Approval") == set()
    assert "Tax" in graph
    assert graph.edge_count == 3


def test_duplicate_edges_are_collapsed(make_schema):
    schema = make_schema(
        fields=[_num("a"), _sum("b", "a", "a")],
        rules=[_vis("r1", "a", "b"), _vis("r2", "a", "b")],
    )
    graph = build_dependency_graph(schema)
    assert graph.adjacency == [[1], []]
    assert graph.edge_count == 1


def test_topological_order_ties_follow_declaration(make_schema):
    # declarado: z, y, x ; x depende de z
    schema = make_schema(fields=[_num("z"), _num("y"), _sum("x", "z")])
    assert topological_order(build_dependency_graph(schema)) == ["z", "y", "x"]


def test_topological_order_respects_dependencies(make_schema):
    # total declarado antes das origens
    schema = make_schema(fields=[_sum("total", "a", "b"), _num("b"), _num("a")])
    order = topological_order(build_dependency_graph(schema))
    assert order == ["b", "a", "total"]


def test_cycle_is_detected_and_named(make_schema):
    schema = make_schema(
        fields=[_num("root"), _sum("a", "root", "c"), _sum("b", "a"), _sum("c", "b")],
    )
    graph = build_dependency_graph(schema)
    assert find_cycle(graph) == ["a", "b", "c"]

    with pytest.raises(CyclicDependencyError) as exc:
        topological_order(graph)
    assert exc.value.cycle == ["a", "b", "c"]
    assert exc.value.details["unresolved"] == ["a", "b", "c"]
    assert "a -> b -> c" in str(exc.value)


def test_self_loop_is_cycle(make_schema):
    schema = make_schema(fields=[_num("a")], rules=[_vis("r", "a", "a")])
    assert find_cycle(build_dependency_graph(schema)) == ["a"]


def test_acyclic_graph_has_no_cycle(cascade_schema):
    assert find_cycle(build_dependency_graph(cascade_schema)) is None


def test_unknown_reference_strict_raises(make_schema):
    schema = make_schema(fields=[_sum("t", "ghost")])
    with pytest.raises(SchemaValidationError) as exc:
        build_dependency_graph(schema)
    assert exc.value.errors[0]["details"]["field"] == "ghost"
    assert exc.value.code == "SCHEMA_VALIDATION_ERROR"


def test_unknown_reference_lenient_is_skipped(make_schema):
    schema = make_schema(fields=[_sum("t", "ghost", "a"), _num("a")])
    graph = build_dependency_graph(schema, strict=False)
    assert graph.dependencies("t") == ["a"]


def test_duplicate_key_strict_raises(make_schema):
    with pytest.raises(SchemaValidationError):
        build_dependency_graph(make_schema(fields=[_num("a"), _num("a")]))


def _chain(n):
    fields = [{"key": f"f{i}", "type": "text"} for i in range(n)]
    rules = [
        {
            "id": f"r{i}",
            "trigger_field": f"f{i}",
            "operator": "is_empty",
            "target_field": f"f{i + 1}",
            "effect": "visibility",
            "effect_value": False,
        }
        for i in range(n - 1)
    ]
    return fields, rules


def test_long_acyclic_chain_has_no_cycle(make_schema):
    from atlas_formflow.core.schema.validator import validate_schema

    fields, rules = _chain(3000)
    schema = make_schema(fields=fields, rules=rules)

    graph = build_dependency_graph(schema)
    assert find_cycle(graph) is None
    assert topological_order(graph)[:3] == ["f0", "f1", "f2"]

    report = validate_schema(schema)
    assert report.valid is True
    assert report.cycle is None


def test_long_chain_closing_into_cycle(make_schema):
    fields, rules = _chain(3000)
    rules.append(dict(rules[0], id="back", trigger_field="f2999", target_field="f0"))
    graph = build_dependency_graph(make_schema(fields=fields, rules=rules))

    cycle = find_cycle(graph)
    assert len(cycle) == 3000
    assert cycle[0] == "f0"
    assert cycle[-1] == "f2999"
