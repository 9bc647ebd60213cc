# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas FormFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- schemas de formulário mínimos e determinísticos
- uma fábrica de schemas a partir de dicionários (formato snake_case)
- configurações parciais para o motor

O objetivo destas fixtures é permitir testes do core
(schema, graph, runtime e versioning) sem depender de:
- filesystem (exceto via `tmp_path` nos testes de round-trip)
- variáveis de ambiente
- camadas de UI

Decisões arquiteturais:
    - Schemas são declarados como dicionários e materializados via
      `FormSchema.from_dict`, exercitando o mesmo caminho do loader
    - Dados retornados são determinísticos e isolados por teste

Invariantes:
    - Nenhuma fixture ativa sessão real
    - Nenhuma fixture realiza I/O

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica condicional complexa
"""

import pytest


def _number(key, **extra):
    d = {"key": key, "type": "number", "label": key}
    d.update(extra)
    return d


@pytest.fixture
def make_schema():
    """
    Fábrica de `FormSchema` a partir de listas de campos/regras em dict.

    Uso:
        schema = make_schema(fields=[...], rules=[...], layout=[...])
    """
    from atlas_formflow.core.schema.model import FormSchema

    def _make(fields, rules=None, layout=None, **form):
        data = {
            "id": form.pop("id", "form-1"),
            "title": form.pop("title", "Formulário de teste"),
            "version": form.pop("version", 1),
            "description": form.pop("description", ""),
            "fields": list(fields),
            "rules": list(rules or []),
            "layout": list(layout or []),
        }
        data.update(form)
        return FormSchema.from_dict(data)

    return _make


@pytest.fixture
def cascade_schema_dict():
    """
    Schema de cascata: Total = SUM(Price, Tax) e Approval visível quando Total > 100.

    Grafo:
        Price ─┐
               ├─> Total ─> Approval
        Tax  ──┘
    """
    return {
        "id": "purchase",
        "version": 1,
        "title": "Pedido de compra",
        "description": "Aprovação condicional por valor total",
        "fields": [
            _number("Price"),
            _number("Tax"),
            _number("Total", computation={"function": "SUM", "source_fields": ["Price", "Tax"]}),
            {"key": "Approval", "type": "text", "label": "Aprovação", "visible": False},
        ],
        "rules": [
            {
                "id": "r-approval",
                "name": "Mostrar aprovação",
                "trigger_field": "Total",
                "operator": "greater_than",
                "compare_value": 100,
                "target_field": "Approval",
                "effect": "visibility",
                "effect_value": True,
            }
        ],
        "layout": [
            {"columns": [{"span": 6, "fields": ["Price"]}, {"span": 6, "fields": ["Tax"]}]},
            {"columns": [{"span": 12, "fields": ["Total", "Approval"]}]},
        ],
    }


@pytest.fixture
def cascade_schema(cascade_schema_dict):
    from atlas_formflow.core.schema.model import FormSchema

    return FormSchema.from_dict(cascade_schema_dict)


@pytest.fixture
def interplay_schema(make_schema):
    """
    X é obrigatório por padrão; a regra oculta X quando Y == "no".
    """
    return make_schema(
        fields=[
            {
                "key": "Y",
                "type": "select",
                "options": [{"value": "yes", "label": "Sim"}, {"value": "no", "label": "Não"}],
            },
            {"key": "X", "type": "text", "constraints": {"required": True}},
        ],
        rules=[
            {
                "id": "hide-x",
                "trigger_field": "Y",
                "operator": "equals",
                "compare_value": "no",
                "target_field": "X",
                "effect": "visibility",
                "effect_value": False,
            }
        ],
    )


@pytest.fixture
def minimal_config():
    """Override parcial de configuração (demais chaves vêm de DEFAULT_CONFIG)."""
    return {"compute": {"concat_separator": "-"}}
