# src/atlas_formflow/core/__init__.py
"""
Core do Atlas FormFlow.

Este pacote reúne a implementação canônica do motor de avaliação de
formulários, independente de qualquer camada de apresentação.

O core é projetado para ser:
    - determinístico
    - testável de forma isolada
    - livre de dependências de UI, designer visual ou armazenamento
    - orientado a schemas explícitos

Componentes principais:
    - config     → resolução de configuração (defaults, merge, hashing)
    - schema     → modelo, carregamento e validação estática de schemas
    - graph      → grafo de dependências entre campos (DAG)
    - runtime    → avaliação de regras, fórmulas e orquestração do settle
    - versioning → histórico imutável de snapshots de schema

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Estado de runtime pertence a uma única sessão (sem singletons)
    - Falhas por campo não interrompem a propagação
"""
