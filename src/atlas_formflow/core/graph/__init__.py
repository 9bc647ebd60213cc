"""Atlas FormFlow — Dependency Graph (core).

Grafo explícito de dependências entre campos (regras e fórmulas),
detecção de ciclos e ordem topológica determinística.
"""

from .dependency import (  # noqa: F401
    DependencyGraph,
    build_dependency_graph,
    find_cycle,
    topological_order,
)
