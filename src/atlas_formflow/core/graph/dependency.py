# src/atlas_formflow/core/graph/dependency.py
"""
Grafo de dependências entre campos de um formulário.

Este módulo constrói o grafo dirigido que o Data Engine usa para propagar
mudanças, detecta ciclos e produz uma ordem topológica determinística.

Arestas:
    - regra:  trigger_field → target_field
    - fórmula: source_field → campo calculado

Princípios fundamentais:
    - O grafo deve ser acíclico (verificado na ativação)
    - A ordenação é determinística para a mesma entrada
    - Nenhuma decisão silenciosa: ciclos nunca são quebrados em runtime

Decisões arquiteturais:
    - Adjacência explícita indexada pela posição de declaração do campo
    - Arestas duplicadas são colapsadas
    - Ordenação topológica via Kahn; empates resolvidos pela ordem de
      declaração dos campos (não lexicográfica)
    - Detecção de ciclo via DFS com pilha de recursão, reportando o caminho

Invariantes:
    - Nenhum campo aparece antes de suas dependências na ordem produzida
    - Todos os campos aparecem exatamente uma vez
    - Auto-laços (campo dependente de si mesmo) são ciclos

Limites explícitos:
    - Não avalia regras nem fórmulas
    - Não conhece valores do formulário
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from atlas_formflow.core.errors import schema_validation_error
from atlas_formflow.core.exceptions import CyclicDependencyError, SchemaValidationError
from atlas_formflow.core.schema.model import FormSchema


@dataclass
class DependencyGraph:
    """
    Grafo dirigido de dependências, indexado por posição de declaração.

    `adjacency[i]` lista (ordenada, sem duplicatas) os índices dos campos que
    dependem do campo `keys[i]`; `predecessors[i]` é o inverso.
    """

    keys: List[str]
    index: Dict[str, int]
    adjacency: List[List[int]] = field(default_factory=list)
    predecessors: List[List[int]] = field(default_factory=list)

    def __contains__(self, key: object) -> bool:
        return key in self.index

    @property
    def edge_count(self) -> int:
        return sum(len(a) for a in self.adjacency)

    def successors(self, key: str) -> List[str]:
        return [self.keys[j] for j in self.adjacency[self.index[key]]]

    def dependencies(self, key: str) -> List[str]:
        return [self.keys[j] for j in self.predecessors[self.index[key]]]

    def descendants(self, key: str) -> Set[str]:
        """Campos alcançáveis a partir de `key` (excluindo o próprio, salvo em ciclo)."""
        start = self.index[key]
        seen: Set[int] = set()
        stack = list(self.adjacency[start])
        while stack:
            i = stack.pop()
            if i in seen:
                continue
            seen.add(i)
            stack.extend(self.adjacency[i])
        return {self.keys[i] for i in seen}


def build_dependency_graph(schema: FormSchema, strict: bool = True) -> DependencyGraph:
    """
    Constrói o grafo de dependências de um schema.

    Args:
        schema: Schema do formulário.
        strict: Quando True, referências a campos inexistentes e chaves
            duplicadas levantam `SchemaValidationError`; quando False, são
            ignoradas (uso pelo validador, que as reporta separadamente).

    Returns:
        DependencyGraph com arestas colapsadas e ordenadas.

    Raises:
        SchemaValidationError: Em modo estrito, para referências não resolvíveis.
    """
    keys: List[str] = []
    index: Dict[str, int] = {}
    problems = []

    for i, f in enumerate(schema.fields):
        if f.key in index:
            problems.append(
                schema_validation_error(
                    message=f"Chave de campo duplicada: '{f.key}'",
                    path=f"fields[{i}].key",
                    details={"field": f.key},
                )
            )
            continue
        index[f.key] = len(keys)
        keys.append(f.key)

    edges: List[Set[int]] = [set() for _ in keys]

    def _edge(src: str, dst: str, path: str) -> None:
        if src not in index or dst not in index:
            missing = src if src not in index else dst
            problems.append(
                schema_validation_error(
                    message=f"Referência a campo inexistente: '{missing}'",
                    path=path,
                    details={"field": missing},
                )
            )
            return
        edges[index[src]].add(index[dst])

    for i, f in enumerate(schema.fields):
        if f.computation is None:
            continue
        for j, src in enumerate(f.computation.source_fields):
            _edge(src, f.key, f"fields[{i}].computation.source_fields[{j}]")

    for i, r in enumerate(schema.rules):
        _edge(r.trigger_field, r.target_field, f"rules[{i}]")

    if strict and problems:
        raise SchemaValidationError(
            message="Schema possui referências inválidas no grafo de dependências",
            details={"errors": [p.to_dict() for p in problems]},
            decision_required=True,
        )

    adjacency = [sorted(e) for e in edges]
    predecessors: List[List[int]] = [[] for _ in keys]
    for src, targets in enumerate(adjacency):
        for dst in targets:
            predecessors[dst].append(src)

    return DependencyGraph(keys=keys, index=index, adjacency=adjacency, predecessors=predecessors)


def find_cycle(graph: DependencyGraph) -> Optional[List[str]]:
    """
    Procura um ciclo via DFS com pilha explícita.

    A busca parte dos campos em ordem de declaração e visita vizinhos em
    ordem crescente de índice, portanto o ciclo reportado é determinístico.
    A profundidade da busca não depende do limite de recursão.

    Returns:
        Chaves do ciclo em ordem de caminho (sem repetir a primeira ao final),
        ou None se o grafo for acíclico.
    """
    WHITE, GRAY, BLACK = 0, 1, 2
    color = [WHITE] * len(graph.keys)

    for start in range(len(graph.keys)):
        if color[start] != WHITE:
            continue

        color[start] = GRAY
        path: List[int] = [start]
        stack: List[Tuple[int, Iterator[int]]] = [(start, iter(graph.adjacency[start]))]

        while stack:
            u, neighbours = stack[-1]
            advanced = False
            for v in neighbours:
                if color[v] == GRAY:
                    return [graph.keys[i] for i in path[path.index(v):]]
                if color[v] == WHITE:
                    color[v] = GRAY
                    path.append(v)
                    stack.append((v, iter(graph.adjacency[v])))
                    advanced = True
                    break
            if not advanced:
                stack.pop()
                path.pop()
                color[u] = BLACK

    return None


def topological_order(graph: DependencyGraph) -> List[str]:
    """
    Produz a ordem topológica determinística dos campos (Kahn).

    Sempre que múltiplos campos estão prontos, o de menor índice de
    declaração é escolhido.

    Raises:
        CyclicDependencyError: Se houver ciclo; `details` lista o ciclo
            encontrado e todas as chaves que ficaram sem resolução.
    """
    incoming = [len(p) for p in graph.predecessors]
    ready = [i for i, c in enumerate(incoming) if c == 0]
    heapq.heapify(ready)
    order: List[int] = []

    while ready:
        i = heapq.heappop(ready)
        order.append(i)
        for child in graph.adjacency[i]:
            incoming[child] -= 1
            if incoming[child] == 0:
                heapq.heappush(ready, child)

    if len(order) != len(graph.keys):
        done = set(order)
        unresolved = [graph.keys[i] for i in range(len(graph.keys)) if i not in done]
        cycle = find_cycle(graph) or unresolved
        raise CyclicDependencyError(
            message=f"Ciclo detectado no grafo de dependências: {' -> '.join(cycle)}",
            details={"cycle": cycle, "unresolved": unresolved},
            hint="Remova uma das regras ou fórmulas que fecham o ciclo.",
            decision_required=True,
        )

    return [graph.keys[i] for i in order]
