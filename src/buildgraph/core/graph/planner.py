# src/buildgraph/core/graph/planner.py
"""
Planejador estrutural do grafo de nodes.

Valida a estrutura de dependências e produz uma ordem topológica
determinística. É usado na construção do Graph para rejeitar ciclos e na
verificação de que a ordem declarada dos grupos é executável.

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn)
    - Empates são resolvidos pela ordem de declaração dos nodes
    - Erros estruturais são tratados como falhas fatais

Invariantes:
    - Nenhum node aparece antes de suas dependências
    - Todos os nodes aparecem exatamente uma vez
    - A mesma entrada produz sempre a mesma ordem

Limites explícitos:
    - Não executa nodes
    - Não consulta o TempStorage
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from buildgraph.core.exceptions import (
    CycleDetectedError,
    DuplicateNodeError,
    UnknownDependencyError,
)

from .node import Node


def plan_nodes(nodes: Iterable[Node]) -> List[Node]:
    """
    Valida e produz uma ordem topológica determinística de nodes.

    Args:
        nodes (Iterable[Node]): Nodes com `input_dependencies` já derivadas.

    Returns:
        List[Node]: Nodes em ordem de execução válida.

    Raises:
        ValueError: Se algum node possuir nome vazio.
        DuplicateNodeError: Se dois nodes possuírem o mesmo nome.
        UnknownDependencyError: Se uma dependência não estiver no conjunto.
        CycleDetectedError: Se houver ciclo no grafo de dependências.
    """
    node_list = list(nodes)
    by_name: Dict[str, Node] = {}
    position: Dict[str, int] = {}
    for idx, n in enumerate(node_list):
        name = getattr(n, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("node.name must be a non-empty string")
        if name in by_name:
            raise DuplicateNodeError(f"Duplicate node name: {name}", details={"node": name})
        by_name[name] = n
        position[name] = idx

    deps: Dict[str, List[str]] = {}
    for name, n in by_name.items():
        d: List[str] = []
        for dep in n.input_dependencies:
            if by_name.get(dep.name) is not dep:
                raise UnknownDependencyError(
                    f"Node '{name}' depends on unknown node '{dep.name}'",
                    details={"node": name, "dependency": dep.name},
                )
            if dep.name not in d:
                d.append(dep.name)
        deps[name] = d

    incoming_count: Dict[str, int] = {name: len(d) for name, d in deps.items()}
    outgoing: Dict[str, Set[str]] = {name: set() for name in by_name}
    for name, dlist in deps.items():
        for dep in dlist:
            outgoing[dep].add(name)

    ready: List[str] = [name for name in by_name if incoming_count[name] == 0]
    order: List[str] = []

    while ready:
        name = ready.pop(0)
        order.append(name)
        for child in sorted(outgoing[name], key=position.__getitem__):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort(key=position.__getitem__)

    if len(order) != len(by_name):
        stuck = sorted((n for n in by_name if incoming_count[n] > 0), key=position.__getitem__)
        raise CycleDetectedError(
            "Cycle detected in node dependency graph",
            details={"nodes": stuck},
        )

    return [by_name[name] for name in order]
