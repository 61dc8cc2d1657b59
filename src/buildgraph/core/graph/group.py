# src/buildgraph/core/graph/group.py
"""AgentGroup: nodes que executam na mesma máquina em um build distribuído."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .node import Node


@dataclass(eq=False)
class AgentGroup:
    """
    Sequência ordenada de nodes com afinidade de máquina.

    Em execução local o grupo só afeta listagem e a decisão de publicar
    outputs no shared storage.
    """

    name: str
    agent_types: List[str] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)

    def __contains__(self, node: Node) -> bool:
        return any(n is node for n in self.nodes)

    def __repr__(self) -> str:
        return f"AgentGroup({self.name!r}, nodes={[n.name for n in self.nodes]!r})"
