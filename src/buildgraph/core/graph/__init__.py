# src/buildgraph/core/graph/__init__.py
"""
Modelo de dados do grafo de build.

Componentes:
    - trigger → `ManualTrigger`: portão hierárquico de ativação
    - node    → `Node`: etapa nomeada com tags de input/output e tasks
    - group   → `AgentGroup`: nodes com afinidade de máquina
    - planner → `plan_nodes`: ordenação topológica e detecção de ciclos
    - graph   → `Graph`: índice, resolução de targets, poda, export/import

Limites explícitos:
    - Não lê a linguagem de descrição de grafos (o Graph chega pronto)
    - Não executa nodes nem consulta o TempStorage
"""

from .graph import (
    EXPORT_FORMAT,
    EXPORT_VERSION,
    ExportedPlan,
    Graph,
    GraphPrintOptions,
    load_export,
)
from .group import AgentGroup
from .node import Node
from .planner import plan_nodes
from .trigger import ManualTrigger, close_upward, is_active

__all__ = [
    "AgentGroup",
    "EXPORT_FORMAT",
    "EXPORT_VERSION",
    "ExportedPlan",
    "Graph",
    "GraphPrintOptions",
    "ManualTrigger",
    "Node",
    "close_upward",
    "is_active",
    "load_export",
    "plan_nodes",
]
