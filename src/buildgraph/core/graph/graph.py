# src/buildgraph/core/graph/graph.py
"""
Graph: índice completo de nodes, grupos, triggers e tags de output.

O Graph é produzido por um leitor de scripts externo e entregue ao engine
já resolvido. Na construção ele:
    - indexa nodes por nome e tags de output pelo node produtor
    - deriva `input_dependencies` de cada node a partir das tags consumidas
    - rejeita nomes duplicados, tags com dois produtores, tags sem
      produtor e ciclos

Operações:
    - try_resolve_reference → target textual → nodes
    - resolve_triggers      → nomes → conjunto ativo (fechado para cima)
    - select                → poda in-place ao fecho de dependências
    - export / from_export  → plano de execução distribuída (JSON)
    - format_listing/print  → listagem legível

Invariantes:
    - Cada tag de output pertence a exatamente um node
    - A ordem achatada dos grupos é topologicamente válida
    - Nenhum estado de execução é guardado aqui (ver TempStorage)
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Set,
    TextIO,
    Union,
)

from buildgraph.core.exceptions import (
    CycleDetectedError,
    DuplicateNodeError,
    DuplicateOutputError,
    DuplicateTriggerError,
    GraphConfigurationError,
    UnknownReferenceError,
    UnknownTriggerError,
)

from .group import AgentGroup
from .node import Node
from .planner import plan_nodes
from .trigger import ManualTrigger, close_upward

EXPORT_FORMAT = "buildgraph.export"
EXPORT_VERSION = 1

TAG_PREFIX = "#"


class GraphPrintOptions(IntFlag):
    """Flags de listagem do grafo."""
    NONE = 0
    SHOW_DEPENDENCIES = 1
    SHOW_TRIGGERS = 2


@dataclass
class ExportedPlan:
    """Grafo reconstruído a partir de um documento de export."""

    graph: "Graph"
    active_triggers: Set[ManualTrigger]
    completed_nodes: Set[str]


class Graph:
    """Grafo de build resolvido: grupos ordenados, nodes, triggers e tags."""

    def __init__(
        self,
        groups: Iterable[AgentGroup],
        triggers: Iterable[ManualTrigger] = (),
    ):
        self.groups: List[AgentGroup] = list(groups)
        self._declared_triggers: List[ManualTrigger] = list(triggers)
        self.name_to_node: Dict[str, Node] = {}
        self.output_name_to_node: Dict[str, Node] = {}
        self.name_to_trigger: Dict[str, ManualTrigger] = {}
        self._index()

    # ------------------------------------------------------------------
    # Indexação / validação estrutural
    # ------------------------------------------------------------------

    def _index(self) -> None:
        name_to_node: Dict[str, Node] = {}
        output_name_to_node: Dict[str, Node] = {}

        for node in self.all_nodes():
            if node.name in name_to_node:
                raise DuplicateNodeError(
                    f"Duplicate node name: {node.name}",
                    details={"node": node.name},
                )
            name_to_node[node.name] = node
            for output_name in node.output_names:
                owner = output_name_to_node.get(output_name)
                if owner is not None:
                    raise DuplicateOutputError(
                        f"Tag '{output_name}' is produced by both '{owner.name}' and '{node.name}'",
                        details={"tag": output_name, "owners": [owner.name, node.name]},
                    )
                output_name_to_node[output_name] = node

        for node in name_to_node.values():
            deps: List[Node] = []
            for input_name in node.input_names:
                producer = output_name_to_node.get(input_name)
                if producer is None:
                    raise UnknownReferenceError(
                        f"Node '{node.name}' consumes tag '{input_name}', which no node produces",
                        details={"node": node.name, "tag": input_name},
                    )
                if producer not in deps:
                    deps.append(producer)
            node.input_dependencies = deps

        # ciclos primeiro; depois a ordem declarada
        plan_nodes(name_to_node.values())
        seen: Set[str] = set()
        for node in self.all_nodes():
            for dep in node.input_dependencies:
                if dep.name not in seen:
                    raise CycleDetectedError(
                        f"Node '{node.name}' depends on '{dep.name}', which is declared after it",
                        details={"node": node.name, "dependency": dep.name},
                    )
            seen.add(node.name)

        referenced = [n.controlling_trigger for n in name_to_node.values() if n.controlling_trigger]
        name_to_trigger: Dict[str, ManualTrigger] = {}
        for trigger in close_upward(self._declared_triggers) | close_upward(referenced):
            existing = name_to_trigger.get(trigger.name)
            if existing is not None and existing is not trigger:
                raise DuplicateTriggerError(
                    f"Duplicate trigger name: {trigger.name}",
                    details={"trigger": trigger.name},
                )
            name_to_trigger[trigger.name] = trigger

        self.name_to_node = name_to_node
        self.output_name_to_node = output_name_to_node
        self.name_to_trigger = dict(sorted(name_to_trigger.items()))

    def all_nodes(self) -> List[Node]:
        """Lista achatada de nodes, na ordem dos grupos."""
        return [node for group in self.groups for node in group.nodes]

    def group_of(self, node: Node) -> Optional[AgentGroup]:
        for group in self.groups:
            if node in group:
                return group
        return None

    def consumers_of(self, output_name: str) -> List[Node]:
        return [n for n in self.all_nodes() if output_name in n.input_names]

    # ------------------------------------------------------------------
    # Resolução de referências e triggers
    # ------------------------------------------------------------------

    def try_resolve_reference(self, name: str) -> List[Node]:
        """
        Resolve um target textual para um ou mais nodes.

        Ordem de resolução:
            1. nome literal de node
            2. nome de AgentGroup (todos os nodes do grupo)
            3. `#Tag` → node produtor da tag
            4. nome de tag sem prefixo, quando não há node/grupo com esse nome

        Raises:
            UnknownReferenceError: Se nada corresponder ao nome.
        """
        node = self.name_to_node.get(name)
        if node is not None:
            return [node]

        for group in self.groups:
            if group.name == name:
                return list(group.nodes)

        tag = name[len(TAG_PREFIX):] if name.startswith(TAG_PREFIX) else name
        for candidate in (tag, name):
            producer = self.output_name_to_node.get(candidate)
            if producer is not None:
                return [producer]

        raise UnknownReferenceError(
            f"Target '{name}' is not in graph",
            details={"target": name},
            hint="Use o nome de um node, de um grupo ou '#Tag' de um output",
        )

    def resolve_references(self, names: Iterable[str]) -> Set[Node]:
        """Resolve vários targets (aceita listas separadas por '+')."""
        nodes: Set[Node] = set()
        for entry in names:
            for name in (x.strip() for x in entry.split("+")):
                if name:
                    nodes.update(self.try_resolve_reference(name))
        return nodes

    def resolve_triggers(
        self,
        names: Iterable[str] = (),
        *,
        skip_triggers: bool = False,
    ) -> Set[ManualTrigger]:
        """
        Conjunto de triggers ativos, fechado para cima.

        Raises:
            UnknownTriggerError: Se algum nome não existir no grafo.
        """
        active: Set[ManualTrigger] = set()
        for name in names:
            trigger = self.name_to_trigger.get(name)
            if trigger is None:
                raise UnknownTriggerError(
                    f"Couldn't find trigger '{name}'",
                    details={"trigger": name, "known": list(self.name_to_trigger)},
                )
            active.update(trigger.ancestors())
        if skip_triggers:
            active.update(self.name_to_trigger.values())
        return active

    # ------------------------------------------------------------------
    # Poda
    # ------------------------------------------------------------------

    def select(self, targets: Iterable[Node]) -> None:
        """
        Poda o grafo in-place aos targets e ao fecho transitivo de suas dependências.

        Grupos que ficam vazios são removidos; a ordem relativa dentro dos
        grupos sobreviventes é preservada. Triggers que controlam nodes
        sobreviventes (e seus ancestrais) são mantidos.
        """
        retained: Set[Node] = set()
        stack = list(targets)
        while stack:
            node = stack.pop()
            if node in retained:
                continue
            if self.name_to_node.get(node.name) is not node:
                raise UnknownReferenceError(
                    f"Node '{node.name}' is not in graph",
                    details={"node": node.name},
                )
            retained.add(node)
            stack.extend(node.input_dependencies)

        groups: List[AgentGroup] = []
        for group in self.groups:
            group.nodes = [n for n in group.nodes if n in retained]
            if group.nodes:
                groups.append(group)
        self.groups = groups
        self._declared_triggers = [
            n.controlling_trigger for n in self.all_nodes() if n.controlling_trigger
        ]
        self._index()

    # ------------------------------------------------------------------
    # Export / import do plano distribuído
    # ------------------------------------------------------------------

    def to_export_dict(
        self,
        active_triggers: Iterable[ManualTrigger] = (),
        completed_nodes: Iterable[Node] = (),
    ) -> Dict[str, Any]:
        active = set(active_triggers)
        completed = {n.name for n in completed_nodes}
        triggers = sorted(
            self.name_to_trigger.values(),
            key=lambda t: (len(list(t.ancestors())), t.qualified_name),
        )
        return {
            "format": EXPORT_FORMAT,
            "version": EXPORT_VERSION,
            "triggers": [
                {
                    "name": t.name,
                    "parent": t.parent.name if t.parent else None,
                    "active": t in active,
                }
                for t in triggers
            ],
            "groups": [
                {
                    "name": group.name,
                    "agent_types": list(group.agent_types),
                    "nodes": [
                        {
                            "name": node.name,
                            "inputs": list(node.input_names),
                            "outputs": list(node.output_names),
                            "depends_on": [d.name for d in node.input_dependencies],
                            "trigger": node.controlling_trigger.name if node.controlling_trigger else None,
                            "complete": node.name in completed,
                        }
                        for node in group.nodes
                    ],
                }
                for group in self.groups
            ],
        }

    def export(
        self,
        path: Union[str, Path],
        active_triggers: Iterable[ManualTrigger] = (),
        completed_nodes: Iterable[Node] = (),
    ) -> None:
        """Grava o documento de export (JSON) do grafo podado."""
        data = self.to_export_dict(active_triggers, completed_nodes)
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")

    @classmethod
    def from_export(
        cls,
        document: Union[str, Path, Dict[str, Any]],
        task_factory: Optional[Callable[[str], List[Any]]] = None,
    ) -> "Graph":
        """Reconstrói o Graph de um export; `task_factory(nome)` fornece as tasks."""
        return load_export(document, task_factory).graph

    # ------------------------------------------------------------------
    # Listagem
    # ------------------------------------------------------------------

    def format_listing(
        self,
        completed_nodes: Iterable[Node] = (),
        options: GraphPrintOptions = GraphPrintOptions.NONE,
    ) -> str:
        completed = set(completed_nodes)
        lines: List[str] = ["Graph:"]
        for group in self.groups:
            agents = f" ({';'.join(group.agent_types)})" if group.agent_types else ""
            lines.append(f"    Agent: {group.name}{agents}")
            for node in group.nodes:
                suffix = " (completed)" if node in completed else ""
                lines.append(f"        Node: {node.name}{suffix}")
                if options & GraphPrintOptions.SHOW_TRIGGERS and node.controlling_trigger:
                    lines.append(f"            trigger> {node.controlling_trigger.qualified_name}")
                if options & GraphPrintOptions.SHOW_DEPENDENCIES:
                    for input_name in node.input_names:
                        producer = self.output_name_to_node[input_name]
                        lines.append(f"            input> {TAG_PREFIX}{input_name} ({producer.name})")
                for output_name in node.output_names:
                    lines.append(f"            output> {TAG_PREFIX}{output_name}")
        if options & GraphPrintOptions.SHOW_TRIGGERS and self.name_to_trigger:
            lines.append("Triggers:")
            for trigger in self.name_to_trigger.values():
                lines.append(f"    {trigger.qualified_name}")
        return "\n".join(lines)

    def print(
        self,
        completed_nodes: Iterable[Node] = (),
        options: GraphPrintOptions = GraphPrintOptions.NONE,
        out: Optional[TextIO] = None,
    ) -> None:
        stream = out if out is not None else sys.stdout
        stream.write(self.format_listing(completed_nodes, options) + "\n")


def load_export(
    document: Union[str, Path, Dict[str, Any]],
    task_factory: Optional[Callable[[str], List[Any]]] = None,
) -> ExportedPlan:
    """
    Lê um documento de export e reconstrói o plano para execução `single_node`.

    Raises:
        GraphConfigurationError: Se o documento não for um export reconhecido.
    """
    if isinstance(document, dict):
        data = document
    else:
        data = json.loads(Path(document).read_text(encoding="utf-8"))

    if data.get("format") != EXPORT_FORMAT or data.get("version") != EXPORT_VERSION:
        raise GraphConfigurationError(
            "Unrecognized export document",
            details={"format": data.get("format"), "version": data.get("version")},
        )

    triggers: Dict[str, ManualTrigger] = {}
    active: Set[ManualTrigger] = set()
    for entry in data.get("triggers", []) or []:
        parent_name = entry.get("parent")
        if parent_name is not None and parent_name not in triggers:
            raise UnknownTriggerError(
                f"Trigger '{entry['name']}' references unknown parent '{parent_name}'",
                details={"trigger": entry["name"], "parent": parent_name},
            )
        trigger = ManualTrigger(entry["name"], triggers.get(parent_name) if parent_name else None)
        triggers[trigger.name] = trigger
        if entry.get("active"):
            active.add(trigger)

    groups: List[AgentGroup] = []
    completed: Set[str] = set()
    for group_entry in data.get("groups", []) or []:
        nodes: List[Node] = []
        for node_entry in group_entry.get("nodes", []) or []:
            trigger_name = node_entry.get("trigger")
            if trigger_name is not None and trigger_name not in triggers:
                raise UnknownTriggerError(
                    f"Couldn't find trigger '{trigger_name}'",
                    details={"trigger": trigger_name, "node": node_entry["name"]},
                )
            name = node_entry["name"]
            nodes.append(
                Node(
                    name=name,
                    input_names=list(node_entry.get("inputs", []) or []),
                    output_names=list(node_entry.get("outputs", []) or []),
                    controlling_trigger=triggers.get(trigger_name) if trigger_name else None,
                    tasks=list(task_factory(name)) if task_factory else [],
                )
            )
            if node_entry.get("complete"):
                completed.add(name)
        groups.append(
            AgentGroup(
                name=group_entry["name"],
                agent_types=list(group_entry.get("agent_types", []) or []),
                nodes=nodes,
            )
        )

    graph = Graph(groups, triggers.values())
    return ExportedPlan(graph=graph, active_triggers=close_upward(active), completed_nodes=completed)
