# src/buildgraph/core/engine/command.py
"""
Fluxo de comando do buildgraph.

`run_build` orquestra uma execução completa a partir de um Graph já
lido e de `BuildOptions` já interpretadas (a leitura de argumentos de
linha de comando e de scripts fica fora do engine):

    1. limpeza do cache local (tudo e/ou nodes nomeados)
    2. resolução dos targets (aceita listas separadas por '+') e poda
    3. resolução dos triggers ativos (fechados para cima)
    4. validação do `single_node` contra o grafo podado
    5. listagem, export, execução de um node ou execução completa

Erros de configuração abortam antes de qualquer node ser executado.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, TextIO, Union

from buildgraph.core.config.settings import CleanPropagation, EngineSettings
from buildgraph.core.errors import ErrorPayload, to_error_payload
from buildgraph.core.exceptions import BuildGraphException, NodeNotInGraphError
from buildgraph.core.graph.graph import Graph, GraphPrintOptions
from buildgraph.core.storage.temp_storage import TempStorage
from buildgraph.core.traceability import report as tr

from .executor import BuildResult, build_all_nodes, build_single_node, find_completed_nodes
from .job import JobContext


class BuildMode(str, Enum):
    LIST = "list"
    EXPORT = "export"
    SINGLE_NODE = "single_node"
    ALL = "all"


@dataclass
class BuildOptions:
    """Opções de uma execução, equivalentes aos parâmetros do comando."""

    targets: List[str] = field(default_factory=list)
    triggers: List[str] = field(default_factory=list)
    skip_triggers: bool = False
    clean: bool = False
    clean_nodes: List[str] = field(default_factory=list)
    list_only: bool = False
    export_path: Optional[Union[str, Path]] = None
    single_node: Optional[str] = None
    print_options: GraphPrintOptions = GraphPrintOptions.NONE
    clean_propagation: CleanPropagation = CleanPropagation.ALL

    @classmethod
    def from_settings(cls, settings: EngineSettings, **overrides: Any) -> "BuildOptions":
        """Opções cujos defaults de engine (ex.: `clean_propagation`) vêm dos settings."""
        overrides.setdefault("clean_propagation", settings.clean_propagation)
        return cls(**overrides)

    @property
    def mode(self) -> BuildMode:
        if self.list_only:
            return BuildMode.LIST
        if self.export_path is not None:
            return BuildMode.EXPORT
        if self.single_node is not None:
            return BuildMode.SINGLE_NODE
        return BuildMode.ALL


@dataclass(frozen=True)
class BuildOutcome:
    """Resultado de `run_build`; `ok` é o sinal de sucesso/falha do processo."""

    mode: BuildMode
    ok: bool
    result: Optional[BuildResult] = None
    listing: Optional[str] = None
    error: Optional[ErrorPayload] = None


def run_build(
    graph: Graph,
    storage: TempStorage,
    options: BuildOptions,
    job: JobContext,
    out: Optional[TextIO] = None,
) -> BuildOutcome:
    """
    Executa o fluxo de comando sobre `graph` (podado in-place).

    Erros de configuração (target/trigger desconhecido, node fora do grafo
    podado) retornam um BuildOutcome com `ok=False` e o ErrorPayload; nada
    é executado nesse caso.
    """
    mode = options.mode
    stream = out if out is not None else sys.stdout

    if options.clean:
        storage.clean_local()
    for name in options.clean_nodes:
        storage.clean_local_node(name)

    try:
        if options.targets:
            graph.select(graph.resolve_references(options.targets))

        active = graph.resolve_triggers(options.triggers, skip_triggers=options.skip_triggers)

        single = None
        if options.single_node is not None:
            single = graph.name_to_node.get(options.single_node)
            if single is None:
                raise NodeNotInGraphError(
                    f"Node '{options.single_node}' is not in the trimmed graph",
                    details={"node": options.single_node},
                )
    except BuildGraphException as exc:
        error = to_error_payload(exc)
        job.log(node="-", level="ERROR", message=error.message, error_type=error.type)
        if job.report is not None:
            tr.add_event(
                job.report,
                event_type="configuration_error",
                ts=datetime.now(timezone.utc),
                payload=error.to_dict(),
            )
        return BuildOutcome(mode=mode, ok=False, error=error)

    if mode in (BuildMode.LIST, BuildMode.EXPORT):
        completed = find_completed_nodes(graph, storage)
        listing = graph.format_listing(completed, options.print_options)
        stream.write(listing + "\n")
        if mode == BuildMode.EXPORT:
            graph.export(options.export_path, active, completed)  # type: ignore[arg-type]
        return BuildOutcome(mode=mode, ok=True, listing=listing)

    if single is not None:
        node_result = build_single_node(job, graph, single, storage)
        result = BuildResult(nodes={single.name: node_result})
    else:
        result = build_all_nodes(
            job,
            graph,
            storage,
            active,
            clean_propagation=options.clean_propagation,
        )
    failed = result.failed
    return BuildOutcome(
        mode=mode,
        ok=result.ok,
        result=result,
        error=failed.error if failed is not None else None,
    )
