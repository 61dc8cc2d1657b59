# src/buildgraph/core/engine/executor.py
"""
Executor do buildgraph.

Executa nodes de um Graph contra um TempStorage, sequencialmente e na
ordem topológica declarada pelos grupos.

    - build_all_nodes   → pré-passe de integridade + execução fail-fast
    - build_single_node → monta tags, executa o node, valida e arquiva outputs

Falhas de integridade do cache local nunca viram erro: o node (e seus
dependentes, conforme `CleanPropagation`) é limpo e reconstruído. Os
demais erros são convertidos em ErrorPayload e interrompem a execução.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from buildgraph.core.config.settings import CleanPropagation
from buildgraph.core.errors import ErrorPayload, to_error_payload
from buildgraph.core.exceptions import BuildGraphException, NodeBuildFailedError
from buildgraph.core.graph.graph import Graph
from buildgraph.core.graph.node import Node
from buildgraph.core.graph.trigger import ManualTrigger, is_active
from buildgraph.core.storage.tag_files import TagFileSet
from buildgraph.core.storage.temp_storage import TempStorage
from buildgraph.core.traceability import report as tr

from .job import JobContext


class NodeStatus(str, Enum):
    """Estados finais de um node em uma execução."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class NodeResult:
    """Resultado imutável da execução (ou não execução) de um node."""

    node: str
    status: NodeStatus
    summary: str
    outputs: Dict[str, int] = field(default_factory=dict)
    error: Optional[ErrorPayload] = None


@dataclass(frozen=True)
class BuildResult:
    """Resultado agregado; a ordem de `nodes` é a ordem de execução."""

    nodes: Dict[str, NodeResult] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(r.status != NodeStatus.FAILED for r in self.nodes.values())

    @property
    def failed(self) -> Optional[NodeResult]:
        for r in self.nodes.values():
            if r.status == NodeStatus.FAILED:
                return r
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def find_completed_nodes(graph: Graph, storage: TempStorage) -> Set[Node]:
    """Nodes do grafo com marcador de conclusão no cache local."""
    return {node for node in graph.all_nodes() if storage.is_complete(node.name)}


def _must_push_to_shared(graph: Graph, node: Node, output_name: str) -> bool:
    # consumidor em outro grupo, ou no mesmo grupo sob outro trigger
    group = graph.group_of(node)
    for consumer in graph.consumers_of(output_name):
        if graph.group_of(consumer) is not group:
            return True
        if consumer.controlling_trigger is not node.controlling_trigger:
            return True
    return False


def _propagates(graph: Graph, upstream: Node, node: Node, policy: CleanPropagation) -> bool:
    if policy == CleanPropagation.ALL:
        return True
    if policy == CleanPropagation.SAME_GROUP:
        return graph.group_of(upstream) is graph.group_of(node)
    if policy == CleanPropagation.SAME_TRIGGER:
        return upstream.controlling_trigger is node.controlling_trigger
    return False


# ---------------------------------------------------------------------------
# Single node
# ---------------------------------------------------------------------------

def _run_node(job: JobContext, graph: Graph, node: Node, storage: TempStorage) -> Dict[str, int]:
    tag_files = TagFileSet(graph.output_name_to_node)

    for input_name in node.input_names:
        producer = graph.output_name_to_node[input_name]
        manifest = storage.retrieve(producer.name, input_name)
        tag_files.set_input(input_name, manifest.to_local_paths(storage.root_dir))
        job.log(
            node=node.name,
            level="INFO",
            message="retrieved input",
            tag=input_name,
            producer=producer.name,
            files=len(manifest.files),
        )

    for output_name in node.output_names:
        tag_files.declare_output(output_name)

    try:
        built = node.build(job, tag_files)
    except BuildGraphException:
        raise
    except Exception as exc:
        raise NodeBuildFailedError(
            f"Node '{node.name}' failed: {exc}",
            details={"node": node.name, "exception_class": exc.__class__.__name__},
        ) from exc
    if not built:
        raise NodeBuildFailedError(
            f"Node '{node.name}' failed",
            details={"node": node.name},
        )

    tag_files.find_file_owners(node.name)

    outputs = {name: sorted(files) for name, files in tag_files.outputs().items()}
    push = {name for name in outputs if _must_push_to_shared(graph, node, name)}
    manifests = storage.archive_outputs(node.name, outputs, push)

    counts: Dict[str, int] = {}
    for output_name, manifest in manifests.items():
        counts[output_name] = len(manifest.files)
        job.log(
            node=node.name,
            level="INFO",
            message="archived output",
            tag=output_name,
            files=len(manifest.files),
            shared=output_name in push and storage.can_write_shared,
        )

    storage.mark_as_complete(node.name)
    return counts


def build_single_node(job: JobContext, graph: Graph, node: Node, storage: TempStorage) -> NodeResult:
    """
    Executa um único node e arquiva seus outputs.

    Passos:
        1. todas as tags de output do grafo começam "unset"
        2. inputs são materializados a partir dos manifests dos produtores
        3. outputs do node começam como conjuntos vazios
        4. `node.build(job, tag_files)`
        5. verificação de propriedade (um arquivo, uma tag de output)
        6. outputs consumidos fora do escopo do node vão ao shared storage
        7. archive de todos os outputs e marcador de conclusão

    Nunca levanta para erros de build: o resultado carrega o ErrorPayload.
    """
    job.log(node=node.name, level="INFO", message="node started")
    if job.report is not None:
        tr.node_started(job.report, node=node.name, ts=_now())

    try:
        counts = _run_node(job, graph, node, storage)
    except Exception as exc:
        error = to_error_payload(exc, node=node.name)
        job.log(node=node.name, level="ERROR", message=error.message, error_type=error.type)
        if job.report is not None:
            tr.node_failed(job.report, node=node.name, ts=_now(), error=error.to_dict())
        return NodeResult(
            node=node.name,
            status=NodeStatus.FAILED,
            summary=error.message,
            error=error,
        )

    job.log(node=node.name, level="INFO", message="node complete", outputs=counts)
    if job.report is not None:
        tr.node_finished(job.report, node=node.name, ts=_now(), outputs=counts)
    return NodeResult(
        node=node.name,
        status=NodeStatus.SUCCESS,
        summary="built",
        outputs=counts,
    )


# ---------------------------------------------------------------------------
# All nodes
# ---------------------------------------------------------------------------

def _skipped(job: JobContext, node: Node, reason: str) -> NodeResult:
    job.log(node=node.name, level="INFO", message="node skipped", reason=reason)
    if job.report is not None:
        tr.node_skipped(job.report, node=node.name, ts=_now(), reason=reason)
    return NodeResult(node=node.name, status=NodeStatus.SKIPPED, summary=reason)


def _clean_invalid_nodes(
    job: JobContext,
    graph: Graph,
    nodes: List[Node],
    storage: TempStorage,
    policy: CleanPropagation,
) -> Set[Node]:
    """Pré-passe de integridade; retorna os nodes que serão (re)construídos."""
    invalidated: Set[Node] = set()
    for node in nodes:
        upstream = [
            d.name for d in node.input_dependencies
            if d in invalidated and _propagates(graph, d, node, policy)
        ]
        if upstream or not storage.check_local_integrity(node.name, node.output_names):
            if storage.is_complete(node.name):
                job.log(
                    node=node.name,
                    level="WARNING",
                    message="cleaning stale local state",
                    upstream=upstream,
                )
            storage.clean_local_node(node.name)
            invalidated.add(node)
        elif not storage.is_complete(node.name):
            invalidated.add(node)
    return invalidated


def build_all_nodes(
    job: JobContext,
    graph: Graph,
    storage: TempStorage,
    active_triggers: Optional[Iterable[ManualTrigger]] = None,
    *,
    clean_propagation: CleanPropagation = CleanPropagation.ALL,
) -> BuildResult:
    """
    Executa todos os nodes do grafo, em ordem, parando na primeira falha.

    Com `active_triggers` informado, nodes cujo trigger de controle não
    está ativo (e os nodes que dependem deles) são pulados. Nodes completos
    e íntegros não são reconstruídos.
    """
    active = set(active_triggers) if active_triggers is not None else None
    results: Dict[str, NodeResult] = {}

    excluded: Set[Node] = set()
    runnable: List[Node] = []
    for node in graph.all_nodes():
        if active is not None and not is_active(node.controlling_trigger, active):
            reason = f"trigger '{node.controlling_trigger.qualified_name}' is not active"
        elif any(d in excluded for d in node.input_dependencies):
            reason = "depends on a node behind an inactive trigger"
        else:
            runnable.append(node)
            continue
        excluded.add(node)
        results[node.name] = _skipped(job, node, reason)

    _clean_invalid_nodes(job, graph, runnable, storage, clean_propagation)

    for idx, node in enumerate(runnable, start=1):
        job.log(node=node.name, level="INFO", message=f"[{idx}/{len(runnable)}] {node.name}")
        if storage.is_complete(node.name):
            results[node.name] = _skipped(job, node, "complete")
            continue

        result = build_single_node(job, graph, node, storage)
        results[node.name] = result
        if result.status == NodeStatus.FAILED:
            break

    return BuildResult(nodes=results)
