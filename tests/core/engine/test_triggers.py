# tests/core/engine/test_triggers.py
"""
Testes de execução com ManualTriggers.

Cenário base: triggers `QA` (sem parent) e `Release` (parent `QA`).

    Compile            (sem trigger)
    Test      → QA     (consome #Binaries)
    Ship      → Release(consome #Results)
    Summary            (sem trigger, consome #Results)

Ativar `Release` implica `QA`; um node protegido apenas por `QA` executa
mesmo quando só `Release` foi pedido.
"""

import pytest

try:
    from buildgraph.core.engine.executor import NodeStatus, build_all_nodes
    from buildgraph.core.graph import AgentGroup, Graph, ManualTrigger, Node
except Exception as e:  # noqa: BLE001
    NodeStatus = build_all_nodes = None
    AgentGroup = Graph = ManualTrigger = Node = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing executor/graph. Import error: {_IMPORT_ERR}")


@pytest.fixture
def qa_release_graph(WriteTask):
    _require_imports()
    qa = ManualTrigger("QA")
    release = ManualTrigger("Release", qa)
    return Graph(
        [
            AgentGroup(
                "Main",
                [],
                [
                    Node("Compile", output_names=["Binaries"], tasks=[WriteTask("Compile", {"Binaries": ["bin/a.exe"]})]),
                    Node(
                        "Test",
                        input_names=["Binaries"],
                        output_names=["Results"],
                        controlling_trigger=qa,
                        tasks=[WriteTask("Test", {"Results": ["results.xml"]})],
                    ),
                    Node(
                        "Ship",
                        input_names=["Results"],
                        controlling_trigger=release,
                        tasks=[WriteTask("Ship")],
                    ),
                    Node("Summary", input_names=["Results"], tasks=[WriteTask("Summary")]),
                ],
            )
        ]
    )


def test_release_implies_qa(job, storage, qa_release_graph, calls):
    g = qa_release_graph

    active = g.resolve_triggers(["Release"])
    result = build_all_nodes(job, g, storage, active)

    assert result.ok
    assert calls == ["Compile", "Test", "Ship", "Summary"]


def test_qa_only_skips_release_nodes(job, storage, qa_release_graph, calls):
    g = qa_release_graph

    result = build_all_nodes(job, g, storage, g.resolve_triggers(["QA"]))

    assert calls == ["Compile", "Test", "Summary"]
    assert result.nodes["Ship"].status == NodeStatus.SKIPPED
    assert "QA.Release" in result.nodes["Ship"].summary


def test_no_triggers_skips_gated_nodes_and_their_dependents(job, storage, qa_release_graph, calls):
    """
    Sem triggers ativos:
        - `Test` e `Ship` são pulados (triggers inativos)
        - `Summary` depende de `Test` e também é pulado
        - `Compile` executa normalmente
    """
    g = qa_release_graph

    result = build_all_nodes(job, g, storage, g.resolve_triggers([]))

    assert result.ok
    assert calls == ["Compile"]
    assert result.nodes["Summary"].status == NodeStatus.SKIPPED
    assert "inactive trigger" in result.nodes["Summary"].summary
    assert not storage.is_complete("Summary")


def test_active_triggers_none_runs_everything(job, storage, qa_release_graph, calls):
    build_all_nodes(job, qa_release_graph, storage)

    assert calls == ["Compile", "Test", "Ship", "Summary"]
