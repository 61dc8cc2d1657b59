# tests/conftest.py
"""
Fixtures compartilhados para testes do buildgraph.

Este módulo define fixtures reutilizáveis que fornecem:
- um workspace temporário (raiz, cache local, shared storage)
- TempStorage configurado sobre esse workspace
- JobContext determinístico
- Tasks de teste que escrevem arquivos e registram chamadas

Decisões arquiteturais:
    - Todo I/O acontece sob `tmp_path`
    - Tasks de teste usam duck typing (protocolo `Task`), sem herança
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa um build real
    - Nenhuma fixture depende de variáveis de ambiente
    - Cada teste recebe diretórios isolados

Este módulo existe como infraestrutura de teste e não
como validação funcional do engine.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_defaults_yaml() -> str:
    """
    Fixture que fornece um YAML de configuração padrão (defaults).

    Representa o conteúdo típico de um `buildgraph.defaults.yaml`
    versionado junto ao projeto: apenas cache local, shared storage
    desabilitado e propagação de limpeza completa.

    Returns:
        str: Conteúdo YAML dos defaults.
    """
    return """\
storage:
  root_dir: .
  local_dir: null
  shared_dir: null
  write_to_shared: false
engine:
  clean_propagation: all
"""


@pytest.fixture
def project_local_yaml() -> str:
    """
    Fixture que fornece o override local de um agente de build.

    Apenas as chaves que mudam na máquina são declaradas: o shared
    storage do changelist e a permissão de escrita.

    Returns:
        str: Conteúdo YAML do override local.
    """
    return """\
storage:
  shared_dir: /mnt/buildshare/CL-1234
  write_to_shared: true
"""


# =====================================================
# Workspace / storage / job fixtures
# =====================================================

@dataclass
class Workspace:
    root: Path
    local: Path
    shared: Path


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    """
    Fixture que fornece os diretórios de um workspace de build isolado.

    - `root`: raiz do workspace; build products devem viver aqui
    - `local`: cache local de manifests e marcadores de conclusão
    - `shared`: diretório usado como shared storage (rede simulada)

    Returns:
        Workspace: Caminhos absolutos, todos já criados.
    """
    root = tmp_path / "ws"
    local = tmp_path / "local"
    shared = tmp_path / "shared"
    for d in (root, local, shared):
        d.mkdir()
    return Workspace(root=root, local=local, shared=shared)


@pytest.fixture
def storage(workspace):
    """TempStorage apenas local (sem shared storage)."""
    from buildgraph.core.storage.temp_storage import TempStorage

    return TempStorage(workspace.root, workspace.local)


@pytest.fixture
def shared_storage(workspace):
    """TempStorage com shared storage habilitado para escrita."""
    from buildgraph.core.storage.temp_storage import TempStorage

    return TempStorage(workspace.root, workspace.local, workspace.shared, write_to_shared=True)


@pytest.fixture
def job(workspace):
    """
    Fixture que fornece um JobContext determinístico para testes.

    `job_id` e `created_at` são fixos; o report de rastreabilidade não é
    anexado (testes que precisam dele o criam explicitamente).
    """
    from buildgraph.core.engine.job import JobContext

    return JobContext(
        job_id="job-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        root_dir=workspace.root,
        meta={"source": "pytest"},
    )


@pytest.fixture
def calls() -> List[str]:
    """Lista compartilhada onde as tasks de teste registram sua execução."""
    return []


@pytest.fixture
def WriteTask(workspace, calls):
    """
    Fixture factory que fornece uma Task de teste que escreve arquivos.

    A classe retornada:
    - registra `label` em `calls` a cada execução
    - guarda, em `seen`, os arquivos de cada tag de input lida
    - escreve cada caminho relativo de `outputs` sob a raiz do workspace e
      o adiciona à tag correspondente
    - retorna `result` (False simula falha reportada pela task)

    Returns:
        type: Classe _WriteTask que pode ser instanciada pelos testes.
    """

    class _WriteTask:
        def __init__(
            self,
            label: str,
            outputs: Optional[Dict[str, List[str]]] = None,
            reads: Optional[List[str]] = None,
            content: str = "data",
            result: bool = True,
        ):
            self.label = label
            self.outputs = outputs or {}
            self.reads = reads or []
            self.content = content
            self.result = result
            self.seen: Dict[str, set] = {}

        def execute(self, job, tag_files):
            calls.append(self.label)
            for tag in self.reads:
                self.seen[tag] = set(tag_files[tag])
            for tag, rel_paths in self.outputs.items():
                for rel in rel_paths:
                    path = workspace.root / rel
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(f"{self.content}:{rel}", encoding="utf-8")
                    tag_files.add(tag, path)
            return self.result

    return _WriteTask


@pytest.fixture
def compile_package_graph(WriteTask):
    """
    Grafo de dois nodes em um único grupo:

        Compile → #Binaries (bin/app.exe)
        Package ← #Binaries, → #Archive (pkg/app.zip)

    Returns:
        Graph: Grafo já indexado.
    """
    from buildgraph.core.graph import AgentGroup, Graph, Node

    compile_node = Node(
        name="Compile",
        output_names=["Binaries"],
        tasks=[WriteTask("Compile", outputs={"Binaries": ["bin/app.exe"]})],
    )
    package_node = Node(
        name="Package",
        input_names=["Binaries"],
        output_names=["Archive"],
        tasks=[WriteTask("Package", outputs={"Archive": ["pkg/app.zip"]}, reads=["Binaries"])],
    )
    return Graph([AgentGroup("Win64", ["Win64"], [compile_node, package_node])])
