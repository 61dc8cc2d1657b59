# src/buildgraph/core/graph/node.py
"""
Node: uma etapa nomeada do grafo de build.

Um Node declara as tags que consome (`input_names`) e as que produz
(`output_names`), e executa uma sequência ordenada de Tasks. As
dependências de input (`input_dependencies`) são derivadas pelo Graph a
partir dos produtores de cada tag consumida.

O Node nunca guarda estado de execução: conclusão e manifests vivem no
TempStorage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from .trigger import ManualTrigger

if TYPE_CHECKING:
    from buildgraph.core.engine.job import JobContext
    from buildgraph.core.storage.tag_files import TagFileSet
    from buildgraph.core.tasks.task import Task


@dataclass(eq=False)
class Node:
    """
    Etapa de build com inputs/outputs declarados por nome de tag.

    Identidade por instância: nodes são usados como chaves de conjuntos
    (nodes completos, nodes limpos) e o nome é único no grafo.
    """

    name: str
    input_names: List[str] = field(default_factory=list)
    output_names: List[str] = field(default_factory=list)
    controlling_trigger: Optional[ManualTrigger] = None
    tasks: List["Task"] = field(default_factory=list)
    input_dependencies: List["Node"] = field(default_factory=list, init=False, repr=False)

    def build(self, job: "JobContext", tag_files: "TagFileSet") -> bool:
        """
        Executa as tasks do node em ordem.

        Retorna False assim que uma task reportar falha; exceções levantadas
        pelas tasks são propagadas sem tratamento.
        """
        for task in self.tasks:
            if not task.execute(job, tag_files):
                job.log(
                    node=self.name,
                    level="ERROR",
                    message="task failed",
                    task=type(task).__name__,
                )
                return False
        return True

    def __repr__(self) -> str:
        return f"Node({self.name!r})"
