# src/buildgraph/core/tasks/task.py
"""
Contrato canônico de Task do buildgraph.

Uma Task é a menor unidade executável dentro de um Node (compile, copy,
package, ...). O engine não interpreta sua semântica: um Node executa suas
Tasks em ordem, entregando a cada uma o mesmo `TagFileSet`.

Responsabilidades de uma Task:
    - ler os arquivos das tags de input (somente leitura)
    - adicionar/remover arquivos nas tags de output declaradas pelo node
    - retornar True em caso de sucesso, False em caso de falha

Princípios fundamentais:
    - Tasks não conhecem o Executor, o Graph nem o TempStorage
    - Conformidade é garantida por duck typing (@runtime_checkable)
    - Política de retry, se existir, pertence à Task e não ao engine
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from buildgraph.core.engine.job import JobContext
    from buildgraph.core.storage.tag_files import TagFileSet


@runtime_checkable
class Task(Protocol):
    """
    Contrato mínimo de uma Task.

    Invariantes:
        - `execute` é chamado no máximo uma vez por execução do node
        - O retorno é sempre um booleano de sucesso
        - Tags de input não são mutadas
    """

    def execute(self, job: "JobContext", tag_files: "TagFileSet") -> bool:
        """Executa a task e popula as tags de output do node."""
        ...
