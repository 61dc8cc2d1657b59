# src/buildgraph/core/tasks/registry.py
"""
Registro explícito de tipos de Task.

O leitor de scripts (externo) transforma cada elemento de task em uma
instância concreta consultando este registro: um mapa de nome do tipo de
task → factory. O registro é populado uma única vez na inicialização, por
chamadas explícitas de `register`; não existe descoberta por reflexão ou
varredura de módulos.

Invariantes:
    - Cada nome de task possui exatamente um handler
    - A ordem de registro é preservada em `names()`
    - Nenhuma task desconhecida é instanciada silenciosamente
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from buildgraph.core.exceptions import DuplicateTaskError, UnknownTaskError

from .task import Task

TaskFactory = Callable[..., Task]


@dataclass
class TaskRegistry:
    """
    Mapa de tipo de task → factory, com validação de unicidade.

    Erros de registro são tratados como erros de configuração fatais,
    levantados antes de qualquer leitura de grafo ou execução.
    """

    _factories: Dict[str, TaskFactory] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def register(self, name: str, factory: TaskFactory) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("task name must be a non-empty string")
        if not callable(factory):
            raise TypeError(f"factory for task '{name}' must be callable")

        if name in self._factories:
            raise DuplicateTaskError(
                f"Found multiple handlers for task elements called '{name}'",
                details={"task": name},
            )

        self._factories[name] = factory
        self._order.append(name)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def get(self, name: str) -> TaskFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownTaskError(
                f"Unknown task '{name}'",
                details={"task": name, "known": list(self._order)},
            ) from None

    def create(self, name: str, **params: Any) -> Task:
        """Instancia a task `name` com os parâmetros já resolvidos pelo leitor."""
        task = self.get(name)(**params)
        if not isinstance(task, Task):
            raise TypeError(f"factory for task '{name}' did not return a Task")
        return task

    def names(self) -> List[str]:
        return list(self._order)
