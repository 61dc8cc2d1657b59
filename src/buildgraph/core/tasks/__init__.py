# src/buildgraph/core/tasks/__init__.py
"""
Tasks do buildgraph.

    - task     → `Task` (Protocol): contrato executado por um Node
    - registry → `TaskRegistry`: mapa explícito nome → factory

O catálogo de tasks concretas (compile, copy, package, ...) vive fora do
engine e é registrado pelo chamador.
"""

from .registry import TaskFactory, TaskRegistry
from .task import Task

__all__ = ["Task", "TaskFactory", "TaskRegistry"]
