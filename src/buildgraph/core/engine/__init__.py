# src/buildgraph/core/engine/__init__.py
"""
Engine do buildgraph: contexto de job, executor e fluxo de comando.
"""

from .command import BuildMode, BuildOptions, BuildOutcome, run_build
from .executor import (
    BuildResult,
    NodeResult,
    NodeStatus,
    build_all_nodes,
    build_single_node,
    find_completed_nodes,
)
from .job import JobContext

__all__ = [
    "BuildMode",
    "BuildOptions",
    "BuildOutcome",
    "BuildResult",
    "JobContext",
    "NodeResult",
    "NodeStatus",
    "build_all_nodes",
    "build_single_node",
    "find_completed_nodes",
    "run_build",
]
