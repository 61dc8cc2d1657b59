# src/buildgraph/core/traceability/__init__.py
"""
Pacote de rastreabilidade (traceability) do buildgraph: BuildReport v1.

API pública exposta:
    - BuildReport   → estrutura canônica do report de execução
    - create_report → criação explícita do report
    - add_event     → registro explícito de eventos no Event Log
    - node_started  → marca início de execução de um node
    - node_finished → registra conclusão bem-sucedida de um node
    - node_skipped  → registra node pulado (completo, trigger inativo, ...)
    - node_failed   → registra falha de um node
    - save_report   → persistência em JSON
    - load_report   → restauração determinística

Nenhum evento é emitido implicitamente; a ordem do Event Log reflete a
ordem de chamada.
"""

from .report import (
    BuildReport,
    add_event,
    create_report,
    load_report,
    node_failed,
    node_finished,
    node_skipped,
    node_started,
    save_report,
)

__all__ = [
    "BuildReport",
    "add_event",
    "create_report",
    "load_report",
    "node_failed",
    "node_finished",
    "node_skipped",
    "node_started",
    "save_report",
]
