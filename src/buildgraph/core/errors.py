# src/buildgraph/core/errors.py
"""
buildgraph: Estruturas canônicas de erro (v1)

Este módulo define o padrão canônico de erros reportados pelo Executor.
Erros fazem parte do contrato operacional do engine e devem ser:

- explícitos
- serializáveis
- rastreáveis (nome do node, nome da tag, donos conflitantes)
- acionáveis

Um erro reportado deve permitir diagnóstico sem reexecutar com
verbosidade extra.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import (
    AmbiguousOutputError,
    BuildGraphException,
    CorruptOutputError,
    CycleDetectedError,
    DuplicateNodeError,
    DuplicateOutputError,
    DuplicateTaskError,
    DuplicateTriggerError,
    GraphConfigurationError,
    InvalidBuildProductError,
    MissingOutputError,
    NodeBuildFailedError,
    NodeNotInGraphError,
    ReadOnlyTagError,
    SharedOutputExistsError,
    UnknownDependencyError,
    UnknownReferenceError,
    UnknownTaskError,
    UnknownTriggerError,
    UnsetTagError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do buildgraph.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Configuração
GRAPH_CONFIGURATION_ERROR = "GRAPH_CONFIGURATION_ERROR"
UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
UNKNOWN_TRIGGER = "UNKNOWN_TRIGGER"
UNKNOWN_DEPENDENCY = "UNKNOWN_DEPENDENCY"
UNKNOWN_TASK = "UNKNOWN_TASK"
DUPLICATE_NODE = "DUPLICATE_NODE"
DUPLICATE_OUTPUT = "DUPLICATE_OUTPUT"
DUPLICATE_TRIGGER = "DUPLICATE_TRIGGER"
DUPLICATE_TASK = "DUPLICATE_TASK"
CYCLE_DETECTED = "CYCLE_DETECTED"
NODE_NOT_IN_GRAPH = "NODE_NOT_IN_GRAPH"

# Tags / propriedade de arquivos
AMBIGUOUS_OUTPUT = "AMBIGUOUS_OUTPUT"
UNSET_TAG = "UNSET_TAG"
READ_ONLY_TAG = "READ_ONLY_TAG"

# Storage
MISSING_OUTPUT = "MISSING_OUTPUT"
CORRUPT_OUTPUT = "CORRUPT_OUTPUT"
INVALID_BUILD_PRODUCT = "INVALID_BUILD_PRODUCT"
SHARED_OUTPUT_EXISTS = "SHARED_OUTPUT_EXISTS"

# Execução
NODE_BUILD_FAILED = "NODE_BUILD_FAILED"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


_CODES = {
    UnknownReferenceError: UNKNOWN_REFERENCE,
    UnknownTriggerError: UNKNOWN_TRIGGER,
    UnknownDependencyError: UNKNOWN_DEPENDENCY,
    UnknownTaskError: UNKNOWN_TASK,
    DuplicateNodeError: DUPLICATE_NODE,
    DuplicateOutputError: DUPLICATE_OUTPUT,
    DuplicateTriggerError: DUPLICATE_TRIGGER,
    DuplicateTaskError: DUPLICATE_TASK,
    CycleDetectedError: CYCLE_DETECTED,
    NodeNotInGraphError: NODE_NOT_IN_GRAPH,
    AmbiguousOutputError: AMBIGUOUS_OUTPUT,
    UnsetTagError: UNSET_TAG,
    ReadOnlyTagError: READ_ONLY_TAG,
    MissingOutputError: MISSING_OUTPUT,
    CorruptOutputError: CORRUPT_OUTPUT,
    InvalidBuildProductError: INVALID_BUILD_PRODUCT,
    SharedOutputExistsError: SHARED_OUTPUT_EXISTS,
    NodeBuildFailedError: NODE_BUILD_FAILED,
    GraphConfigurationError: GRAPH_CONFIGURATION_ERROR,
}


def error_code_for(exc: BaseException) -> str:
    """Código estável para uma exceção (ENGINE_EXECUTION_ERROR se desconhecida)."""
    for cls in type(exc).__mro__:
        code = _CODES.get(cls)
        if code is not None:
            return code
    return ENGINE_EXECUTION_ERROR


def to_error_payload(exc: BaseException, *, node: Optional[str] = None) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - BuildGraphException: já vem com message/details/hint.
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, BuildGraphException):
        details = dict(exc.details or {})
        if node is not None:
            details.setdefault("node", node)
        return ErrorPayload(
            type=error_code_for(exc),
            message=str(exc) or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    details: Dict[str, Any] = {"exception_class": exc.__class__.__name__}
    if node is not None:
        details["node"] = node
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details=details,
        hint="Verifique o event log do job e a implementação das tasks do node",
    )
