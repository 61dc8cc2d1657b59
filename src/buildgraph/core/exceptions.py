# src/buildgraph/core/exceptions.py
"""
buildgraph: Exceções canônicas (v1)

Este módulo define as exceções tipadas internas do buildgraph.

Objetivo:
- Permitir que Graph/Storage/Executor levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Taxonomia:
- Configuração: referência desconhecida, trigger desconhecido, duplicidades,
  ciclos. Fatais no momento da resolução do grafo.
- Propriedade de arquivos: um arquivo reivindicado por dois outputs.
- Storage: output ausente, output corrompido, build product inválido.
- Build: falha reportada pela lógica do próprio node.

Falhas de integridade do cache local NÃO são exceções: elas disparam
limpeza e rebuild transparentes no Executor.

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BuildGraphException(Exception):
    """Base class para exceções internas do buildgraph.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuração / estrutura do grafo
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphConfigurationError(BuildGraphException):
    """Erro estrutural do grafo; a execução nunca inicia."""


@dataclass(frozen=True)
class UnknownReferenceError(GraphConfigurationError):
    """Target (node, grupo ou tag) não existe no grafo."""


@dataclass(frozen=True)
class UnknownTriggerError(GraphConfigurationError):
    """Trigger solicitado não existe no grafo."""


@dataclass(frozen=True)
class UnknownDependencyError(GraphConfigurationError):
    """Node depende de outro node inexistente."""


@dataclass(frozen=True)
class DuplicateNodeError(GraphConfigurationError):
    """Dois nodes com o mesmo nome."""


@dataclass(frozen=True)
class DuplicateOutputError(GraphConfigurationError):
    """Uma tag de output é produzida por mais de um node."""


@dataclass(frozen=True)
class DuplicateTriggerError(GraphConfigurationError):
    """Dois triggers com o mesmo nome."""


@dataclass(frozen=True)
class DuplicateTaskError(GraphConfigurationError):
    """Dois handlers registrados para o mesmo tipo de task."""


@dataclass(frozen=True)
class UnknownTaskError(GraphConfigurationError):
    """Tipo de task não registrado."""


@dataclass(frozen=True)
class CycleDetectedError(GraphConfigurationError):
    """Dependências entre nodes formam um ciclo."""


@dataclass(frozen=True)
class NodeNotInGraphError(GraphConfigurationError):
    """Node solicitado não está no grafo (após poda)."""


# ---------------------------------------------------------------------------
# Tags / propriedade de arquivos
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnsetTagError(BuildGraphException):
    """Leitura de uma tag que ainda não foi produzida nesta execução."""


@dataclass(frozen=True)
class ReadOnlyTagError(BuildGraphException):
    """Tentativa de mutar uma tag de input (somente leitura)."""


@dataclass(frozen=True)
class AmbiguousOutputError(BuildGraphException):
    """Um mesmo arquivo foi adicionado a mais de um output do node."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StorageError(BuildGraphException):
    """Base para falhas do TempStorage."""


@dataclass(frozen=True)
class MissingOutputError(StorageError):
    """Output não encontrado nem no cache local nem no shared storage."""


@dataclass(frozen=True)
class CorruptOutputError(StorageError):
    """Output existe no shared storage, mas os arquivos não conferem com o manifest."""


@dataclass(frozen=True)
class InvalidBuildProductError(StorageError):
    """Build product inexistente ou fora do diretório raiz."""


@dataclass(frozen=True)
class SharedOutputExistsError(StorageError):
    """Output já publicado no shared storage (publish-once)."""


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeBuildFailedError(BuildGraphException):
    """A lógica de build do node reportou falha."""


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvalidSettingError(BuildGraphException):
    """Valor inválido nas configurações do engine."""
