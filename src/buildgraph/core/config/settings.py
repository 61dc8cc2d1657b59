# src/buildgraph/core/config/settings.py
"""
Settings tipados do engine.

Converte a configuração resolvida (dict vindo de `load_config`) em uma
visão tipada e validada, consumida por TempStorage e Executor.

Chaves reconhecidas (v1):

    storage:
      root_dir: .                  # raiz do workspace; manifests são relativos a ela
      local_dir: null              # default: <root_dir>/Engine/Saved/BuildGraph
      shared_dir: null             # shared storage (rede); null desabilita
      write_to_shared: false       # sem isso o shared storage é somente leitura
    engine:
      clean_propagation: all       # all | same_group | same_trigger | none

Chaves desconhecidas são preservadas em `extra` e não interpretadas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import InvalidSettingError
from .hashing import compute_config_hash
from .merge import deep_merge


class CleanPropagation(str, Enum):
    """
    Alcance da limpeza "infecciosa" do pré-passe de integridade.

    Quando um node é invalidado (integridade local falhou ou ele será
    reconstruído), seus dependentes locais também são limpos. O enum
    define até onde essa propagação cruza fronteiras:

        - ALL: segue todas as dependências de input
        - SAME_GROUP: apenas dependentes no mesmo AgentGroup
        - SAME_TRIGGER: apenas dependentes com o mesmo trigger de controle
        - NONE: nenhum dependente é limpo por propagação
    """
    ALL = "all"
    SAME_GROUP = "same_group"
    SAME_TRIGGER = "same_trigger"
    NONE = "none"


DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "root_dir": ".",
        "local_dir": None,
        "shared_dir": None,
        "write_to_shared": False,
    },
    "engine": {
        "clean_propagation": CleanPropagation.ALL.value,
    },
}


def _require_bool(section: Dict[str, Any], key: str) -> bool:
    value = section.get(key)
    if not isinstance(value, bool):
        raise InvalidSettingError(
            f"Setting '{key}' deve ser booleano",
            details={"key": key, "received": type(value).__name__},
        )
    return value


def _optional_path(section: Dict[str, Any], key: str, base: Path) -> Optional[Path]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise InvalidSettingError(
            f"Setting '{key}' deve ser um caminho não vazio",
            details={"key": key, "received": repr(value)},
        )
    p = Path(value)
    return (p if p.is_absolute() else base / p).resolve()


@dataclass(frozen=True)
class EngineSettings:
    """Visão tipada da configuração efetiva do engine."""

    root_dir: Path
    local_dir: Path
    shared_dir: Optional[Path] = None
    write_to_shared: bool = False
    clean_propagation: CleanPropagation = CleanPropagation.ALL
    config_hash: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict[str, Any]] = None,
        *,
        base_dir: Optional[Path] = None,
    ) -> "EngineSettings":
        """
        Constrói settings a partir de uma configuração resolvida.

        A configuração recebida é aplicada sobre `DEFAULT_CONFIG`, então
        apenas as chaves que mudam precisam ser declaradas. Caminhos
        relativos são resolvidos contra `base_dir` (default: cwd).

        Raises:
            InvalidSettingError: Se algum valor for inválido.
            ConfigTypeConflictError: Se a estrutura conflitar com os defaults.
        """
        effective = deep_merge(DEFAULT_CONFIG, config or {})
        base = Path(base_dir) if base_dir is not None else Path.cwd()

        storage = effective.get("storage") or {}
        engine = effective.get("engine") or {}

        root_dir = _optional_path(storage, "root_dir", base)
        if root_dir is None:
            raise InvalidSettingError(
                "Setting 'root_dir' é obrigatório",
                details={"key": "root_dir"},
            )
        local_dir = _optional_path(storage, "local_dir", root_dir)
        if local_dir is None:
            local_dir = root_dir / "Engine" / "Saved" / "BuildGraph"

        raw_policy = engine.get("clean_propagation")
        try:
            policy = CleanPropagation(raw_policy)
        except ValueError:
            raise InvalidSettingError(
                f"Política de limpeza desconhecida: {raw_policy!r}",
                details={
                    "key": "clean_propagation",
                    "received": repr(raw_policy),
                    "allowed": [p.value for p in CleanPropagation],
                },
            ) from None

        known = {"storage", "engine"}
        return cls(
            root_dir=root_dir,
            local_dir=local_dir,
            shared_dir=_optional_path(storage, "shared_dir", root_dir),
            write_to_shared=_require_bool(storage, "write_to_shared"),
            clean_propagation=policy,
            config_hash=compute_config_hash(effective),
            extra={k: v for k, v in effective.items() if k not in known},
        )
