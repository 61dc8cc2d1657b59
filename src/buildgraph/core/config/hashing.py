# src/buildgraph/core/config/hashing.py
"""
Hashing canônico do buildgraph.

Dois usos:
    - identidade da configuração efetiva do engine (registrada no
      BuildReport de cada execução)
    - digest de conteúdo dos build products gravados nos manifests do
      TempStorage, usado para verificar cópias vindas do shared storage

Ambos utilizam SHA-256 e produzem strings hexadecimais de 64 caracteres.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Union

_CHUNK_SIZE = 1024 * 1024


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva.

    Política de hashing (v1):
        - Serialização JSON canônica (chaves ordenadas, separadores compactos)
        - Codificação UTF-8
        - SHA-256

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_file_digest(path: Union[str, Path]) -> str:
    """SHA-256 do conteúdo de um arquivo, lido em blocos."""
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()
