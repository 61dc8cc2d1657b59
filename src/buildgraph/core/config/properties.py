# src/buildgraph/core/config/properties.py
"""
Propriedades default entregues ao leitor de scripts.

O leitor da linguagem de descrição do grafo (externo ao engine) recebe um
mapa opaco de strings. Este módulo apenas monta esse mapa:

    1. variáveis de ambiente
    2. overrides de linha de comando no formato `-Set:Chave=Valor`
    3. propriedades padrão fornecidas pelo chamador (RootDir, Change, ...)

Chaves são comparadas sem diferenciar maiúsculas/minúsculas; a grafia da
última escrita vence.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

SET_PREFIX = "-Set:"


class PropertyMap(MutableMapping):
    """Dicionário de strings com chaves case-insensitive."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, Tuple[str, str]] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, key: str) -> str:
        return self._data[key.casefold()][1]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key.casefold()] = (key, str(value))

    def __delitem__(self, key: str) -> None:
        del self._data[key.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in self._data.values()}


def parse_set_overrides(params: Iterable[str]) -> Dict[str, str]:
    """
    Extrai overrides `-Set:Chave=Valor` de uma lista de parâmetros.

    Parâmetros sem `=` ou com outro prefixo são ignorados. O prefixo é
    comparado sem diferenciar maiúsculas/minúsculas; o valor pode conter `=`.
    """
    overrides: Dict[str, str] = {}
    for param in params:
        if param[: len(SET_PREFIX)].lower() != SET_PREFIX.lower():
            continue
        body = param[len(SET_PREFIX):]
        key, sep, value = body.partition("=")
        if sep and key:
            overrides[key] = value
    return overrides


def build_default_properties(
    *,
    environ: Optional[Mapping[str, str]] = None,
    params: Iterable[str] = (),
    standard: Optional[Mapping[str, str]] = None,
) -> PropertyMap:
    """Monta o mapa de propriedades default (ambiente < -Set: < padrão)."""
    props = PropertyMap(environ or {})
    props.update(parse_set_overrides(params))
    if standard:
        props.update(standard)
    return props
