# src/buildgraph/core/storage/tag_files.py
"""
TagFileSet: mapa tag → arquivos, escopo de uma execução de node.

Cada execução de node monta sua própria tabela:
    1. toda tag de output conhecida no grafo começa "unset"
    2. tags de input recebem os arquivos do manifest do produtor (somente leitura)
    3. tags de output do node recebem conjuntos vazios (mutáveis)

A tabela pertence a uma única execução e é passada às tasks por
referência exclusiva. Tags de input são expostas como `frozenset`; apenas
outputs declarados aceitam `add`/`discard`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AbstractSet, Dict, Iterable, Iterator, List, Optional, Set, Union

from buildgraph.core.exceptions import (
    AmbiguousOutputError,
    ReadOnlyTagError,
    UnsetTagError,
)

PathLike = Union[str, Path]


def _abs(path: PathLike) -> Path:
    return Path(os.path.abspath(path))


class TagFileSet:
    """Tabela tag → conjunto de caminhos absolutos."""

    def __init__(self, known_tags: Iterable[str] = ()):
        self._files: Dict[str, Optional[AbstractSet[Path]]] = {t: None for t in known_tags}
        self._outputs: List[str] = []

    # -----------------------------
    # Montagem (uso do Executor)
    # -----------------------------
    def set_input(self, tag: str, files: Iterable[PathLike]) -> None:
        self._files[tag] = frozenset(_abs(f) for f in files)

    def declare_output(self, tag: str) -> None:
        self._files[tag] = set()
        if tag not in self._outputs:
            self._outputs.append(tag)

    # -----------------------------
    # Leitura
    # -----------------------------
    def __contains__(self, tag: str) -> bool:
        return tag in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def is_set(self, tag: str) -> bool:
        return self._files.get(tag) is not None

    def __getitem__(self, tag: str) -> AbstractSet[Path]:
        if tag not in self._files:
            raise KeyError(tag)
        files = self._files[tag]
        if files is None:
            raise UnsetTagError(
                f"Tag '{tag}' has not been produced yet",
                details={"tag": tag},
                hint="Declare a tag como input do node que a consome",
            )
        return files

    # -----------------------------
    # Escrita (uso das tasks)
    # -----------------------------
    def _writable(self, tag: str) -> Set[Path]:
        if tag not in self._outputs:
            raise ReadOnlyTagError(
                f"Tag '{tag}' is not an output of the running node",
                details={"tag": tag, "outputs": list(self._outputs)},
            )
        return self._files[tag]  # type: ignore[return-value]

    def add(self, tag: str, *paths: PathLike) -> None:
        self._writable(tag).update(_abs(p) for p in paths)

    def discard(self, tag: str, *paths: PathLike) -> None:
        files = self._writable(tag)
        for p in paths:
            files.discard(_abs(p))

    def outputs(self) -> Dict[str, Set[Path]]:
        return {tag: set(self._files[tag] or ()) for tag in self._outputs}

    # -----------------------------
    # Propriedade de arquivos
    # -----------------------------
    def find_file_owners(self, node_name: Optional[str] = None) -> Dict[Path, str]:
        """
        Mapa reverso arquivo → tag de output.

        Raises:
            AmbiguousOutputError: Se algum arquivo aparecer em duas tags de
                output; todos os conflitos são listados em `details`.
        """
        owners: Dict[Path, str] = {}
        conflicts: List[Dict[str, object]] = []
        for tag in self._outputs:
            for f in sorted(self._files[tag] or ()):
                existing = owners.get(f)
                if existing is not None:
                    conflicts.append({"file": str(f), "tags": [existing, tag]})
                    continue
                owners[f] = tag
        if conflicts:
            first = conflicts[0]
            raise AmbiguousOutputError(
                f"Build product is added to multiple outputs; {first['file']} added to "
                f"{first['tags'][0]} and {first['tags'][1]}",
                details={"node": node_name, "conflicts": conflicts},
                hint="Cada arquivo produzido deve pertencer a uma única tag de output",
            )
        return owners
