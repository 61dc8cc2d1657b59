# src/buildgraph/core/storage/manifest.py
"""
TempStorageManifest: lista de arquivos de um output de node.

Um manifest registra, no momento do archive, os arquivos de uma tag de
output produzida por um node. Os caminhos são relativos a uma raiz
declarada (a raiz do workspace) e usam separador POSIX, para que
máquinas diferentes interpretem o mesmo documento.

Cada entrada guarda tamanho, mtime (ns) e digest SHA-256:
    - tamanho + mtime: verificação rápida de integridade do cache local
    - digest: verificação das cópias trazidas do shared storage

O formato persistido (JSON) é parte do contrato entre processos e deve
permanecer estável em significado: nome do node, nome da tag e lista de
caminhos relativos.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Union

from buildgraph.core.config.hashing import compute_file_digest
from buildgraph.core.exceptions import InvalidBuildProductError

MANIFEST_VERSION = 1


@dataclass(frozen=True)
class TempStorageFile:
    """Entrada de manifest para um único arquivo."""

    relative_path: str
    length: int
    last_write_time_ns: int
    digest: str = ""

    @classmethod
    def from_file(cls, root: Path, path: Union[str, Path]) -> "TempStorageFile":
        """
        Cria a entrada a partir de um arquivo existente sob `root`.

        Raises:
            InvalidBuildProductError: Se o arquivo não existir ou estiver fora de `root`.
        """
        abs_root = Path(os.path.abspath(root))
        abs_path = Path(os.path.abspath(path))
        try:
            rel = abs_path.relative_to(abs_root)
        except ValueError:
            raise InvalidBuildProductError(
                f"Build product {abs_path} is not under the root directory {abs_root}",
                details={"file": str(abs_path), "root": str(abs_root)},
            ) from None
        if not abs_path.is_file():
            raise InvalidBuildProductError(
                f"Build product {rel.as_posix()} does not exist",
                details={"file": str(abs_path), "root": str(abs_root)},
            )
        st = abs_path.stat()
        return cls(
            relative_path=rel.as_posix(),
            length=st.st_size,
            last_write_time_ns=st.st_mtime_ns,
            digest=compute_file_digest(abs_path),
        )

    def to_local_path(self, root: Path) -> Path:
        return Path(os.path.abspath(Path(root).joinpath(*PurePosixPath(self.relative_path).parts)))

    def is_unchanged(self, root: Path) -> bool:
        """True se o arquivo existe com o mesmo tamanho e mtime registrados."""
        path = self.to_local_path(root)
        try:
            st = path.stat()
        except FileNotFoundError:
            return False
        return st.st_size == self.length and st.st_mtime_ns == self.last_write_time_ns

    def matches_digest(self, path: Path) -> bool:
        if not self.digest:
            return True
        return compute_file_digest(path) == self.digest

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.relative_path,
            "length": self.length,
            "mtime_ns": self.last_write_time_ns,
            "sha256": self.digest,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TempStorageFile":
        return cls(
            relative_path=str(data["path"]),
            length=int(data["length"]),
            last_write_time_ns=int(data["mtime_ns"]),
            digest=str(data.get("sha256") or ""),
        )


@dataclass
class TempStorageManifest:
    """Manifest de um par (node, tag de output)."""

    files: List[TempStorageFile] = field(default_factory=list)

    @classmethod
    def from_files(cls, root: Path, paths: Iterable[Union[str, Path]]) -> "TempStorageManifest":
        entries = [TempStorageFile.from_file(root, p) for p in paths]
        entries.sort(key=lambda e: e.relative_path)
        return cls(files=entries)

    def to_local_paths(self, root: Path) -> List[Path]:
        return [f.to_local_path(root) for f in self.files]

    @property
    def total_size(self) -> int:
        return sum(f.length for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "files": [f.to_dict() for f in self.files],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TempStorageManifest":
        return cls(files=[TempStorageFile.from_dict(d) for d in (data.get("files", []) or [])])

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, path)

    @classmethod
    def load(cls, path: Path) -> "TempStorageManifest":
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))
