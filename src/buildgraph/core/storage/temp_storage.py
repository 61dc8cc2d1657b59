# src/buildgraph/core/storage/temp_storage.py
"""
TempStorage: cache em dois níveis de outputs de nodes.

Chaveado por `(node_name, output_name)`:

    - nível local: diretório em disco da própria máquina, com manifests e
      marcador de conclusão de cada node; permite iterar rapidamente contra
      o cache quando os inputs não mudaram
    - nível shared (opcional): diretório de rede usado para trocar build
      products entre máquinas em um build distribuído

Nomes de node e de tag viram componentes de caminho por `storage_name`:
um radical legível mais um sufixo derivado do nome original, de modo que
nomes distintos nunca compartilham diretório (nem em filesystems que
ignoram maiúsculas/minúsculas).

Layout local:

    <local_dir>/<node>/outputs/<output>.json     manifest do output
    <local_dir>/<node>/complete                  marcador de conclusão

Layout shared:

    <shared_dir>/<node>/outputs/<output>/manifest.json
    <shared_dir>/<node>/outputs/<output>/files/<caminho relativo>
    <shared_dir>/<node>/complete

Decisões arquiteturais:
    - O shared storage é publish-once para nodes concluídos: um output de
      node com marcador `complete` no shared nunca é sobrescrito; outputs
      de um node que não chegou a concluir são publicações interrompidas e
      podem ser substituídos
    - Todos os manifests de um node são montados (e validados) antes de
      qualquer publicação
    - Sem `write_to_shared` o shared storage é somente leitura
    - O cache local só é mutado pelo processo dono dele

Limites explícitos:
    - Não espera nem faz polling por outputs de outras máquinas
    - Não decide quais nodes executar (ver Executor)
"""

from __future__ import annotations

import hashlib
import os
import re
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Union

from buildgraph.core.exceptions import (
    CorruptOutputError,
    MissingOutputError,
    SharedOutputExistsError,
)

from .manifest import TempStorageManifest

if TYPE_CHECKING:
    from buildgraph.core.config.settings import EngineSettings

COMPLETE_MARKER = "complete"
OUTPUTS_DIR = "outputs"
SHARED_MANIFEST = "manifest.json"
SHARED_FILES_DIR = "files"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._+-]")
_NAME_DIGEST_CHARS = 12


def storage_name(name: str) -> str:
    """
    Componente de caminho para um nome de node/tag.

    O radical troca caracteres fora de `[A-Za-z0-9._+-]` por `_`; o sufixo
    (SHA-256 do nome original) torna o mapeamento injetivo.
    """
    digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[:_NAME_DIGEST_CHARS]
    return f"{_UNSAFE_CHARS.sub('_', name)}-{digest}"


class TempStorage:
    """Cache local + shared de manifests e estado de conclusão."""

    def __init__(
        self,
        root_dir: Union[str, Path],
        local_dir: Union[str, Path],
        shared_dir: Optional[Union[str, Path]] = None,
        write_to_shared: bool = False,
    ):
        self.root_dir = Path(os.path.abspath(root_dir))
        self.local_dir = Path(os.path.abspath(local_dir))
        self.shared_dir = Path(os.path.abspath(shared_dir)) if shared_dir is not None else None
        self.write_to_shared = bool(write_to_shared)

    @classmethod
    def from_settings(cls, settings: "EngineSettings") -> "TempStorage":
        return cls(
            root_dir=settings.root_dir,
            local_dir=settings.local_dir,
            shared_dir=settings.shared_dir,
            write_to_shared=settings.write_to_shared,
        )

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _local_node_dir(self, node_name: str) -> Path:
        return self.local_dir / storage_name(node_name)

    def _local_manifest_path(self, node_name: str, output_name: str) -> Path:
        return self._local_node_dir(node_name) / OUTPUTS_DIR / f"{storage_name(output_name)}.json"

    @staticmethod
    def _shared_node_dir(shared_dir: Path, node_name: str) -> Path:
        return shared_dir / storage_name(node_name)

    @classmethod
    def _shared_output_dir(cls, shared_dir: Path, node_name: str, output_name: str) -> Path:
        return cls._shared_node_dir(shared_dir, node_name) / OUTPUTS_DIR / storage_name(output_name)

    @property
    def writable_shared_dir(self) -> Optional[Path]:
        """Diretório shared quando a escrita está habilitada; None caso contrário."""
        return self.shared_dir if self.write_to_shared else None

    @property
    def can_write_shared(self) -> bool:
        return self.writable_shared_dir is not None

    # ------------------------------------------------------------------
    # Conclusão
    # ------------------------------------------------------------------

    def is_complete(self, node_name: str) -> bool:
        """True se o marcador de conclusão do node existe no cache local."""
        return (self._local_node_dir(node_name) / COMPLETE_MARKER).is_file()

    def is_complete_in_shared(self, node_name: str) -> bool:
        if self.shared_dir is None:
            return False
        return (self._shared_node_dir(self.shared_dir, node_name) / COMPLETE_MARKER).is_file()

    def mark_as_complete(self, node_name: str) -> None:
        """Grava o marcador local (e o shared, quando a escrita está habilitada)."""
        node_dir = self._local_node_dir(node_name)
        node_dir.mkdir(parents=True, exist_ok=True)
        (node_dir / COMPLETE_MARKER).write_text(node_name, encoding="utf-8")

        shared_dir = self.writable_shared_dir
        if shared_dir is not None:
            shared_node_dir = self._shared_node_dir(shared_dir, node_name)
            shared_node_dir.mkdir(parents=True, exist_ok=True)
            (shared_node_dir / COMPLETE_MARKER).write_text(node_name, encoding="utf-8")

    # ------------------------------------------------------------------
    # Integridade / limpeza do cache local
    # ------------------------------------------------------------------

    def check_local_integrity(self, node_name: str, output_names: Iterable[str]) -> bool:
        """
        Verifica se o estado local do node ainda corresponde ao disco.

        Um node marcado como completo precisa de um manifest para cada
        output e todos os arquivos listados devem existir com o mesmo
        tamanho e mtime. Manifests parciais de um node não completo também
        são verificados. Um node sem estado local é íntegro.
        """
        complete = self.is_complete(node_name)
        for output_name in output_names:
            path = self._local_manifest_path(node_name, output_name)
            if not path.is_file():
                if complete:
                    return False
                continue
            try:
                manifest = TempStorageManifest.load(path)
            except (OSError, ValueError, KeyError, TypeError):
                return False
            if not all(f.is_unchanged(self.root_dir) for f in manifest.files):
                return False
        return True

    def clean_local_node(self, node_name: str) -> None:
        """Remove manifests e marcador de conclusão locais de um node."""
        node_dir = self._local_node_dir(node_name)
        if node_dir.exists():
            shutil.rmtree(node_dir)

    def clean_local(self) -> None:
        """Remove todo o estado local de todos os nodes."""
        if not self.local_dir.exists():
            return
        for child in self.local_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()

    # ------------------------------------------------------------------
    # Retrieve / archive
    # ------------------------------------------------------------------

    def has_local_output(self, node_name: str, output_name: str) -> bool:
        return self._local_manifest_path(node_name, output_name).is_file()

    def retrieve(self, node_name: str, output_name: str) -> TempStorageManifest:
        """
        Retorna o manifest de um output já produzido.

        O cache local é consultado primeiro; se o output não estiver lá, os
        arquivos são copiados do shared storage para `root_dir` (mtime
        restaurado e digest verificado) e o manifest é gravado localmente.

        Raises:
            MissingOutputError: Se o output não existir em nenhum dos níveis.
            CorruptOutputError: Se os arquivos do shared storage não conferirem
                com o manifest publicado.
        """
        local_path = self._local_manifest_path(node_name, output_name)
        if local_path.is_file():
            return TempStorageManifest.load(local_path)

        searched: List[str] = [str(local_path)]
        if self.shared_dir is not None:
            shared_dir = self._shared_output_dir(self.shared_dir, node_name, output_name)
            shared_manifest = shared_dir / SHARED_MANIFEST
            searched.append(str(shared_manifest))
            if shared_manifest.is_file():
                manifest = TempStorageManifest.load(shared_manifest)
                self._copy_from_shared(node_name, output_name, shared_dir, manifest)
                manifest.save(local_path)
                return manifest

        raise MissingOutputError(
            f"Output '{output_name}' of node '{node_name}' was not found in temp storage",
            details={"node": node_name, "tag": output_name, "searched": searched},
            hint="Garanta que o node produtor foi executado e publicou seus outputs",
        )

    def _copy_from_shared(
        self,
        node_name: str,
        output_name: str,
        shared_dir: Path,
        manifest: TempStorageManifest,
    ) -> None:
        files_dir = shared_dir / SHARED_FILES_DIR
        for entry in manifest.files:
            source = entry.to_local_path(files_dir)
            if not source.is_file():
                raise CorruptOutputError(
                    f"Shared output '{output_name}' of node '{node_name}' is missing {entry.relative_path}",
                    details={"node": node_name, "tag": output_name, "file": entry.relative_path},
                )
            target = entry.to_local_path(self.root_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
            os.utime(target, ns=(entry.last_write_time_ns, entry.last_write_time_ns))
            if not entry.matches_digest(target):
                raise CorruptOutputError(
                    f"Shared output '{output_name}' of node '{node_name}' has a corrupt copy of {entry.relative_path}",
                    details={"node": node_name, "tag": output_name, "file": entry.relative_path},
                )

    def archive(
        self,
        node_name: str,
        output_name: str,
        files: Iterable[Union[str, Path]],
        must_push_to_shared: bool = False,
    ) -> TempStorageManifest:
        """
        Registra o manifest de um output e, se necessário, publica no shared storage.

        Raises:
            InvalidBuildProductError: Se algum arquivo não existir ou estiver fora de `root_dir`.
            SharedOutputExistsError: Se o output já tiver sido publicado por um node concluído.
        """
        push = [output_name] if must_push_to_shared else []
        return self.archive_outputs(node_name, {output_name: files}, push)[output_name]

    def archive_outputs(
        self,
        node_name: str,
        outputs: Mapping[str, Iterable[Union[str, Path]]],
        push_to_shared: Iterable[str] = (),
    ) -> Dict[str, TempStorageManifest]:
        """
        Arquiva todos os outputs de um node.

        Todos os manifests são montados antes de qualquer escrita, então um
        build product inválido em qualquer output impede a publicação dos
        demais. Outputs em `push_to_shared` vão ao shared storage quando a
        escrita está habilitada.

        Raises:
            InvalidBuildProductError: Se algum arquivo não existir ou estiver fora de `root_dir`.
            SharedOutputExistsError: Se o node já estiver concluído no shared storage.
        """
        manifests = {
            output_name: TempStorageManifest.from_files(self.root_dir, files)
            for output_name, files in outputs.items()
        }

        shared_dir = self.writable_shared_dir
        if shared_dir is not None:
            pushed = set(push_to_shared)
            for output_name, manifest in manifests.items():
                if output_name in pushed:
                    self._publish(shared_dir, node_name, output_name, manifest)

        for output_name, manifest in manifests.items():
            manifest.save(self._local_manifest_path(node_name, output_name))
        return manifests

    def _publish(
        self,
        shared_dir: Path,
        node_name: str,
        output_name: str,
        manifest: TempStorageManifest,
    ) -> None:
        out_dir = self._shared_output_dir(shared_dir, node_name, output_name)
        if (out_dir / SHARED_MANIFEST).exists() and self.is_complete_in_shared(node_name):
            raise SharedOutputExistsError(
                f"Output '{output_name}' of node '{node_name}' is already in shared storage",
                details={"node": node_name, "tag": output_name, "path": str(out_dir)},
                hint="Limpe o shared storage ou use um diretório novo para este changelist",
            )
        if out_dir.exists():
            # node nunca concluído: publicação anterior interrompida
            shutil.rmtree(out_dir)

        files_dir = out_dir / SHARED_FILES_DIR
        for entry in manifest.files:
            target = entry.to_local_path(files_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(entry.to_local_path(self.root_dir), target)
        manifest.save(out_dir / SHARED_MANIFEST)


def create_storage(settings: "EngineSettings") -> TempStorage:
    """TempStorage configurado a partir dos settings do engine."""
    return TempStorage.from_settings(settings)
