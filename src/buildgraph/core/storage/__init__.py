# src/buildgraph/core/storage/__init__.py
"""
Storage do buildgraph.

    - tag_files    → `TagFileSet`: tag → arquivos durante a execução de um node
    - manifest     → `TempStorageManifest`: arquivos de um (node, output)
    - temp_storage → `TempStorage`: cache local + shared, conclusão e integridade
"""

from .manifest import TempStorageFile, TempStorageManifest
from .tag_files import TagFileSet
from .temp_storage import TempStorage, create_storage, storage_name

__all__ = [
    "TagFileSet",
    "TempStorage",
    "TempStorageFile",
    "TempStorageManifest",
    "create_storage",
    "storage_name",
]
