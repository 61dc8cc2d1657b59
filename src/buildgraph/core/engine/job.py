# src/buildgraph/core/engine/job.py
"""
Contexto de execução de um job de build.

Este módulo define o `JobContext`, a estrutura passada a cada Node (e às
suas Tasks) durante uma execução do engine.

O JobContext concentra:
    - identidade da execução (job_id, created_at)
    - raiz do workspace (`root_dir`), contra a qual os manifests são relativos
    - propriedades opacas (mapa de strings vindo do ambiente e de `-Set:`)
    - log estruturado de eventos
    - warnings não fatais agrupados por node
    - report de rastreabilidade opcional (BuildReport)

Invariantes:
    - Eventos sempre incluem `job_id` e `node`
    - Warnings são agrupados por nome de node
    - Nenhum logger global é utilizado

Limites explícitos:
    - Não executa nodes
    - Não persiste nada automaticamente
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from buildgraph.core.config.properties import PropertyMap
from buildgraph.core.traceability.report import BuildReport


@dataclass
class JobContext:
    """
    Contexto canônico de um job.

    Tasks leem propriedades e registram eventos via JobContext; o estado
    de build (tags, manifests) não vive aqui.
    """
    job_id: str
    created_at: datetime
    root_dir: Path
    properties: PropertyMap = field(default_factory=PropertyMap)
    meta: Dict[str, Any] = field(default_factory=dict)
    report: Optional[BuildReport] = None

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def create(
        cls,
        root_dir: Path,
        *,
        properties: Optional[Mapping[str, str]] = None,
        job_id: Optional[str] = None,
        report: Optional[BuildReport] = None,
    ) -> "JobContext":
        props = properties if isinstance(properties, PropertyMap) else PropertyMap(properties or {})
        return cls(
            job_id=job_id or uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            root_dir=Path(root_dir),
            properties=props,
            report=report,
        )

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, node: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "job_id": self.job_id,
            "node": node,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, node: str, message: str) -> None:
        if node not in self.warnings:
            self.warnings[node] = []
        self.warnings[node].append(message)

    def events_for(self, node: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("node") == node]
