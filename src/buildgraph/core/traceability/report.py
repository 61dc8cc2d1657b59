# src/buildgraph/core/traceability/report.py
"""
BuildReport v1: rastreabilidade de execuções do buildgraph.

O BuildReport consolida, de forma determinística e auditável:
    - metadados da execução (job)
    - identidade das entradas (hash da configuração, targets, triggers)
    - estado incremental de cada node
    - Event Log ordenado de eventos explícitos

Não confundir com `TempStorageManifest` (lista de arquivos de um output):
o report descreve o que aconteceu em uma execução, não o que foi produzido.

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O report é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps timezone-naive são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class BuildReport:
    """
    Registro de uma execução do engine.

    Campos principais:
        - job: metadados da execução (job_id, started_at, buildgraph_version)
        - inputs: hash da configuração, targets e triggers ativos
        - nodes: estado incremental de cada node, indexado por nome
        - events: Event Log ordenado
    """

    job: Dict[str, Any]
    inputs: Dict[str, Any]
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": dict(self.job),
            "inputs": dict(self.inputs),
            "nodes": {k: dict(v) for k, v in self.nodes.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildReport":
        return cls(
            job=dict(data.get("job", {})),
            inputs=dict(data.get("inputs", {})),
            nodes={k: dict(v) for k, v in (data.get("nodes", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def node_status(self, node_name: str) -> Optional[str]:
        return self.nodes.get(node_name, {}).get("status")


def create_report(
    *,
    job_id: str,
    started_at: datetime,
    buildgraph_version: str,
    config_hash: str,
    targets: Iterable[str] = (),
    triggers: Iterable[str] = (),
) -> BuildReport:
    """
    Cria o report inicial de uma execução.

    ⚠️ Importante: esta função **não emite eventos implicitamente**. O
    Event Log inicia vazio.
    """
    return BuildReport(
        job={
            "job_id": job_id,
            "started_at": _iso(started_at),
            "buildgraph_version": buildgraph_version,
        },
        inputs={
            "config_hash": config_hash,
            "targets": sorted(targets),
            "triggers": sorted(triggers),
        },
        nodes={},
        events=[],
    )


def add_event(
    report: BuildReport,
    *,
    event_type: str,
    ts: datetime,
    node: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    A ordem do Event Log reflete a ordem de chamada; eventos não são
    reordenados nem deduplicados.
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if node is not None:
        ev["node"] = node
    if payload is not None:
        ev["payload"] = payload
    report.events.append(ev)


def node_started(report: BuildReport, *, node: str, ts: datetime) -> None:
    """Marca o node como `running` e registra `node_started`."""
    report.nodes.setdefault(node, {})
    report.nodes[node].update(
        {
            "node": node,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(report, event_type="node_started", ts=ts, node=node)


def node_finished(
    report: BuildReport,
    *,
    node: str,
    ts: datetime,
    outputs: Optional[Dict[str, int]] = None,
) -> None:
    """
    Registra a conclusão bem-sucedida de um node.

    `outputs` mapeia cada tag de output ao número de arquivos arquivados.
    A duração é calculada a partir de `started_at` quando disponível.
    """
    n = report.nodes.setdefault(node, {"node": node})
    started_iso = n.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    n.update(
        {
            "status": "success",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "outputs": dict(outputs or {}),
        }
    )
    add_event(
        report,
        event_type="node_finished",
        ts=ts,
        node=node,
        payload={"duration_ms": n["duration_ms"]},
    )


def node_skipped(report: BuildReport, *, node: str, ts: datetime, reason: str) -> None:
    n = report.nodes.setdefault(node, {"node": node})
    n.update({"status": "skipped", "reason": reason})
    add_event(report, event_type="node_skipped", ts=ts, node=node, payload={"reason": reason})


def node_failed(
    report: BuildReport,
    *,
    node: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """Marca o node como `failed` com o ErrorPayload serializado."""
    n = report.nodes.setdefault(node, {"node": node})
    n.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "error": error,
        }
    )
    add_event(report, event_type="node_failed", ts=ts, node=node, payload={"error": error})


def save_report(report: BuildReport, path: Path) -> None:
    """Persiste o report em JSON (chaves ordenadas, diretórios criados)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_report(path: Path) -> BuildReport:
    return BuildReport.from_dict(json.loads(path.read_text(encoding="utf-8")))
