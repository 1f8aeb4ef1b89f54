"""
Run Manifest v1 — rastreabilidade de execuções do pipeline de enriquecimento.

O Manifest consolida, de forma determinística e auditável:
    - metadados da execução (run_id, ordem executada, versão)
    - hashes das entradas (definição da ordem e configuração)
    - estado incremental de cada Step (estado final, tempos, erro)
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O estado de Step usa os valores de `StepState`
      (`running`, `succeeded`, `tolerated_failure`, `fatal_failure`)
    - O Manifest não conhece o executor; é alimentado por `ManifestObserver`

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas de execução
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


MANIFEST_VERSION = 1


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps naive são assumidos como UTC; os demais são convertidos."""
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
class RunManifest:
    """
    Registro de uma execução de ordem de processamento.

    Campos principais:
        - run: metadados (run_id, order_name, started_at, finished_at, status)
        - inputs: hashes da definição da ordem e da configuração
        - steps: estado por Step, indexado pelo nome do Step
        - events: Event Log ordenado

    Invariantes:
        - `steps` é sempre um dicionário indexado por nome de Step
        - `events` é sempre uma lista ordenada
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    @property
    def step_states(self) -> Dict[str, str]:
        return {name: s.get("state", "") for name, s in self.steps.items()}


def create_manifest(
    *,
    run_id: str,
    order_name: str,
    started_at: datetime,
    lexflow_version: str,
    order_hash: str,
    config_hash: Optional[str] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma execução.

    O Event Log inicia vazio: nenhum `run_started` é emitido aqui.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "order_name": order_name,
            "started_at": _iso(started_at),
            "lexflow_version": lexflow_version,
        },
        inputs={"order_hash": order_hash, "config_hash": config_hash},
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    step_name: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona exatamente um evento ao Event Log, preservando a ordem de chamada."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_name is not None:
        ev["step_name"] = step_name
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def step_started(manifest: RunManifest, *, step_name: str, function_name: str, ts: datetime) -> None:
    s = manifest.steps.setdefault(step_name, {})
    s.update(
        {
            "step_name": step_name,
            "function_name": function_name,
            "state": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="step_started", ts=ts, step_name=step_name,
              payload={"function_name": function_name})


def step_finished(
    manifest: RunManifest,
    *,
    step_name: str,
    ts: datetime,
    state: str,
    error: Optional[str] = None,
) -> None:
    """
    Registra o estado final de um Step (sucesso ou falha classificada).

    A duração é calculada a partir de `started_at`; sem início registrado,
    a duração é zero.
    """
    s = manifest.steps.setdefault(step_name, {"step_name": step_name})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    s.update(
        {
            "state": state,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
        }
    )
    payload: Dict[str, Any] = {"state": state, "duration_ms": s["duration_ms"]}
    if error is not None:
        s["error"] = error
        payload["error"] = error
    event_type = "step_finished" if error is None else "step_failed"
    add_event(manifest, event_type=event_type, ts=ts, step_name=step_name, payload=payload)


def run_finished(manifest: RunManifest, *, ts: datetime, status: str, error: Optional[str] = None) -> None:
    """Fecha a execução com `status` (`finished` ou `aborted`)."""
    manifest.run["finished_at"] = _iso(ts)
    manifest.run["status"] = status
    payload: Dict[str, Any] = {"status": status}
    if error is not None:
        manifest.run["error"] = error
        payload["error"] = error
    add_event(manifest, event_type=f"run_{status}", ts=ts, payload=payload)


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas, UTF-8)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    """
    Restaura um Manifest persistido.

    Raises:
        FileNotFoundError: arquivo inexistente.
        json.JSONDecodeError: JSON inválido.
    """
    return RunManifest.from_dict(json.loads(path.read_text(encoding="utf-8")))
