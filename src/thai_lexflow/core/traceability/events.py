"""
Observadores de eventos de execução.

O executor notifica um observador injetado, de forma síncrona, a cada
transição relevante: `on_event(stage, payload)`. A implementação é
escolhida pelo chamador; o core nunca fixa um destino de log.

Estágios emitidos:
    - run_started, run_finished, run_aborted
    - step_started, step_succeeded, step_tolerated, step_failed

Todo payload inclui `run_id`; eventos de Step incluem `step_name`.

Implementações:
    - NullObserver       → descarta eventos (padrão)
    - RecordingObserver  → acumula eventos estruturados em memória
    - LoggingObserver    → encaminha para `logging` (toleradas em DEBUG, fatais em ERROR)
    - CompositeObserver  → repassa para vários observadores, em ordem
    - ManifestObserver   → alimenta um `RunManifest`

Limites explícitos:
    - Observadores não alteram o fluxo de execução
    - Erros levantados por um observador propagam ao executor
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .manifest import RunManifest, create_manifest, add_event, run_finished, step_finished, step_started


RUN_STARTED = "run_started"
RUN_FINISHED = "run_finished"
RUN_ABORTED = "run_aborted"
STEP_STARTED = "step_started"
STEP_SUCCEEDED = "step_succeeded"
STEP_TOLERATED = "step_tolerated"
STEP_FAILED = "step_failed"

STAGES: Tuple[str, ...] = (
    RUN_STARTED,
    STEP_STARTED,
    STEP_SUCCEEDED,
    STEP_TOLERATED,
    STEP_FAILED,
    RUN_FINISHED,
    RUN_ABORTED,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventObserver(Protocol):
    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        ...


class NullObserver:
    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        return None


class RecordingObserver:
    """
    Acumula eventos estruturados em `events`.

    Cada evento é um dict com `stage`, `timestamp` (ISO, UTC) e os campos
    do payload.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self.events: List[Dict[str, Any]] = []
        self._clock = clock

    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        event: Dict[str, Any] = {"stage": stage, "timestamp": self._clock().isoformat()}
        event.update(payload)
        self.events.append(event)

    @property
    def stages(self) -> List[str]:
        return [e["stage"] for e in self.events]

    def for_step(self, step_name: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("step_name") == step_name]


_LEVELS: Dict[str, int] = {
    RUN_STARTED: logging.INFO,
    STEP_STARTED: logging.DEBUG,
    STEP_SUCCEEDED: logging.INFO,
    STEP_TOLERATED: logging.DEBUG,
    STEP_FAILED: logging.ERROR,
    RUN_FINISHED: logging.INFO,
    RUN_ABORTED: logging.ERROR,
}


class LoggingObserver:
    """Encaminha eventos para um logger da stdlib."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("thai_lexflow.engine")

    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        level = _LEVELS.get(stage, logging.INFO)
        if not self.logger.isEnabledFor(level):
            return
        step = payload.get("step_name")
        where = f"[{payload.get('run_id', '-')}]" + (f" step={step}" if step else "")
        error = payload.get("error")
        if error:
            self.logger.log(level, "%s %s: %s", where, stage, error)
        else:
            self.logger.log(level, "%s %s", where, stage)


class CompositeObserver:
    def __init__(self, observers: Iterable[EventObserver]) -> None:
        self.observers: Tuple[EventObserver, ...] = tuple(observers)

    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        for observer in self.observers:
            observer.on_event(stage, payload)


class ManifestObserver:
    """
    Constrói um `RunManifest` por execução a partir dos eventos do executor.

    Cada `run_started` (que deve carregar `run_id`, `order_name` e
    `order_hash`) abre um Manifest em `manifests[run_id]`; os eventos
    seguintes são roteados pelo `run_id` do payload, então execuções
    concorrentes que compartilham a instância não se misturam.
    `manifest` é o Manifest da execução iniciada por último.
    """

    def __init__(
        self,
        *,
        config_hash: Optional[str] = None,
        lexflow_version: Optional[str] = None,
        clock: Clock = utc_now,
    ) -> None:
        if lexflow_version is None:
            from thai_lexflow import __version__ as lexflow_version
        self.config_hash = config_hash
        self.lexflow_version = lexflow_version
        self.manifests: Dict[str, RunManifest] = {}
        self._last_run_id: Optional[str] = None
        self._clock = clock

    @property
    def manifest(self) -> Optional[RunManifest]:
        if self._last_run_id is None:
            return None
        return self.manifests[self._last_run_id]

    def _require_manifest(self, stage: str, run_id: Any) -> RunManifest:
        manifest = self.manifests.get(run_id)
        if manifest is None:
            raise RuntimeError(f"ManifestObserver received '{stage}' for run {run_id!r} before '{RUN_STARTED}'")
        return manifest

    def on_event(self, stage: str, payload: Mapping[str, Any]) -> None:
        ts = self._clock()
        run_id = payload["run_id"]
        if stage == RUN_STARTED:
            manifest = create_manifest(
                run_id=run_id,
                order_name=payload.get("order_name", ""),
                started_at=ts,
                lexflow_version=self.lexflow_version,
                order_hash=payload.get("order_hash", ""),
                config_hash=self.config_hash,
            )
            add_event(manifest, event_type=RUN_STARTED, ts=ts, payload={"steps": list(payload.get("steps", []))})
            self.manifests[run_id] = manifest
            self._last_run_id = run_id
            return

        manifest = self._require_manifest(stage, run_id)
        step = payload.get("step_name")
        if stage == STEP_STARTED:
            step_started(manifest, step_name=step, function_name=payload.get("function_name", ""), ts=ts)
        elif stage == STEP_SUCCEEDED:
            step_finished(manifest, step_name=step, ts=ts, state=payload.get("state", "succeeded"))
        elif stage in (STEP_TOLERATED, STEP_FAILED):
            step_finished(manifest, step_name=step, ts=ts, state=payload["state"], error=payload.get("error"))
        elif stage == RUN_FINISHED:
            run_finished(manifest, ts=ts, status="finished")
        elif stage == RUN_ABORTED:
            run_finished(manifest, ts=ts, status="aborted", error=payload.get("error"))


PACKAGE_LOGGER = "thai_lexflow"


def apply_log_level(level: str) -> logging.Logger:
    """Aplica `engine.log_level` ao logger do pacote; módulos e `LoggingObserver` herdam o nível."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    return logger


def build_observer(kind: str, *, logger: Optional[logging.Logger] = None) -> EventObserver:
    """Observador correspondente a `engine.observer` da configuração."""
    if kind == "none":
        return NullObserver()
    if kind == "logging":
        return LoggingObserver(logger)
    if kind == "recording":
        return RecordingObserver()
    raise ValueError(f"unknown observer kind: {kind!r}")
