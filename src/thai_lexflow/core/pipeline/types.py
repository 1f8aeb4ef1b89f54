"""
Tipos canônicos do pipeline do thai_lexflow.

Este módulo define as estruturas e enums que padronizam a comunicação
entre executor, classificador de falhas e chamadores.

Componentes principais:
    - StepState       → máquina de estados por Step
    - StepResult      → resultado imutável de um Step
    - ExecutionResult → resultados + contexto final de uma execução

Princípios fundamentais:
    - Tipos são estáveis e inspecionáveis
    - Nenhuma lógica de execução vive neste módulo
    - StepResult nunca é persistido; serve a log e decisão do chamador

Limites explícitos:
    - Não executa Steps
    - Não planeja pipelines
    - Não decide políticas de execução
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class StepState(str, Enum):
    """
    Estados de um Step durante uma execução.

    Transições válidas:
        PENDING -> RUNNING -> {SUCCEEDED, TOLERATED_FAILURE, FATAL_FAILURE}

    Os valores são strings para facilitar serialização em eventos e
    no manifest.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    TOLERATED_FAILURE = "tolerated_failure"
    FATAL_FAILURE = "fatal_failure"

    @property
    def is_final(self) -> bool:
        return self in _FINAL_STATES

    def advance(self, target: "StepState") -> "StepState":
        """Retorna `target` se a transição for permitida; senão ValueError."""
        if target not in _TRANSITIONS.get(self, frozenset()):
            raise ValueError(f"illegal step transition: {self.value} -> {target.value}")
        return target


_FINAL_STATES: FrozenSet[StepState] = frozenset(
    {StepState.SUCCEEDED, StepState.TOLERATED_FAILURE, StepState.FATAL_FAILURE}
)

_TRANSITIONS: Dict[StepState, FrozenSet[StepState]] = {
    StepState.PENDING: frozenset({StepState.RUNNING}),
    StepState.RUNNING: _FINAL_STATES,
}


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um Step.

    Campos:
        - step_name: nome do Step executado
        - success: True apenas quando o Step terminou em SUCCEEDED
        - state: estado final do Step
        - error: erro capturado (a causa original, quando havia envelope)
        - output: saída bruta da função de backing, antes do merge

    Invariantes:
        - success == (state == SUCCEEDED)
        - error é None quando success é True
    """

    step_name: str
    success: bool
    state: StepState = StepState.SUCCEEDED
    error: Optional[BaseException] = None
    output: Any = None

    def __post_init__(self) -> None:
        if self.success != (self.state == StepState.SUCCEEDED):
            raise ValueError("StepResult.success must match a SUCCEEDED state")
        if self.success and self.error is not None:
            raise ValueError("successful StepResult cannot carry an error")

    def summary(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"step_name": self.step_name, "success": self.success, "state": self.state.value}
        if self.error is not None:
            out["error"] = f"{type(self.error).__name__}: {self.error}"
        return out


@dataclass(frozen=True)
class ExecutionResult:
    """Resultado agregado de uma execução: StepResults em ordem + contexto final."""

    results: Tuple[StepResult, ...]
    final_context: Any
    run_id: str = ""

    def result_for(self, step_name: str) -> Optional[StepResult]:
        for r in self.results:
            if r.step_name == step_name:
                return r
        return None

    @property
    def failed_steps(self) -> List[str]:
        return [r.step_name for r in self.results if not r.success]

    @property
    def succeeded_steps(self) -> List[str]:
        return [r.step_name for r in self.results if r.success]

    def summaries(self) -> List[Dict[str, Any]]:
        return [r.summary() for r in self.results]


@dataclass
class StepTracker:
    """Estado corrente de cada Step de uma execução (uso interno do executor)."""

    states: Dict[str, StepState] = field(default_factory=dict)

    def start(self, step_name: str) -> None:
        current = self.states.get(step_name, StepState.PENDING)
        self.states[step_name] = current.advance(StepState.RUNNING)

    def finish(self, step_name: str, state: StepState) -> None:
        self.states[step_name] = self.states[step_name].advance(state)
