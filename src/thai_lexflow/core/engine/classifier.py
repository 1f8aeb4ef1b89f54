"""
Classificador de falhas de Step.

Decide, para um erro levantado durante um Step, se a execução registra e
segue (TOLERATED_FAILURE) ou registra e aborta (FATAL_FAILURE).

Regras:
    - Violações de contrato e funções desconhecidas são sempre fatais:
      indicam defeito na função de backing ou uso indevido pelo chamador
    - Erros de execução e de pré-condição seguem a flag
      `acceptable_failure` do Step
    - Qualquer outro erro é fatal
"""

from __future__ import annotations

from typing import Optional

from thai_lexflow.core.contract.errors import ContractViolation
from thai_lexflow.core.exceptions import PreconditionError, StepExecutionError, UnknownFunctionError
from thai_lexflow.core.pipeline.step import StepDefinition
from thai_lexflow.core.pipeline.types import StepState


def classify_failure(step: StepDefinition, error: BaseException) -> StepState:
    if isinstance(error, (ContractViolation, UnknownFunctionError)):
        return StepState.FATAL_FAILURE
    if isinstance(error, (StepExecutionError, PreconditionError)):
        return StepState.TOLERATED_FAILURE if step.acceptable_failure else StepState.FATAL_FAILURE
    return StepState.FATAL_FAILURE


def underlying_cause(error: BaseException) -> BaseException:
    """Causa original de um `StepExecutionError`; o próprio erro nos demais casos."""
    if isinstance(error, StepExecutionError):
        cause: Optional[BaseException] = error.cause
        if cause is not None:
            return cause
    return error
