"""Erros canônicos do domínio de Contract (thai_lexflow).

O contexto do pipeline é validado em toda fronteira de Step.
Violações de contrato são sempre fatais para a execução corrente:
indicam bug em função de backing ou uso indevido pelo chamador.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from thai_lexflow.core.exceptions import LexflowError


class ContractViolation(LexflowError):
    """Erro base do domínio de contrato.

    `issues` guarda a lista de `ContractIssue` que originou a violação.
    """

    def __init__(
        self,
        message: str,
        *,
        step_name: Optional[str] = None,
        issues: Sequence[Any] = (),
        hint: Optional[str] = None,
    ) -> None:
        issue_list = list(issues)
        super().__init__(
            message,
            step_name=step_name,
            details={"issues": [i.to_dict() for i in issue_list]},
            hint=hint,
        )
        self.issues = issue_list


class ContextValidationError(ContractViolation):
    """Contexto (entrada ou saída) não satisfaz o schema canônico."""


class InvalidStepOutput(ContractViolation):
    """Saída bruta da função de backing com formato inesperado."""

    default_hint = "A função de backing está quebrada; corrija-a antes de reexecutar."


class CorruptContext(ContractViolation):
    """Contexto deixou de ser válido após o merge de um Step."""


class StepContractError(ContractViolation):
    """Contexto após o Step não satisfaz o `output_contract` declarado."""
