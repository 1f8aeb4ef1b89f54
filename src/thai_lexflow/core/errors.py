"""
thai_lexflow — Canonical Error Payloads (v1)

Este módulo converte exceções em payloads de erro serializáveis e
acionáveis, e os formata para exibição ao operador.

Erros devem ser:
- explícitos
- serializáveis
- acionáveis (nomeiam o Step e a causa, sugerem onde corrigir)

Falhas toleradas (ex.: palavra ausente do dicionário) são resultados
esperados e recebem severidade `info`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from thai_lexflow.core.config.errors import ConfigError
from thai_lexflow.core.contract.errors import (
    ContextValidationError,
    ContractViolation,
    CorruptContext,
    InvalidStepOutput,
    StepContractError,
)
from thai_lexflow.core.contract.schema import ContractIssue
from thai_lexflow.core.exceptions import (
    ConstructionError,
    CyclicDependencyError,
    DuplicateStepError,
    LexflowError,
    PipelineAbortedError,
    PreconditionError,
    StepExecutionError,
    UnknownDependencyError,
    UnknownFunctionError,
    UnknownStepError,
    WorkflowDefinitionError,
)


SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e humana
    - details: dados estruturados para diagnóstico
    - hint: ação sugerida ao operador
    - severity: `error`, `warning` ou `info`
    - step_name: Step em que a falha ocorreu, quando houver
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    severity: str = SEVERITY_ERROR
    step_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Construção
CONSTRUCTION_DUPLICATE_STEP = "CONSTRUCTION_DUPLICATE_STEP"
CONSTRUCTION_UNKNOWN_DEPENDENCY = "CONSTRUCTION_UNKNOWN_DEPENDENCY"
CONSTRUCTION_CYCLIC_DEPENDENCY = "CONSTRUCTION_CYCLIC_DEPENDENCY"
CONSTRUCTION_UNKNOWN_STEP = "CONSTRUCTION_UNKNOWN_STEP"
CONSTRUCTION_INVALID_WORKFLOW = "CONSTRUCTION_INVALID_WORKFLOW"
CONSTRUCTION_ERROR = "CONSTRUCTION_ERROR"

# Contrato
CONTRACT_INVALID_CONTEXT = "CONTRACT_INVALID_CONTEXT"
CONTRACT_INVALID_STEP_OUTPUT = "CONTRACT_INVALID_STEP_OUTPUT"
CONTRACT_CORRUPT_CONTEXT = "CONTRACT_CORRUPT_CONTEXT"
CONTRACT_STEP_OUTPUT_SCHEMA = "CONTRACT_STEP_OUTPUT_SCHEMA"
CONTRACT_VIOLATION = "CONTRACT_VIOLATION"

# Execução
ENGINE_UNKNOWN_FUNCTION = "ENGINE_UNKNOWN_FUNCTION"
ENGINE_PRECONDITION_FAILED = "ENGINE_PRECONDITION_FAILED"
ENGINE_STEP_FAILED = "ENGINE_STEP_FAILED"
ENGINE_PIPELINE_ABORTED = "ENGINE_PIPELINE_ABORTED"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"

# Configuração
CONFIG_INVALID = "CONFIG_INVALID"

# Ordem importa: subclasses antes das bases.
_TYPE_CODES: Tuple[Tuple[Type[BaseException], str], ...] = (
    (DuplicateStepError, CONSTRUCTION_DUPLICATE_STEP),
    (UnknownDependencyError, CONSTRUCTION_UNKNOWN_DEPENDENCY),
    (CyclicDependencyError, CONSTRUCTION_CYCLIC_DEPENDENCY),
    (UnknownStepError, CONSTRUCTION_UNKNOWN_STEP),
    (WorkflowDefinitionError, CONSTRUCTION_INVALID_WORKFLOW),
    (ConstructionError, CONSTRUCTION_ERROR),
    (ContextValidationError, CONTRACT_INVALID_CONTEXT),
    (InvalidStepOutput, CONTRACT_INVALID_STEP_OUTPUT),
    (CorruptContext, CONTRACT_CORRUPT_CONTEXT),
    (StepContractError, CONTRACT_STEP_OUTPUT_SCHEMA),
    (ContractViolation, CONTRACT_VIOLATION),
    (UnknownFunctionError, ENGINE_UNKNOWN_FUNCTION),
    (PreconditionError, ENGINE_PRECONDITION_FAILED),
    (StepExecutionError, ENGINE_STEP_FAILED),
    (PipelineAbortedError, ENGINE_PIPELINE_ABORTED),
    (ConfigError, CONFIG_INVALID),
)


def error_type_for(exc: BaseException) -> str:
    for cls, code in _TYPE_CODES:
        if isinstance(exc, cls):
            return code
    return ENGINE_EXECUTION_ERROR


def exception_to_error(exc: BaseException, *, tolerated: bool = False) -> ErrorPayload:
    """
    Converte uma exceção em `ErrorPayload`.

    Regras:
    - LexflowError: message/details/hint/step_name vêm da exceção
    - PipelineAbortedError: `details.cause` carrega o payload da causa
    - Outras exceções: ENGINE_EXECUTION_ERROR sem stack trace
    - tolerated=True rebaixa a severidade para `info`
    """
    severity = SEVERITY_INFO if tolerated else SEVERITY_ERROR

    if isinstance(exc, PipelineAbortedError):
        cause = exception_to_error(exc.cause)
        details = dict(exc.details)
        details["cause"] = cause.to_dict()
        return ErrorPayload(
            type=ENGINE_PIPELINE_ABORTED,
            message=exc.message,
            details=details,
            hint=cause.hint or exc.hint,
            severity=severity,
            step_name=exc.step_name,
        )

    if isinstance(exc, LexflowError):
        details = dict(exc.details)
        if isinstance(exc, StepExecutionError) and exc.cause is not None:
            details.setdefault("exception_class", type(exc.cause).__name__)
        return ErrorPayload(
            type=error_type_for(exc),
            message=exc.message or "Execution error",
            details=details,
            hint=exc.hint,
            severity=severity,
            step_name=exc.step_name,
        )

    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Unexpected error during execution",
        details={"exception_class": type(exc).__name__},
        hint="Verifique o log técnico e a definição do pipeline.",
        severity=severity,
    )


def issues_to_errors(issues: Iterable[ContractIssue], *, field_prefix: str = "") -> List[ErrorPayload]:
    """Um payload por issue de contrato, com `details.field` no formato pontuado."""
    out: List[ErrorPayload] = []
    for issue in issues:
        path = f"{field_prefix}.{issue.path}" if field_prefix and issue.path else (field_prefix or issue.path)
        hint = "Forneça este campo." if issue.code == "missing" else None
        out.append(
            ErrorPayload(
                type=CONTRACT_VIOLATION,
                message=issue.message,
                details={"field": path, "code": issue.code, "present": issue.code != "missing"},
                hint=hint,
            )
        )
    return out


def format_error_for_display(payload: ErrorPayload) -> str:
    """
    Mensagem de uma linha para o operador.

    Formato: `[step] message (Missing) - hint`, omitindo as partes ausentes.
    """
    parts: List[str] = []
    if payload.step_name:
        parts.append(f"[{payload.step_name}]")
    field_name = payload.details.get("field")
    parts.append(f"{field_name}: {payload.message}" if field_name else payload.message)
    display = " ".join(parts)
    if payload.details.get("present") is False:
        display += " (Missing)"
    if payload.hint:
        display += f" - {payload.hint}"
    return display
