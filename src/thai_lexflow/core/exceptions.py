"""
thai_lexflow — Canonical Exceptions (v1)

Este módulo define a taxonomia de exceções tipadas do thai_lexflow.

Objetivo:
- Permitir que planner, executor e funções de backing levantem exceções
  semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos nas fronteiras críticas

Famílias:
- ConstructionError  → falhas na definição declarativa (detectadas uma vez)
- ContractViolation  → falhas de contrato (ver `core.contract.errors`)
- UnknownFunctionError → erro de programação, sempre fatal
- StepExecutionError / PreconditionError → classificadas pela tolerância do Step
- PipelineAbortedError → falha fatal propagada ao chamador

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; o `hint` indica onde corrigir.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class LexflowError(Exception):
    """Base das exceções internas do thai_lexflow."""

    default_hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        step_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.step_name = step_name
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint if hint is not None else self.default_hint

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Construção (definição declarativa)
# ---------------------------------------------------------------------------

class ConstructionError(LexflowError):
    """Ordem de processamento inválida; corrigir a lista declarativa de Steps."""

    default_hint = "Corrija a definição declarativa de Steps antes de executar o pipeline."


class DuplicateStepError(ConstructionError):
    """Dois Steps declarados com o mesmo nome."""


class UnknownDependencyError(ConstructionError):
    """
    Um Step referencia em `depends_on` um nome que não existe na ordem.

    Invariantes:
        - Um Step não pode depender de um Step inexistente
        - A ordem inteira é rejeitada nesta condição

    Limites explícitos:
        - Não tenta inferir ou criar Steps ausentes
    """


class CyclicDependencyError(ConstructionError):
    """
    O grafo de dependências contém um ciclo.

    O atributo `details["cycle"]` lista os nomes que formam o ciclo,
    na ordem em que foram percorridos.
    """


class UnknownStepError(ConstructionError):
    """Filtro de execução referencia um Step que não pertence à ordem."""


class WorkflowDefinitionError(ConstructionError):
    """Arquivo de definição (YAML/JSON) ilegível ou estruturalmente inválido."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

class UnknownFunctionError(LexflowError):
    """`function_name` sem função de backing registrada (erro de programação)."""

    default_hint = "Registre a função de backing no FunctionRegistry ou corrija `function_name`."


class StepExecutionError(LexflowError):
    """
    Envelope de qualquer erro levantado por uma função de backing.

    A causa original fica em `cause` (e em `__cause__`). O classificador
    decide, pela flag `acceptable_failure` do Step, se a falha é tolerada.
    """

    def __init__(
        self,
        message: str,
        *,
        step_name: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message, step_name=step_name, details=details, hint=hint)
        self.cause = cause


class PreconditionError(LexflowError):
    """Campo exigido pelo Step ausente ou vazio no contexto de entrada."""

    def __init__(self, message: str, *, step_name: Optional[str] = None, field: str = "") -> None:
        super().__init__(
            message,
            step_name=step_name,
            details={"field": field},
            hint=f"Forneça `{field}` no contexto ou execute antes o Step que o produz.",
        )
        self.field = field


class PipelineAbortedError(LexflowError):
    """
    Falha fatal de um Step: a execução foi interrompida.

    Campos:
    - step_name: Step que falhou
    - cause: exceção classificada como fatal
    - results: StepResults registrados até a falha (inclusive)
    """

    def __init__(self, *, step_name: str, cause: BaseException, results: List[Any]) -> None:
        super().__init__(
            f"Step '{step_name}' failed: {cause}",
            step_name=step_name,
            details={
                "exception_class": cause.__class__.__name__,
                "completed_steps": [r.step_name for r in results if r.success],
            },
            hint=getattr(cause, "hint", None),
        )
        self.cause = cause
        self.results = list(results)
