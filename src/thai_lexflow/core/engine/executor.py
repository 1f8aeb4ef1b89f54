"""
Executor de ordens de processamento do thai_lexflow.

Executa a sequência produzida por `schedule` contra um contexto,
estritamente em sequência, validando cada fronteira:

    1. resolve `function_name` no FunctionRegistry (UnknownFunctionError)
    2. verifica o contrato de entrada do Step e os campos exigidos pela
       função (PreconditionError nomeando o campo)
    3. chama a função com um recorte copiado do contexto; qualquer erro
       vira StepExecutionError com a causa preservada
    4. verifica o formato da saída bruta (InvalidStepOutput)
    5. faz merge funcional apenas dos campos declarados em `produces`
    6. revalida o contexto inteiro contra o schema canônico (CorruptContext)
    7. verifica o contrato de saída do Step (StepContractError)
    8. registra StepResult de sucesso

Falhas são classificadas por `classify_failure`: toleradas viram dado
(StepResult com success=False) e a execução segue; fatais registram o
StepResult e levantam `PipelineAbortedError`. Quando a função chegou a
retornar, o StepResult de falha guarda a saída bruta em `output`.

Invariantes:
    - O contexto de entrada nunca é mutado
    - Nenhum Step roda depois de uma falha fatal
    - O contexto final é sempre um `ProcessedContext` validado

Limites explícitos:
    - Não repete Steps (sem retry/backoff)
    - Não persiste resultados
"""

from __future__ import annotations

import inspect
import time
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from thai_lexflow.core.config.hashing import compute_order_hash
from thai_lexflow.core.contract.context import parse_context, validate_context
from thai_lexflow.core.contract.errors import CorruptContext, InvalidStepOutput, StepContractError
from thai_lexflow.core.contract.schema import ContractIssue, is_blank
from thai_lexflow.core.contract.sealed import SeededInput, make_processed_context
from thai_lexflow.core.exceptions import (
    PipelineAbortedError,
    PreconditionError,
    StepExecutionError,
    UnknownFunctionError,
)
from thai_lexflow.core.pipeline.context import context_slice, merge_context
from thai_lexflow.core.pipeline.registry import BackingFunction, FunctionRegistry
from thai_lexflow.core.pipeline.step import StepDefinition
from thai_lexflow.core.pipeline.types import ExecutionResult, StepResult, StepState, StepTracker
from thai_lexflow.core.traceability import events as ev
from thai_lexflow.core.traceability.events import EventObserver, NullObserver

from .classifier import classify_failure, underlying_cause
from .planner import ProcessingOrder, schedule


FunctionsArg = Union[FunctionRegistry, Mapping[str, BackingFunction], List[BackingFunction]]


def _as_registry(functions: FunctionsArg) -> FunctionRegistry:
    if isinstance(functions, FunctionRegistry):
        return functions
    return FunctionRegistry.of(functions)


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def _describe(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


class Executor:
    """Executor sequencial de uma `ProcessingOrder`."""

    def __init__(
        self,
        order: ProcessingOrder,
        functions: FunctionsArg,
        observer: Optional[EventObserver] = None,
    ) -> None:
        if not isinstance(order, ProcessingOrder):
            raise TypeError("order must be a ProcessingOrder (use build_order)")
        self.order = order
        self.functions = _as_registry(functions)
        self.observer: EventObserver = observer if observer is not None else NullObserver()
        self._order_hash = compute_order_hash(order)

    # ------------------------------------------------------------------
    # Fronteiras
    # ------------------------------------------------------------------

    def _resolve(self, step: StepDefinition) -> BackingFunction:
        try:
            return self.functions.get(step.function_name)
        except UnknownFunctionError as e:
            raise UnknownFunctionError(
                f"Step '{step.name}' references unknown function '{step.function_name}'",
                step_name=step.name,
                details=e.details,
            ) from None

    @staticmethod
    def _check_preconditions(step: StepDefinition, fn: BackingFunction, context: Mapping[str, Any]) -> None:
        missing = step.input_contract.first_missing(context)
        if missing is None:
            for name in fn.requires:
                if is_blank(context.get(name)):
                    missing = name
                    break
        if missing is not None:
            raise PreconditionError(
                f"Step '{step.name}' requires '{missing}' to be present and non-blank",
                step_name=step.name,
                field=missing,
            )

    @staticmethod
    async def _invoke(step: StepDefinition, fn: BackingFunction, context: Mapping[str, Any]) -> Any:
        fields = tuple(dict.fromkeys(fn.reads + step.input_contract.fields))
        arg = context_slice(context, fields)
        try:
            raw = fn.call(arg)
            if inspect.isawaitable(raw):
                raw = await raw
        except StepExecutionError as e:
            if e.step_name is None:
                e.step_name = step.name
            raise
        except Exception as e:
            raise StepExecutionError(
                f"Step '{step.name}' failed in '{fn.name}': {e}",
                step_name=step.name,
                cause=e,
                details={"function_name": fn.name, "exception_class": type(e).__name__},
            ) from e
        return raw

    @staticmethod
    def _produced_fields(step: StepDefinition, fn: BackingFunction, raw: Any) -> Dict[str, Any]:
        issues = fn.check_output(raw)
        if issues:
            raise InvalidStepOutput(
                f"Function '{fn.name}' returned malformed output for step '{step.name}'",
                step_name=step.name,
                issues=issues,
            )
        produced = dict(fn.to_fields(raw))
        extra = [k for k in produced if k not in fn.produces]
        if extra:
            raise InvalidStepOutput(
                f"Function '{fn.name}' produced undeclared fields: {extra}",
                step_name=step.name,
                issues=[ContractIssue(k, "field not declared in produces", code="unrecognized_key") for k in extra],
            )
        return produced

    def _apply_output(
        self, step: StepDefinition, fn: BackingFunction, context: Dict[str, Any], raw: Any
    ) -> Dict[str, Any]:
        produced = self._produced_fields(step, fn, raw)

        merged = merge_context(context, produced)
        checked = validate_context(merged)
        if not checked.ok:
            raise CorruptContext(
                f"Context became invalid after step '{step.name}': {checked.describe()}",
                step_name=step.name,
                issues=checked.issues,
            )

        issues = step.output_contract.issues_for(checked.value or {})
        if issues:
            raise StepContractError(
                f"Step '{step.name}' output does not satisfy its contract",
                step_name=step.name,
                issues=issues,
            )
        return checked.value or {}

    async def _run_step(self, step: StepDefinition, context: Dict[str, Any], outputs: Dict[str, Any]) -> Dict[str, Any]:
        """Executa um Step; a saída bruta fica em `outputs[step.name]` assim que a função retorna."""
        fn = self._resolve(step)
        self._check_preconditions(step, fn, context)
        raw = await self._invoke(step, fn, context)
        outputs[step.name] = raw
        return self._apply_output(step, fn, context, raw)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def _emit(self, stage: str, **payload: Any) -> None:
        self.observer.on_event(stage, payload)

    async def run(
        self,
        initial_context: Union[SeededInput, Mapping[str, Any]],
        step_filter: Optional[Iterable[str]] = None,
    ) -> ExecutionResult:
        """
        Executa a ordem (ou o subconjunto filtrado) contra `initial_context`.

        Raises:
            ContextValidationError: contexto inicial inválido (nenhum Step roda).
            UnknownStepError: filtro com nome desconhecido.
            PipelineAbortedError: falha fatal de um Step.
        """
        if isinstance(initial_context, SeededInput):
            context = initial_context.as_dict()
        else:
            context = parse_context(initial_context, where="initial context")
        plan = schedule(self.order, step_filter)

        run_id = uuid.uuid4().hex
        tracker = StepTracker({s.name: StepState.PENDING for s in plan})
        results: List[StepResult] = []
        outputs: Dict[str, Any] = {}
        self._emit(
            ev.RUN_STARTED,
            run_id=run_id,
            order_name=self.order.name,
            order_hash=self._order_hash,
            steps=[s.name for s in plan],
        )

        for step in plan:
            tracker.start(step.name)
            self._emit(ev.STEP_STARTED, run_id=run_id, step_name=step.name, function_name=step.function_name)
            started = time.perf_counter()
            try:
                context = await self._run_step(step, context, outputs)
            except Exception as exc:
                state = classify_failure(step, exc)
                tracker.finish(step.name, state)
                results.append(
                    StepResult(
                        step.name,
                        success=False,
                        state=state,
                        error=underlying_cause(exc),
                        output=outputs.get(step.name),
                    )
                )

                detail = dict(
                    run_id=run_id,
                    step_name=step.name,
                    state=state.value,
                    error=_describe(exc),
                    error_type=type(exc).__name__,
                    elapsed_ms=_elapsed_ms(started),
                )
                if state is StepState.TOLERATED_FAILURE:
                    self._emit(ev.STEP_TOLERATED, **detail)
                    continue

                self._emit(ev.STEP_FAILED, **detail)
                self._emit(ev.RUN_ABORTED, run_id=run_id, order_name=self.order.name,
                           step_name=step.name, error=detail["error"])
                raise PipelineAbortedError(step_name=step.name, cause=exc, results=results) from exc

            tracker.finish(step.name, StepState.SUCCEEDED)
            results.append(StepResult(step.name, success=True, output=outputs[step.name]))
            self._emit(
                ev.STEP_SUCCEEDED,
                run_id=run_id,
                step_name=step.name,
                state=StepState.SUCCEEDED.value,
                elapsed_ms=_elapsed_ms(started),
            )

        final = make_processed_context(context)
        self._emit(
            ev.RUN_FINISHED,
            run_id=run_id,
            order_name=self.order.name,
            results=[r.summary() for r in results],
        )
        return ExecutionResult(results=tuple(results), final_context=final, run_id=run_id)


async def execute(
    order: ProcessingOrder,
    initial_context: Union[SeededInput, Mapping[str, Any]],
    step_filter: Optional[Iterable[str]] = None,
    *,
    functions: FunctionsArg,
    observer: Optional[EventObserver] = None,
) -> ExecutionResult:
    """Atalho para `Executor(order, functions, observer).run(...)`."""
    return await Executor(order, functions, observer).run(initial_context, step_filter)
