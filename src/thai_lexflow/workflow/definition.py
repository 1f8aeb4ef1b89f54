"""
Carregamento da ordem de processamento declarada em YAML/JSON.

Formato:

    name: <nome da ordem>
    steps:
      - name: <nome>
        function: <function_name>
        description: <texto>            # opcional
        depends_on: [<nome>, ...]       # opcional
        acceptable_failure: <bool>      # opcional, padrão false
        input:  {required: [...], optional: [...]}   # opcional
        output: {required: [...], optional: [...]}   # opcional

Erros de leitura ou de estrutura levantam `WorkflowDefinitionError`;
erros de grafo vêm de `build_order` (dependência desconhecida, ciclo).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import AbstractSet, Any, Dict, List, Mapping, Optional, Union

import yaml  # PyYAML

from thai_lexflow.core.engine.planner import ProcessingOrder, build_order
from thai_lexflow.core.exceptions import WorkflowDefinitionError
from thai_lexflow.core.pipeline.step import StepContract, StepDefinition


DEFAULT_ORDER_PATH = Path(__file__).resolve().with_name("processing_order.yaml")

# Steps pedidos por execução de legenda e de palavra na ordem canônica
SUBTITLE_STEPS = ("tokenize",)
WORD_STEPS = ("g2p", "phonetic", "orst", "gpt-meaning", "gpt_normalize")

_STEP_KEYS = frozenset({"name", "function", "description", "depends_on", "acceptable_failure", "input", "output"})
_CONTRACT_KEYS = frozenset({"required", "optional"})


def _invalid(message: str, source: str, **details: Any) -> WorkflowDefinitionError:
    return WorkflowDefinitionError(f"{source}: {message}", details={"source": source, **details})


def _read(path: Path) -> Any:
    if not path.exists():
        raise _invalid("file not found", str(path))
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise _invalid(f"unsupported format '{path.suffix}'", str(path))
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise _invalid(f"unreadable definition ({e})", str(path)) from e


def _names(value: Any, what: str, source: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _invalid(f"{what} must be a list of strings", source, field=what)
    return list(value)


def _contract(value: Any, what: str, source: str) -> StepContract:
    if value is None:
        return StepContract()
    if not isinstance(value, Mapping):
        raise _invalid(f"{what} must be a mapping", source, field=what)
    extra = sorted(set(value) - _CONTRACT_KEYS)
    if extra:
        raise _invalid(f"{what} has unknown keys {extra}", source, field=what)
    return StepContract(
        required=tuple(_names(value.get("required"), f"{what}.required", source)),
        optional=tuple(_names(value.get("optional"), f"{what}.optional", source)),
    )


def _step(raw: Any, index: int, source: str) -> StepDefinition:
    where = f"steps[{index}]"
    if not isinstance(raw, Mapping):
        raise _invalid(f"{where} must be a mapping", source, field=where)
    extra = sorted(set(raw) - _STEP_KEYS)
    if extra:
        raise _invalid(f"{where} has unknown keys {extra}", source, field=where)
    try:
        return StepDefinition(
            name=raw.get("name"),
            function_name=raw.get("function"),
            depends_on=tuple(_names(raw.get("depends_on"), f"{where}.depends_on", source)),
            description=str(raw.get("description") or ""),
            acceptable_failure=raw.get("acceptable_failure", False),
            input_contract=_contract(raw.get("input"), f"{where}.input", source),
            output_contract=_contract(raw.get("output"), f"{where}.output", source),
        )
    except (TypeError, ValueError) as e:
        raise _invalid(f"{where}: {e}", source, field=where) from e


def parse_processing_order(
    data: Any,
    *,
    source: str = "<memory>",
    known_functions: Optional[AbstractSet[str]] = None,
) -> ProcessingOrder:
    """Constrói uma `ProcessingOrder` a partir da forma declarativa (dict)."""
    if not isinstance(data, Mapping):
        raise _invalid("root must be a mapping", source)
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise _invalid("'name' must be a non-empty string", source, field="name")
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise _invalid("'steps' must be a non-empty list", source, field="steps")

    steps = [_step(raw, i, source) for i, raw in enumerate(raw_steps)]
    return build_order(name, steps, known_functions=known_functions)


def load_processing_order(
    path: Optional[Union[str, Path]] = None,
    *,
    known_functions: Optional[AbstractSet[str]] = None,
) -> ProcessingOrder:
    """
    Carrega e valida a ordem de processamento (por padrão, a do pacote).

    Raises:
        WorkflowDefinitionError: arquivo ausente, ilegível ou malformado.
        UnknownDependencyError / CyclicDependencyError / DuplicateStepError
        UnknownFunctionError: com `known_functions`, função não registrada.
    """
    file = Path(path) if path is not None else DEFAULT_ORDER_PATH
    return parse_processing_order(_read(file), source=str(file), known_functions=known_functions)


def order_path_from_config(config: Mapping[str, Any]) -> Optional[str]:
    pipeline: Dict[str, Any] = dict(config.get("pipeline") or {})
    return pipeline.get("order_path")
