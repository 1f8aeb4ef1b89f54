"""
Definição canônica de Step do thai_lexflow.

Um Step é a menor unidade declarativa do pipeline: um nome, a função de
backing que o executa, suas dependências e os contratos de entrada e
saída que o contexto deve satisfazer antes e depois da execução.

Steps são dados, não código: são definidos uma vez na inicialização
(tipicamente a partir de YAML) e nunca mutados em runtime.

Princípios fundamentais:
    - Steps não conhecem o executor nem o planner
    - Steps não controlam ordem de execução
    - Contratos de Step são abertos: campos canônicos extras são aceitos;
      o fechamento do contexto é responsabilidade do schema canônico

Invariantes:
    - `name` e `function_name` são strings não vazias
    - `depends_on` preserva a ordem declarada e não repete nomes
    - Campos citados em contratos pertencem ao schema canônico

Limites explícitos:
    - Não valida o grafo de dependências (ver `engine.planner`)
    - Não executa funções de backing
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from thai_lexflow.core.contract.context import CONTEXT_FIELDS, PIPELINE_CONTEXT_SCHEMA
from thai_lexflow.core.contract.schema import ContractIssue, is_blank


def _as_name_tuple(values: Optional[Iterable[str]], what: str) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise TypeError(f"{what} must be a sequence of names, not a string")
    return tuple(values)


@dataclass(frozen=True)
class StepContract:
    """
    Contrato específico de um Step sobre o contexto.

    - required: campos que devem estar presentes (strings não vazias)
    - optional: campos verificados por tipo apenas quando presentes
    """

    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        required = _as_name_tuple(self.required, "required")
        optional = _as_name_tuple(self.optional, "optional")
        object.__setattr__(self, "required", required)
        object.__setattr__(self, "optional", optional)

        unknown = sorted(set(required + optional) - CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"contract references fields outside the pipeline context: {unknown}")
        overlap = sorted(set(required) & set(optional))
        if overlap:
            raise ValueError(f"fields declared both required and optional: {overlap}")

    @property
    def fields(self) -> Tuple[str, ...]:
        return self.required + self.optional

    def first_missing(self, context: Mapping[str, Any]) -> Optional[str]:
        for name in self.required:
            if name not in context or is_blank(context[name]):
                return name
        return None

    def issues_for(self, context: Mapping[str, Any]) -> List[ContractIssue]:
        issues: List[ContractIssue] = []
        for name in self.required:
            if name not in context:
                issues.append(ContractIssue(name, "required field is missing", code="missing"))
                continue
            if is_blank(context[name]):
                issues.append(ContractIssue(name, "required field is blank", code="too_small"))
                continue
            issues.extend(PIPELINE_CONTEXT_SCHEMA.get(name).type.check(context[name], name))
        for name in self.optional:
            if name in context:
                issues.extend(PIPELINE_CONTEXT_SCHEMA.get(name).type.check(context[name], name))
        return issues


@dataclass(frozen=True)
class StepDefinition:
    """
    Step declarativo de uma ordem de processamento.

    Campos:
        - name: identificador único na ordem
        - function_name: nome da função de backing (FunctionRegistry)
        - depends_on: Steps que devem executar (ou falhar de forma tolerada) antes
        - description: texto livre
        - acceptable_failure: se True, erro de execução é registrado e a run segue
        - input_contract / output_contract: contratos antes/depois do Step
    """

    name: str
    function_name: str
    depends_on: Tuple[str, ...] = ()
    description: str = ""
    acceptable_failure: bool = False
    input_contract: StepContract = field(default_factory=StepContract)
    output_contract: StepContract = field(default_factory=StepContract)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("step name must be a non-empty string")
        if not isinstance(self.function_name, str) or not self.function_name.strip():
            raise ValueError(f"step '{self.name}': function_name must be a non-empty string")

        deps = _as_name_tuple(self.depends_on, "depends_on")
        if len(set(deps)) != len(deps):
            raise ValueError(f"step '{self.name}' declares a dependency twice")
        object.__setattr__(self, "depends_on", deps)

        if not isinstance(self.acceptable_failure, bool):
            raise TypeError(f"step '{self.name}': acceptable_failure must be boolean")
