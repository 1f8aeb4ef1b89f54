"""
Planejador da ordem de processamento.

Este módulo valida a estrutura de uma lista declarativa de Steps e
produz uma sequência linear determinística pronta para o executor.

O planner opera exclusivamente em nível estrutural, analisando:
    - nomes de Steps (únicos, não vazios)
    - dependências declaradas (resolvíveis)
    - formação de ciclos
    - funções de backing conhecidas (quando o conjunto é fornecido)

Decisões arquiteturais:
    - Validação uma única vez, em `build_order`; a ordem é confiável depois
    - Ciclos detectados por DFS com coloração branco/cinza/preto
    - Ordenação por DFS recursiva com memo `visited`: dependências primeiro
      (na ordem declarada), raízes na ordem de declaração
    - O filtro inclui o fecho transitivo de dependências dos Steps pedidos;
      o guard de cada função decide se há trabalho a fazer

Invariantes:
    - Nenhum Step aparece antes de suas dependências
    - Cada Step aparece no máximo uma vez
    - A mesma ordem e o mesmo filtro produzem sempre a mesma sequência

Limites explícitos:
    - Não executa Steps
    - Não registra eventos de rastreabilidade
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from thai_lexflow.core.exceptions import (
    CyclicDependencyError,
    DuplicateStepError,
    UnknownDependencyError,
    UnknownFunctionError,
    UnknownStepError,
)
from thai_lexflow.core.pipeline.step import StepDefinition


_WHITE, _GRAY, _BLACK = 0, 1, 2


def _index_steps(steps: Sequence[StepDefinition]) -> Dict[str, StepDefinition]:
    by_name: Dict[str, StepDefinition] = {}
    for step in steps:
        if not isinstance(step, StepDefinition):
            raise TypeError(f"expected StepDefinition, got {type(step).__name__}")
        if step.name in by_name:
            raise DuplicateStepError(
                f"Duplicate step name: {step.name}",
                step_name=step.name,
                details={"step_name": step.name},
            )
        by_name[step.name] = step
    return by_name


def _check_dependencies(steps: Sequence[StepDefinition], by_name: Dict[str, StepDefinition]) -> None:
    for step in steps:
        for dep in step.depends_on:
            if dep not in by_name:
                raise UnknownDependencyError(
                    f"Step '{step.name}' depends on unknown step '{dep}'",
                    step_name=step.name,
                    details={"step_name": step.name, "dependency": dep},
                )


def find_cycle(steps: Sequence[StepDefinition]) -> Optional[List[str]]:
    """
    Procura um ciclo no grafo de dependências.

    Retorna os nomes do ciclo na ordem percorrida, repetindo o primeiro
    nome no final (ex.: ["a", "b", "a"]), ou None quando o grafo é acíclico.
    Assume dependências já resolvidas.
    """
    by_name = {s.name: s for s in steps}
    color: Dict[str, int] = {s.name: _WHITE for s in steps}
    path: List[str] = []

    def visit(name: str) -> Optional[List[str]]:
        color[name] = _GRAY
        path.append(name)
        for dep in by_name[name].depends_on:
            if color[dep] == _GRAY:
                return path[path.index(dep):] + [dep]
            if color[dep] == _WHITE:
                found = visit(dep)
                if found is not None:
                    return found
        path.pop()
        color[name] = _BLACK
        return None

    for step in steps:
        if color[step.name] == _WHITE:
            found = visit(step.name)
            if found is not None:
                return found
    return None


@dataclass(frozen=True)
class ProcessingOrder:
    """
    Ordem de processamento nomeada e validada.

    Produzida por `build_order`. A validação estrutural roda na
    construção, de modo que toda instância existente é um grafo acíclico
    com dependências resolvíveis.
    """

    name: str
    steps: Tuple[StepDefinition, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("processing order name must be a non-empty string")
        steps = tuple(self.steps)
        if not steps:
            raise ValueError(f"processing order '{self.name}' declares no steps")
        object.__setattr__(self, "steps", steps)

        by_name = _index_steps(steps)
        _check_dependencies(steps, by_name)
        cycle = find_cycle(steps)
        if cycle is not None:
            raise CyclicDependencyError(
                f"Cycle detected in step dependency graph: {' -> '.join(cycle)}",
                step_name=cycle[0],
                details={"cycle": cycle},
            )

    @property
    def step_names(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self.steps)

    @property
    def function_names(self) -> Tuple[str, ...]:
        return tuple(s.function_name for s in self.steps)

    def step(self, name: str) -> StepDefinition:
        for s in self.steps:
            if s.name == name:
                return s
        raise UnknownStepError(
            f"Unknown step: {name}",
            step_name=name,
            details={"step_name": name, "known": list(self.step_names)},
        )

    def __contains__(self, name: object) -> bool:
        return name in self.step_names


def build_order(
    name: str,
    steps: Iterable[StepDefinition],
    *,
    known_functions: Optional[AbstractSet[str]] = None,
) -> ProcessingOrder:
    """
    Valida uma lista de Steps e produz uma `ProcessingOrder`.

    Args:
        name: nome da ordem (ex.: "episode_processing").
        steps: Steps em ordem de declaração.
        known_functions: quando fornecido, cada `function_name` deve pertencer
            a este conjunto.

    Raises:
        ValueError: ordem sem Steps.
        DuplicateStepError: nomes repetidos.
        UnknownDependencyError: `depends_on` cita um Step inexistente.
        CyclicDependencyError: o grafo contém ciclo (inclui auto-dependência).
        UnknownFunctionError: `function_name` fora de `known_functions`.
    """
    order = ProcessingOrder(name=name, steps=tuple(steps))
    if known_functions is not None:
        for step in order.steps:
            if step.function_name not in known_functions:
                raise UnknownFunctionError(
                    f"Step '{step.name}' references unknown function '{step.function_name}'",
                    step_name=step.name,
                    details={"function_name": step.function_name, "known": sorted(known_functions)},
                )
    return order


def _dependency_closure(order: ProcessingOrder, names: Iterable[str]) -> Set[str]:
    closure: Set[str] = set()
    pending = list(names)
    while pending:
        current = pending.pop()
        if current in closure:
            continue
        closure.add(current)
        pending.extend(order.step(current).depends_on)
    return closure


def schedule(order: ProcessingOrder, step_filter: Optional[Iterable[str]] = None) -> List[StepDefinition]:
    """
    Sequência linear de execução para `order`.

    Sem filtro, todos os Steps são retornados. Com filtro, a ordem
    topológica completa é intersectada com os Steps pedidos e seu fecho
    transitivo de dependências. Um filtro vazio resulta em lista vazia.

    Raises:
        UnknownStepError: o filtro cita um Step que não pertence à ordem.
    """
    by_name = {s.name: s for s in order.steps}
    visited: Set[str] = set()
    sequence: List[StepDefinition] = []

    def visit(name: str) -> None:
        if name in visited:
            return
        for dep in by_name[name].depends_on:
            visit(dep)
        sequence.append(by_name[name])
        visited.add(name)

    for step in order.steps:
        visit(step.name)

    if step_filter is None:
        return sequence

    if isinstance(step_filter, str):
        raise TypeError("step_filter must be a collection of step names, not a string")
    wanted = list(step_filter)
    unknown = [n for n in wanted if n not in by_name]
    if unknown:
        raise UnknownStepError(
            f"Step filter references unknown steps: {unknown}",
            details={"unknown": unknown, "known": list(order.step_names)},
            hint="Use apenas nomes declarados na ordem de processamento.",
        )
    selected = _dependency_closure(order, wanted)
    return [s for s in sequence if s.name in selected]
