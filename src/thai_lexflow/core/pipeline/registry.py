"""
Registro de funções de backing do pipeline.

Este módulo define o `FunctionRegistry`, que associa o `function_name`
declarado por um Step à função concreta que o executa, junto com o
formato esperado de sua saída e os campos de contexto que ela produz.

O registry atua como a fronteira entre a definição declarativa (dados)
e o código que fala com colaboradores externos (tokenizador, G2P,
dicionário, modelos de linguagem).

Responsabilidades do módulo:
    - Validar unicidade de `function_name`
    - Preservar ordem de registro
    - Resolver nomes, levantando `UnknownFunctionError` quando ausentes

Decisões arquiteturais:
    - Cada função declara `produces`: o executor só faz merge desses campos
    - `check_output` devolve issues (não levanta); o executor decide a falha
    - Funções podem ser síncronas ou assíncronas

Invariantes:
    - Cada `function_name` registrado é único
    - `produces` e `reads` pertencem ao schema canônico do contexto

Limites explícitos:
    - Não executa funções
    - Não interage com a ordem de processamento
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Tuple

from thai_lexflow.core.contract.context import CONTEXT_FIELDS
from thai_lexflow.core.contract.schema import ContractIssue
from thai_lexflow.core.exceptions import UnknownFunctionError


OutputChecker = Callable[[Any], List[ContractIssue]]


def _accept_any(_output: Any) -> List[ContractIssue]:
    return []


@dataclass(frozen=True)
class BackingFunction:
    """
    Função de backing de um Step.

    Campos:
        - name: `function_name` referenciado pelos Steps
        - call: recebe o recorte do contexto (dict) e devolve a saída bruta
          (valor ou awaitable)
        - produces: campos de contexto escritos pela função
        - reads: campos de contexto copiados para o recorte de entrada
        - requires: subconjunto de `reads` que deve estar presente e não vazio
        - check_output: verificador de formato da saída bruta
        - to_fields: converte a saída validada em {campo: valor}; por padrão
          grava a saída inteira no primeiro campo de `produces`
    """

    name: str
    call: Callable[[Dict[str, Any]], Any] = field(repr=False)
    produces: Tuple[str, ...]
    reads: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()
    check_output: OutputChecker = field(default=_accept_any, repr=False)
    to_fields: Callable[[Any], Dict[str, Any]] = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("function name must be a non-empty string")
        for attr in ("produces", "reads", "requires"):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))
        if not self.produces:
            raise ValueError(f"function '{self.name}' must produce at least one field")

        unknown = sorted(set(self.produces + self.reads + self.requires) - CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"function '{self.name}' references unknown context fields: {unknown}")
        if not set(self.requires) <= set(self.reads):
            raise ValueError(f"function '{self.name}': requires must be a subset of reads")

        if self.to_fields is None:
            target = self.produces[0]
            object.__setattr__(self, "to_fields", lambda output: {target: output})


class DuplicateFunctionError(ValueError):
    """Dois registros com o mesmo `function_name`."""


@dataclass
class FunctionRegistry:
    """Registro canônico de funções de backing, indexado por `function_name`."""

    _functions: Dict[str, BackingFunction] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, fn: BackingFunction) -> None:
        if fn.name in self._functions:
            raise DuplicateFunctionError(f"Duplicate function name: {fn.name}")
        self._functions[fn.name] = fn
        self._order.append(fn.name)

    def get(self, function_name: str) -> BackingFunction:
        try:
            return self._functions[function_name]
        except KeyError:
            raise UnknownFunctionError(
                f"Unknown function: {function_name}",
                details={"function_name": function_name, "known": list(self._order)},
            ) from None

    def __contains__(self, function_name: object) -> bool:
        return function_name in self._functions

    def names(self) -> FrozenSet[str]:
        return frozenset(self._order)

    def list(self) -> List[BackingFunction]:
        return [self._functions[name] for name in self._order]

    @classmethod
    def of(cls, functions: Mapping[str, BackingFunction] | List[BackingFunction]) -> "FunctionRegistry":
        registry = cls()
        items = functions.values() if isinstance(functions, Mapping) else functions
        for fn in items:
            registry.add(fn)
        return registry
