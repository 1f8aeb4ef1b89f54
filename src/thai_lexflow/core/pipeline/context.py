"""
Operações funcionais sobre o contexto do pipeline.

O contexto de uma execução é um dict simples de campos canônicos. Ele
nunca é mutado in-place: cada Step recebe um recorte copiado e o
executor produz um novo dict a cada merge.

Invariantes:
    - `context_slice` devolve cópias profundas; a função de backing não
      alcança o estado do executor
    - `merge_context` não altera nenhum dos argumentos

Limites explícitos:
    - Não valida campos (ver `core.contract.context`)
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping


def context_slice(context: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Cópia dos campos presentes em `context` dentre `fields`."""
    return {name: deepcopy(context[name]) for name in fields if name in context}


def merge_context(context: Mapping[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    """Novo contexto com `updates` sobrepostos a `context`."""
    merged = deepcopy(dict(context))
    for key, value in updates.items():
        merged[key] = deepcopy(value)
    return merged
