"""
Deep-merge determinístico de configuração.

Regras:
    - dict + dict → merge recursivo
    - lista no override → substituição total
    - `null` em qualquer lado → o override prevalece
    - escalares de mesmo tipo → o override prevalece
    - tipos diferentes → `ConfigTypeConflictError`

Nenhum dos argumentos é mutado.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _same_kind(a: Any, b: Any) -> bool:
    numbers = (int, float)
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b)
    if isinstance(a, numbers) and isinstance(b, numbers):
        return True
    return type(a) is type(b)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], *, _path: str = "") -> Dict[str, Any]:
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requires dicts at the root, got: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)
    for key, override_value in override.items():
        path = f"{_path}.{key}" if _path else str(key)
        if key not in result:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]
        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, _path=path)
            continue
        if isinstance(override_value, list) or base_value is None or override_value is None:
            result[key] = deepcopy(override_value)
            continue
        if not _same_kind(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Type conflict at '{path}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}",
                details={"key": path},
            )
        result[key] = deepcopy(override_value)
    return result
