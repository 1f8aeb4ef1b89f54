"""
Cache-aside explícito.

`load_or_compute` substitui o padrão "consulta, se faltar busca de novo e
tenta outra vez": uma leitura, no máximo um cálculo, no máximo uma
gravação. Sem laços nem retentativas.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Hashable, Optional


logger = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def load_or_compute(
    key: Hashable,
    load: Callable[[Any], Any],
    compute: Callable[[Any], Any],
    save: Optional[Callable[[Any, Any], Any]] = None,
) -> Any:
    """
    Retorna `load(key)` quando não é None; senão `compute(key)`, gravado por
    `save(key, valor)` se fornecido e se o valor não for None.

    Qualquer uma das funções pode ser síncrona ou assíncrona. Erros de
    `load`, `compute` ou `save` propagam ao chamador.
    """
    cached = await _resolve(load(key))
    if cached is not None:
        logger.debug("cache hit: %s", key)
        return cached

    logger.debug("cache miss: %s", key)
    value = await _resolve(compute(key))
    if save is not None and value is not None:
        await _resolve(save(key, value))
    return value
