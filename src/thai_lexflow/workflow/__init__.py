"""
Workflow canônico do thai_lexflow.

- processing_order.yaml → ordem `episode_processing` (dados, não código)
- definition            → leitura e validação estrutural da ordem
- functions             → funções de backing ligadas aos colaboradores
"""

from .definition import (  # noqa: F401
    DEFAULT_ORDER_PATH,
    SUBTITLE_STEPS,
    WORD_STEPS,
    load_processing_order,
    parse_processing_order,
)
from .functions import CANONICAL_FUNCTIONS, build_function_registry  # noqa: F401
