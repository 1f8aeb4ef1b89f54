"""
Hash canônico de configuração e de definições de ordem.

O hash é o SHA-256 do JSON canônico (chaves ordenadas, separadores
compactos, UTF-8 sem escape). A mesma estrutura lógica produz sempre o
mesmo hash, independentemente da ordem de inserção das chaves.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from thai_lexflow.core.engine.planner import ProcessingOrder


def compute_config_hash(config: Dict[str, Any]) -> str:
    if not isinstance(config, dict):
        raise TypeError(f"config to hash must be a dict, got: {type(config).__name__}")
    canonical_json = json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def order_to_dict(order: "ProcessingOrder") -> Dict[str, Any]:
    """Forma declarativa (serializável) de uma ordem de processamento."""
    return {
        "name": order.name,
        "steps": [
            {
                "name": s.name,
                "function_name": s.function_name,
                "depends_on": list(s.depends_on),
                "acceptable_failure": s.acceptable_failure,
                "input": {"required": list(s.input_contract.required), "optional": list(s.input_contract.optional)},
                "output": {"required": list(s.output_contract.required), "optional": list(s.output_contract.optional)},
            }
            for s in order.steps
        ],
    }


def compute_order_hash(order: "ProcessingOrder") -> str:
    return compute_config_hash(order_to_dict(order))
