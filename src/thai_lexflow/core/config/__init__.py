"""
Camada de configuração do thai_lexflow.

A configuração é declarativa, determinística e separada da definição da
ordem de processamento.

Responsabilidades do pacote:
    - Carregamento de arquivos (defaults + overrides locais) em YAML/JSON
    - Resolução via deep-merge determinístico
    - Validação das chaves conhecidas
    - Hash canônico para rastreabilidade (configuração e ordem)

Limites explícitos:
    - Não executa pipeline
    - Não interage com o executor diretamente
"""

from .errors import (  # noqa: F401
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, compute_order_hash, order_to_dict  # noqa: F401
from .loader import DEFAULTS_PATH, load_config, validate_config  # noqa: F401
from .merge import deep_merge  # noqa: F401
