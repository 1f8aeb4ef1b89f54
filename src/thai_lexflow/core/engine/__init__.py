"""
Engine do thai_lexflow.

Este pacote **planeja** e **executa** ordens de processamento.

Componentes principais:
    - planner    → validação estrutural (`build_order`) e ordenação (`schedule`)
    - classifier → decisão tolerada/fatal por Step
    - executor   → execução sequencial com validação em cada fronteira

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - A ordem de execução é determinística para o mesmo grafo
    - Nenhuma falha é ignorada em silêncio: toleradas viram dado,
      fatais viram exceção

Invariantes:
    - Steps só são executados após suas dependências
    - Cada Step é executado no máximo uma vez por run

Limites explícitos:
    - Não define funções de domínio (ver `thai_lexflow.workflow`)
    - Não persiste resultados
"""

from .planner import ProcessingOrder, build_order, find_cycle, schedule  # noqa: F401
from .classifier import classify_failure, underlying_cause  # noqa: F401
from .executor import Executor, execute  # noqa: F401
