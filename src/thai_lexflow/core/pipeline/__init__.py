"""
# Pipeline Core — thai_lexflow

Este pacote define as **estruturas declarativas** de um pipeline de
enriquecimento: Steps, contratos por Step, resultados e o registro de
funções de backing.

Um pipeline é modelado como uma **ordem de processamento** (grafo
explícito de Steps), onde:
- cada Step declara nome, função de backing e dependências
- a execução é coordenada exclusivamente pelo executor (`core.engine`)
- o estado compartilhado é o contexto canônico, copiado a cada Step

## Componentes

- **types**
  - `StepState`: máquina de estados por Step
  - `StepResult` / `ExecutionResult`: resultados imutáveis

- **step**
  - `StepContract`, `StepDefinition`

- **registry**
  - `BackingFunction`, `FunctionRegistry`

- **context**
  - `context_slice`, `merge_context`: operações funcionais sobre o contexto

## Limites Explícitos

- Não planeja execução
- Não executa pipeline
"""

from .types import ExecutionResult, StepResult, StepState, StepTracker  # noqa: F401
from .step import StepContract, StepDefinition  # noqa: F401
from .registry import BackingFunction, DuplicateFunctionError, FunctionRegistry  # noqa: F401
from .context import context_slice, merge_context  # noqa: F401
