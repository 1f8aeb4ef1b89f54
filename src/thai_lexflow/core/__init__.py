"""
Core do thai_lexflow.

Implementação independente de colaboradores externos, reunindo o
contrato do contexto, o modelo declarativo de Steps, o planejamento e a
execução, a rastreabilidade e a configuração.

Componentes principais:
    - contract     → validação estrutural pura do contexto e dos Senses
    - pipeline     → StepDefinition, StepResult, FunctionRegistry
    - engine       → build_order, schedule, classify_failure, Executor
    - traceability → observadores e Run Manifest
    - config       → resolução de configuração
    - exceptions / errors → taxonomia de erros e payloads serializáveis

Princípios fundamentais:
    - Nenhuma decisão silenciosa: falhas toleradas viram dado, fatais viram exceção
    - Validação em cada fronteira
"""
