"""
thai_lexflow — pipeline de enriquecimento linguístico de legendas em tailandês.

A partir de linhas de legenda, o pipeline deriva tokens, transcrição
fonética (G2P e transliteração) e sentidos de dicionário, coordenados por
um grafo declarativo de Steps com contratos validados em cada fronteira.

Arquitetura em alto nível:
    - core.contract     → schema canônico do contexto, Sense, construtores selados
    - core.pipeline     → Steps, resultados e registro de funções de backing
    - core.engine       → planejamento, classificação de falhas e execução
    - core.traceability → observadores de eventos e Run Manifest
    - core.config       → carregamento, merge e hashing de configuração
    - workflow          → ordem de processamento canônica e funções de backing
    - services          → colaboradores, persistência e processamento de episódios

Limites explícitos:
    - Não implementa scraping, clientes HTTP ou modelos de linguagem;
      esses colaboradores entram por protocolos em `services.collaborators`
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
