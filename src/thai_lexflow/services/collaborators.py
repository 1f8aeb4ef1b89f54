"""
Interfaces dos colaboradores externos do pipeline.

Tokenização, G2P, transliteração, consulta ao dicionário e geração ou
normalização de sentidos por modelo de linguagem vivem fora do core. O
pipeline fala com eles apenas por estes protocolos; clientes HTTP,
scrapers e chaves de API são responsabilidade de quem os implementa.

Cada método pode ser síncrono ou assíncrono: o executor aguarda o
resultado quando ele é awaitable.

Convenções:
    - `GraphemeToPhoneme.g2p` e `Transliterator.to_english` retornam None
      quando não há conversão possível
    - `DictionaryLookup.senses` levanta `NotFoundError` quando a palavra
      não existe no dicionário
    - Saídas de sentidos são listas de dicts no formato Sense; o formato é
      validado pelo executor, não pelo colaborador
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence


class NotFoundError(LookupError):
    """A palavra consultada não existe na fonte (resultado esperado, não defeito)."""

    def __init__(self, word: str, source: str = "dictionary") -> None:
        super().__init__(f"'{word}' not found in {source}")
        self.word = word
        self.source = source


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> Any:
        """Lista de tokens (str) de uma linha de texto tailandês."""


class GraphemeToPhoneme(Protocol):
    def g2p(self, word: str) -> Any:
        """Código fonético da palavra, ou None."""


class Transliterator(Protocol):
    def to_english(self, g2p: str) -> Any:
        """Transliteração legível de um código G2P, ou None."""


class DictionaryLookup(Protocol):
    def senses(self, word: str) -> Any:
        """Sentidos da palavra; `NotFoundError` quando ausente."""


class SenseGenerator(Protocol):
    def generate(self, word: str, context: Mapping[str, Any]) -> Any:
        """Sentidos gerados a partir da palavra e do contexto da legenda."""


class SenseNormalizer(Protocol):
    def normalize(self, senses: Sequence[Dict[str, Any]], context: Mapping[str, Any]) -> Any:
        """Sentidos normalizados (POS e definição em inglês preenchidos)."""


@dataclass(frozen=True)
class Collaborators:
    """Conjunto de colaboradores injetado em `build_function_registry`."""

    tokenizer: Tokenizer
    g2p: GraphemeToPhoneme
    transliterator: Transliterator
    dictionary: DictionaryLookup
    sense_generator: SenseGenerator
    sense_normalizer: SenseNormalizer


def sense_context(context: Mapping[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    """Subconjunto de `context` repassado aos modelos (apenas campos presentes)."""
    return {name: context[name] for name in fields if context.get(name) is not None}


def strip_tokens(tokens: Optional[Sequence[str]]) -> List[str]:
    """Tokens aparados e não vazios, na ordem original."""
    return [t.strip() for t in (tokens or []) if isinstance(t, str) and t.strip()]
