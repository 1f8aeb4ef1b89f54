"""
Serviços ao redor do core.

- collaborators → protocolos dos colaboradores externos e `NotFoundError`
- persistence   → registros de legenda/palavra e `WordStore`
- cache         → cache-aside explícito (`load_or_compute`)
- episode       → processamento de um episódio completo
"""

from .collaborators import (  # noqa: F401
    Collaborators,
    DictionaryLookup,
    GraphemeToPhoneme,
    NotFoundError,
    SenseGenerator,
    SenseNormalizer,
    Tokenizer,
    Transliterator,
)
from .persistence import InMemoryWordStore, SubtitleRecord, WordRecord, WordStore  # noqa: F401
from .cache import load_or_compute  # noqa: F401
from .episode import EpisodeFailure, EpisodeProcessor, EpisodeReport  # noqa: F401
