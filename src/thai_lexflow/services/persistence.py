"""
Registros persistidos e armazenamento de palavras/legendas.

Registros:
    - SubtitleRecord → linha de legenda (`id` = `<media_id>_<índice>`)
    - WordRecord     → palavra tailandesa (`word_th` é a chave natural)

Armazenamento:
    - WordStore (Protocol) → interface usada pelo processamento de episódios
    - InMemoryWordStore    → implementação em memória (testes, uso local)

Invariantes:
    - Registros são validados na construção (`ValueError` com a causa)
    - Upserts são idempotentes: a chave natural substitui o registro anterior
    - Sentidos gravados passam pelo schema canônico de Sense

Limites explícitos:
    - Não implementa banco remoto; um adaptador real implementa `WordStore`
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from thai_lexflow.core.contract.errors import ContractViolation
from thai_lexflow.core.contract.schema import is_blank
from thai_lexflow.core.contract.sense import validate_sense


MAX_SUBTITLE_SECONDS = 86400


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class SubtitleRecord:
    id: str
    thai: str
    start_sec_th: float
    end_sec_th: float
    tokens_th: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if is_blank(self.id):
            raise ValueError("subtitle id must be a non-blank string")
        if is_blank(self.thai):
            raise ValueError(f"subtitle '{self.id}': thai must be a non-blank string")
        for name in ("start_sec_th", "end_sec_th"):
            value = getattr(self, name)
            if not _is_number(value) or not 0 <= value < MAX_SUBTITLE_SECONDS:
                raise ValueError(f"subtitle '{self.id}': {name} must be in [0, {MAX_SUBTITLE_SECONDS})")
        if self.end_sec_th <= self.start_sec_th:
            raise ValueError(f"subtitle '{self.id}': end_sec_th must be greater than start_sec_th")
        if self.tokens_th is not None:
            object.__setattr__(self, "tokens_th", tuple(self.tokens_th))

    @property
    def has_tokens(self) -> bool:
        return bool(self.tokens_th)

    def belongs_to(self, media_id: str) -> bool:
        return self.id == media_id or self.id.startswith(f"{media_id}_")

    def with_tokens(self, tokens: Sequence[str]) -> "SubtitleRecord":
        return SubtitleRecord(self.id, self.thai, self.start_sec_th, self.end_sec_th, tuple(tokens))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "thai": self.thai,
            "start_sec_th": self.start_sec_th,
            "end_sec_th": self.end_sec_th,
        }
        if self.tokens_th is not None:
            out["tokens_th"] = {"tokens": list(self.tokens_th)}
        return out


@dataclass(frozen=True)
class WordRecord:
    word_th: str
    g2p: Optional[str] = None
    phonetic_en: Optional[str] = None

    def __post_init__(self) -> None:
        if is_blank(self.word_th):
            raise ValueError("word_th must be a non-blank string")

    @property
    def is_complete(self) -> bool:
        """Palavra com `g2p` ou `phonetic_en` preenchido."""
        return not is_blank(self.g2p) or not is_blank(self.phonetic_en)

    def to_dict(self) -> Dict[str, Any]:
        return {"word_th": self.word_th, "g2p": self.g2p, "phonetic_en": self.phonetic_en}


class WordStore(Protocol):
    async def get_word(self, word_th: str) -> Optional[WordRecord]:
        ...

    async def upsert_word(self, word: WordRecord) -> None:
        ...

    async def get_senses(self, word_th: str) -> List[Dict[str, Any]]:
        ...

    async def upsert_senses(self, word_th: str, senses: Sequence[Mapping[str, Any]]) -> None:
        ...

    async def get_subtitles(self, media_id: str) -> List[SubtitleRecord]:
        ...

    async def upsert_subtitles(self, subtitles: Sequence[SubtitleRecord]) -> None:
        ...


@dataclass
class InMemoryWordStore:
    """`WordStore` em memória, sem I/O; operações não suspendem entre leitura e escrita."""

    words: Dict[str, WordRecord] = field(default_factory=dict)
    senses: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    subtitles: Dict[str, SubtitleRecord] = field(default_factory=dict)

    async def get_word(self, word_th: str) -> Optional[WordRecord]:
        return self.words.get(word_th)

    async def upsert_word(self, word: WordRecord) -> None:
        self.words[word.word_th] = word

    async def get_senses(self, word_th: str) -> List[Dict[str, Any]]:
        return deepcopy(self.senses.get(word_th, []))

    async def upsert_senses(self, word_th: str, senses: Sequence[Mapping[str, Any]]) -> None:
        validated: List[Dict[str, Any]] = []
        for idx, sense in enumerate(senses):
            result = validate_sense(sense)
            if not result.ok:
                raise ContractViolation(
                    f"Invalid sense #{idx} for '{word_th}': {result.describe()}",
                    issues=result.issues,
                )
            validated.append(result.value or {})
        self.senses[word_th] = validated

    async def get_subtitles(self, media_id: str) -> List[SubtitleRecord]:
        found = [s for s in self.subtitles.values() if s.belongs_to(media_id)]
        return sorted(found, key=lambda s: s.start_sec_th)

    async def upsert_subtitles(self, subtitles: Sequence[SubtitleRecord]) -> None:
        for subtitle in subtitles:
            self.subtitles[subtitle.id] = subtitle
