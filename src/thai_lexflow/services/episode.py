"""
Processamento de um episódio completo.

Fluxo de `EpisodeProcessor.process_episode(media_id)`:
    1. busca as legendas do episódio; sem legendas, relatório vazio
    2. tokeniza as legendas ainda sem tokens (Steps de legenda); uma
       legenda que falha mantém o registro original
    3. grava as legendas e coleta os tokens únicos (aparados, na ordem
       em que aparecem)
    4. para cada token, com concorrência limitada e contexto isolado:
       pula palavras já completas no store (opcional), senão executa os
       Steps de palavra, escolhe os sentidos (normalizedSenses →
       gptMeanings → orstSenses, o primeiro não vazio) e grava palavra e
       sentidos
    5. devolve um `EpisodeReport`

Decisões arquiteturais:
    - Cada token roda em uma execução própria do executor; nenhum estado é
      compartilhado entre tokens
    - Falhas de uma legenda ou palavra viram payloads no relatório e não
      interrompem o episódio
    - Qualquer outro erro (ex.: falha do store) cancela as palavras ainda
      em andamento e só então propaga ao chamador
    - Filtros de Steps são validados na construção (erro de configuração)

Limites explícitos:
    - Não repete palavras que falharam
    - Não conhece o banco real; usa `WordStore`
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from thai_lexflow.core.engine.executor import Executor, FunctionsArg
from thai_lexflow.core.engine.planner import ProcessingOrder, schedule
from thai_lexflow.core.errors import ErrorPayload, exception_to_error, format_error_for_display
from thai_lexflow.core.exceptions import LexflowError
from thai_lexflow.core.traceability.events import EventObserver, apply_log_level, build_observer
from thai_lexflow.services.cache import load_or_compute
from thai_lexflow.services.collaborators import Collaborators, strip_tokens
from thai_lexflow.services.persistence import SubtitleRecord, WordRecord, WordStore
from thai_lexflow.workflow.definition import SUBTITLE_STEPS, WORD_STEPS


logger = logging.getLogger(__name__)

SENSE_PRIORITY = ("normalizedSenses", "gptMeanings", "orstSenses")


@dataclass(frozen=True)
class EpisodeFailure:
    kind: str  # "subtitle" | "word"
    key: str
    error: ErrorPayload

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "key": self.key, "error": self.error.to_dict()}


@dataclass
class EpisodeReport:
    media_id: str
    subtitles_total: int = 0
    subtitles_tokenized: List[str] = field(default_factory=list)
    words_saved: List[str] = field(default_factory=list)
    words_skipped: List[str] = field(default_factory=list)
    words_without_senses: List[str] = field(default_factory=list)
    failures: List[EpisodeFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "media_id": self.media_id,
            "subtitles_total": self.subtitles_total,
            "subtitles_tokenized": list(self.subtitles_tokenized),
            "words_saved": list(self.words_saved),
            "words_skipped": list(self.words_skipped),
            "words_without_senses": list(self.words_without_senses),
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass(frozen=True)
class _EnrichedWord:
    word: WordRecord
    senses: Tuple[Dict[str, Any], ...]


def choose_senses(context: Mapping[str, Any]) -> List[Dict[str, Any]]:
    for name in SENSE_PRIORITY:
        senses = context.get(name)
        if senses:
            return [dict(s) for s in senses]
    return []


def unique_tokens(subtitles: Sequence[SubtitleRecord]) -> List[str]:
    seen: Dict[str, None] = {}
    for subtitle in subtitles:
        for token in strip_tokens(subtitle.tokens_th):
            seen.setdefault(token, None)
    return list(seen)


class EpisodeProcessor:
    def __init__(
        self,
        *,
        store: WordStore,
        order: ProcessingOrder,
        functions: FunctionsArg,
        subtitle_steps: Sequence[str] = SUBTITLE_STEPS,
        word_steps: Sequence[str] = WORD_STEPS,
        max_concurrency: int = 4,
        skip_complete_words: bool = True,
        observer: Optional[EventObserver] = None,
    ) -> None:
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
            raise ValueError("max_concurrency must be an integer >= 1")
        self.subtitle_steps = tuple(subtitle_steps)
        self.word_steps = tuple(word_steps)
        # UnknownStepError aqui, não por legenda/palavra
        schedule(order, self.subtitle_steps)
        schedule(order, self.word_steps)

        self.store = store
        self.executor = Executor(order, functions, observer)
        self.max_concurrency = max_concurrency
        self.skip_complete_words = skip_complete_words

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        store: WordStore,
        collaborators: Collaborators,
        observer: Optional[EventObserver] = None,
    ) -> "EpisodeProcessor":
        """Monta o processador a partir da configuração resolvida (`load_config`)."""
        from thai_lexflow.workflow import CANONICAL_FUNCTIONS, build_function_registry, load_processing_order
        from thai_lexflow.workflow.definition import order_path_from_config

        episode = dict(config.get("episode") or {})
        engine = dict(config.get("engine") or {})
        apply_log_level(engine.get("log_level", "INFO"))
        order = load_processing_order(order_path_from_config(config), known_functions=CANONICAL_FUNCTIONS)
        return cls(
            store=store,
            order=order,
            functions=build_function_registry(collaborators),
            subtitle_steps=episode.get("subtitle_steps") or SUBTITLE_STEPS,
            word_steps=episode.get("word_steps") or WORD_STEPS,
            max_concurrency=episode.get("max_concurrency", 4),
            skip_complete_words=episode.get("skip_complete_words", True),
            observer=observer if observer is not None else build_observer(engine.get("observer", "none")),
        )

    # ------------------------------------------------------------------
    # Legendas
    # ------------------------------------------------------------------

    async def _tokenize(self, subtitle: SubtitleRecord, report: EpisodeReport) -> SubtitleRecord:
        try:
            result = await self.executor.run({"thaiText": subtitle.thai}, self.subtitle_steps)
        except LexflowError as e:
            self._record_failure(report, "subtitle", subtitle.id, e)
            return subtitle

        tokens_th = result.final_context.get("tokens_th") or {}
        if not strip_tokens(tokens_th.get("tokens")):
            failed = next((r for r in result.results if not r.success), None)
            cause = failed.error if failed is not None and failed.error is not None else None
            payload = (
                exception_to_error(cause)
                if cause is not None
                else ErrorPayload(type="TOKENIZATION_EMPTY", message="tokenization produced no tokens")
            )
            report.failures.append(EpisodeFailure("subtitle", subtitle.id, payload))
            logger.warning("subtitle %s: %s", subtitle.id, format_error_for_display(payload))
            return subtitle

        report.subtitles_tokenized.append(subtitle.id)
        return subtitle.with_tokens(tokens_th["tokens"])

    # ------------------------------------------------------------------
    # Palavras
    # ------------------------------------------------------------------

    async def _load_complete_word(self, word_th: str) -> Optional[WordRecord]:
        if not self.skip_complete_words:
            return None
        existing = await self.store.get_word(word_th)
        if existing is not None and existing.is_complete:
            return existing
        return None

    async def _enrich_word(self, word_th: str) -> Optional[_EnrichedWord]:
        result = await self.executor.run({"word_th": word_th}, self.word_steps)
        for r in result.results:
            if not r.success:
                logger.debug("word %s: step %s tolerated: %s", word_th, r.step_name, r.error)

        final = result.final_context
        senses = choose_senses(final)
        if not senses:
            return None
        word = WordRecord(word_th=word_th, g2p=final.get("g2p"), phonetic_en=final.get("phonetic_en"))
        return _EnrichedWord(word=word, senses=tuple(senses))

    async def _save_word(self, word_th: str, enriched: _EnrichedWord) -> None:
        await self.store.upsert_word(enriched.word)
        await self.store.upsert_senses(word_th, enriched.senses)

    async def _process_word(self, word_th: str, report: EpisodeReport) -> None:
        try:
            outcome = await load_or_compute(word_th, self._load_complete_word, self._enrich_word, self._save_word)
        except LexflowError as e:
            self._record_failure(report, "word", word_th, e)
            return

        if isinstance(outcome, WordRecord):
            report.words_skipped.append(word_th)
        elif outcome is None:
            logger.info("word %s: no senses found", word_th)
            report.words_without_senses.append(word_th)
        else:
            report.words_saved.append(word_th)

    # ------------------------------------------------------------------
    # Episódio
    # ------------------------------------------------------------------

    @staticmethod
    def _record_failure(report: EpisodeReport, kind: str, key: str, error: BaseException) -> None:
        payload = exception_to_error(error)
        report.failures.append(EpisodeFailure(kind, key, payload))
        logger.warning("%s %s: %s", kind, key, format_error_for_display(payload))

    async def process_episode(self, media_id: str) -> EpisodeReport:
        report = EpisodeReport(media_id=media_id)
        subtitles = await self.store.get_subtitles(media_id)
        if not subtitles:
            logger.warning("no subtitles found for %s", media_id)
            return report

        report.subtitles_total = len(subtitles)
        logger.info("processing %s: %d subtitles", media_id, len(subtitles))

        processed: List[SubtitleRecord] = []
        for subtitle in subtitles:
            if subtitle.has_tokens:
                processed.append(subtitle)
                continue
            processed.append(await self._tokenize(subtitle, report))
        await self.store.upsert_subtitles(processed)

        tokens = unique_tokens(processed)
        logger.info("processing %s: %d unique tokens", media_id, len(tokens))

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(word_th: str) -> None:
            async with semaphore:
                await self._process_word(word_th, report)

        tasks = [asyncio.ensure_future(bounded(t)) for t in tokens]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # nenhuma palavra é gravada depois que o episódio falhou
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # gather conclui fora de ordem; o relatório segue a ordem dos tokens
        position = {t: i for i, t in enumerate(tokens)}
        for bucket in (report.words_saved, report.words_skipped, report.words_without_senses):
            bucket.sort(key=position.__getitem__)
        word_failures = sorted(
            (f for f in report.failures if f.kind == "word"), key=lambda f: position[f.key]
        )
        report.failures = [f for f in report.failures if f.kind != "word"] + word_failures

        logger.info(
            "processed %s: %d words saved, %d skipped, %d failures",
            media_id,
            len(report.words_saved),
            len(report.words_skipped),
            len(report.failures),
        )
        return report
