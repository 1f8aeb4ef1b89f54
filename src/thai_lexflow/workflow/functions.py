"""
Funções de backing da ordem de processamento canônica.

Cada função recebe o recorte copiado do contexto, chama um colaborador
(ver `services.collaborators`) e devolve a saída bruta. O formato da
saída é verificado pelo executor com o `check_output` declarado aqui.

Funções registradas:
    - build_thai_tokens          thaiText → tokens_th
    - get_g2p                    word_th → g2p (None ou vazio é erro)
    - parse_phonetic_to_english  g2p → phonetic_en (None deixa o campo ausente)
    - fetch_orst_senses          word_th → orstSenses
    - create_senses_with_gpt     word_th + contexto → gptMeanings
    - normalize_senses_with_gpt  orstSenses | gptMeanings → normalizedSenses

Guards:
    - create_senses_with_gpt devolve [] sem chamar o modelo quando
      `orstSenses` já tem sentidos
    - normalize_senses_with_gpt normaliza `orstSenses` se houver, senão
      `gptMeanings`; sem nenhum dos dois devolve []
"""

from __future__ import annotations

import inspect
from typing import Any, Dict, List, Optional

from thai_lexflow.core.contract.context import TOKENS_SCHEMA
from thai_lexflow.core.contract.schema import ContractIssue, is_blank, list_of, nested, string
from thai_lexflow.core.contract.sense import SENSE_SCHEMA
from thai_lexflow.core.exceptions import StepExecutionError
from thai_lexflow.core.pipeline.registry import BackingFunction, FunctionRegistry
from thai_lexflow.services.collaborators import Collaborators, sense_context


GPT_MEANING_CONTEXT_FIELDS = (
    "fullThaiText",
    "allTokens",
    "wordPosition",
    "showName",
    "episode",
    "season",
    "g2p",
    "phonetic_en",
)
NORMALIZE_CONTEXT_FIELDS = ("fullThaiText", "showName", "episode", "season")

_SENSES = list_of(nested(SENSE_SCHEMA))
_NON_EMPTY = string(non_empty=True)
_STRING = string()


async def _await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


# ---------------------------------------------------------------------------
# Verificadores de saída
# ---------------------------------------------------------------------------

def check_tokens(output: Any) -> List[ContractIssue]:
    return TOKENS_SCHEMA.issues_for(output, "tokens_th")


def check_g2p(output: Any) -> List[ContractIssue]:
    return _NON_EMPTY.check(output, "g2p")


def check_phonetic(output: Any) -> List[ContractIssue]:
    if output is None:
        return []
    return _STRING.check(output, "phonetic_en")


def senses_checker(field_name: str):
    def _check(output: Any) -> List[ContractIssue]:
        return _SENSES.check(output, field_name)

    return _check


def _phonetic_fields(output: Optional[str]) -> Dict[str, Any]:
    return {} if output is None else {"phonetic_en": output}


def _senses_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else value


# ---------------------------------------------------------------------------
# Registro
# ---------------------------------------------------------------------------

def build_function_registry(collaborators: Collaborators) -> FunctionRegistry:
    """Liga as seis funções canônicas aos colaboradores fornecidos."""

    async def build_thai_tokens(ctx: Dict[str, Any]) -> Any:
        tokens = await _await(collaborators.tokenizer.tokenize(ctx["thaiText"]))
        if isinstance(tokens, tuple):
            tokens = list(tokens)
        return {"tokens": tokens}

    async def get_g2p(ctx: Dict[str, Any]) -> Any:
        word = ctx["word_th"]
        code = await _await(collaborators.g2p.g2p(word))
        if code is None or (isinstance(code, str) and is_blank(code)):
            raise StepExecutionError(
                f"G2P returned no phonetic code for '{word}'",
                details={"word_th": word},
                hint="G2P é obrigatório: verifique o serviço de G2P para esta palavra.",
            )
        return code

    async def parse_phonetic_to_english(ctx: Dict[str, Any]) -> Any:
        return await _await(collaborators.transliterator.to_english(ctx["g2p"]))

    async def fetch_orst_senses(ctx: Dict[str, Any]) -> Any:
        return _senses_list(await _await(collaborators.dictionary.senses(ctx["word_th"])))

    async def create_senses_with_gpt(ctx: Dict[str, Any]) -> Any:
        if ctx.get("orstSenses"):
            return []
        extra = sense_context(ctx, GPT_MEANING_CONTEXT_FIELDS)
        return _senses_list(await _await(collaborators.sense_generator.generate(ctx["word_th"], extra)))

    async def normalize_senses_with_gpt(ctx: Dict[str, Any]) -> Any:
        senses = ctx.get("orstSenses") or ctx.get("gptMeanings") or []
        if not senses:
            return []
        word = ctx.get("word_th")
        if is_blank(word):
            raise StepExecutionError(
                "word_th is required to normalize senses",
                details={"senses": len(senses)},
            )
        extra = sense_context(ctx, NORMALIZE_CONTEXT_FIELDS)
        extra["word_th"] = word
        return _senses_list(await _await(collaborators.sense_normalizer.normalize(senses, extra)))

    return FunctionRegistry.of(
        [
            BackingFunction(
                name="build_thai_tokens",
                call=build_thai_tokens,
                produces=("tokens_th",),
                reads=("thaiText",),
                requires=("thaiText",),
                check_output=check_tokens,
            ),
            BackingFunction(
                name="get_g2p",
                call=get_g2p,
                produces=("g2p",),
                reads=("word_th",),
                requires=("word_th",),
                check_output=check_g2p,
            ),
            BackingFunction(
                name="parse_phonetic_to_english",
                call=parse_phonetic_to_english,
                produces=("phonetic_en",),
                reads=("g2p",),
                requires=("g2p",),
                check_output=check_phonetic,
                to_fields=_phonetic_fields,
            ),
            BackingFunction(
                name="fetch_orst_senses",
                call=fetch_orst_senses,
                produces=("orstSenses",),
                reads=("word_th",),
                requires=("word_th",),
                check_output=senses_checker("orstSenses"),
            ),
            BackingFunction(
                name="create_senses_with_gpt",
                call=create_senses_with_gpt,
                produces=("gptMeanings",),
                reads=("word_th", "orstSenses") + GPT_MEANING_CONTEXT_FIELDS,
                requires=("word_th",),
                check_output=senses_checker("gptMeanings"),
            ),
            BackingFunction(
                name="normalize_senses_with_gpt",
                call=normalize_senses_with_gpt,
                produces=("normalizedSenses",),
                reads=("word_th", "orstSenses", "gptMeanings") + NORMALIZE_CONTEXT_FIELDS,
                check_output=senses_checker("normalizedSenses"),
            ),
        ]
    )


CANONICAL_FUNCTIONS = frozenset(
    {
        "build_thai_tokens",
        "get_g2p",
        "parse_phonetic_to_english",
        "fetch_orst_senses",
        "create_senses_with_gpt",
        "normalize_senses_with_gpt",
    }
)
