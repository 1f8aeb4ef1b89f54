"""
Schema canônico do contexto do pipeline (PipelineContext).

O contexto é o único estado mutável de uma execução: um mapping de
campos opcionais pertencentes a um conjunto fechado. Este módulo é a
única fonte de verdade sobre esse conjunto.

Princípios fundamentais:
    - Fechado: campos não declarados são rejeitados (impede que Steps
      injetem estado silenciosamente)
    - Parcial: qualquer subconjunto de campos é válido na fronteira
    - Puro: validar nunca muta o candidato

Campos:
    - nível legenda: `thaiText`, `tokens_th`
    - nível palavra: `word_th`, `g2p`, `phonetic_en`
    - senses: `orstSenses`, `gptMeanings`, `normalizedSenses`
    - contexto auxiliar para geração: `fullThaiText`, `allTokens`,
      `wordPosition`, `showName`, `episode`, `season`

Limites explícitos:
    - Não impõe obrigatoriedade (isso é papel dos contratos de Step)
    - Não decide se a violação é fatal
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet

from .errors import ContextValidationError
from .schema import FieldSpec, ObjectSchema, ValidationResult, list_of, nested, number, string
from .sense import SENSE_SCHEMA


TOKENS_SCHEMA = ObjectSchema(
    name="Tokens",
    fields=(FieldSpec("tokens", list_of(string()), required=True),),
)

_SENSES = list_of(nested(SENSE_SCHEMA))

PIPELINE_CONTEXT_SCHEMA = ObjectSchema(
    name="PipelineContext",
    fields=(
        FieldSpec("thaiText", string(), description="subtitle line text"),
        FieldSpec("tokens_th", nested(TOKENS_SCHEMA)),
        FieldSpec("word_th", string(), description="natural key of a word"),
        FieldSpec("g2p", string()),
        FieldSpec("phonetic_en", string()),
        FieldSpec("orstSenses", _SENSES),
        FieldSpec("normalizedSenses", _SENSES),
        FieldSpec("gptMeanings", _SENSES),
        FieldSpec("fullThaiText", string()),
        FieldSpec("allTokens", list_of(string())),
        FieldSpec("wordPosition", number()),
        FieldSpec("showName", string()),
        FieldSpec("episode", number()),
        FieldSpec("season", number()),
    ),
    closed=True,
)

CONTEXT_FIELDS: FrozenSet[str] = PIPELINE_CONTEXT_SCHEMA.field_names


def validate_context(candidate: Any) -> ValidationResult:
    """Valida um candidato contra o schema canônico (não levanta)."""
    return PIPELINE_CONTEXT_SCHEMA.validate(candidate)


def parse_context(candidate: Any, *, where: str = "pipeline context") -> Dict[str, Any]:
    """Variante que levanta `ContextValidationError` em caso de violação."""
    result = validate_context(candidate)
    if not result.ok:
        raise ContextValidationError(
            f"Invalid {where}: {result.describe()}",
            issues=result.issues,
            hint="Remova campos não declarados e corrija os tipos antes de executar.",
        )
    return result.value or {}
