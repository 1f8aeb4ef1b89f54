"""
Schema canônico de Sense (entrada de dicionário de uma palavra tailandesa).

Campos v1 (obrigatórios): `id`, `definition_th`.
Campos v1 opcionais: `word_th_id`, `source`, `created_at`.
Campos v2 (opcionais, migração gradual): `pos_th`, `pos_eng`, `definition_eng`.

O schema é fechado: qualquer campo extra invalida o Sense.
"""

from __future__ import annotations

from typing import Any

from .schema import FieldSpec, ObjectSchema, ValidationResult, integer, iso_datetime, string


SENSE_SCHEMA = ObjectSchema(
    name="Sense",
    fields=(
        FieldSpec("id", integer(minimum=0), required=True),
        FieldSpec("definition_th", string(non_empty=True), required=True),
        FieldSpec("word_th_id", string()),
        FieldSpec("source", string()),
        FieldSpec("created_at", iso_datetime()),
        FieldSpec("pos_th", string(), description="Thai part of speech, e.g. คำนาม"),
        FieldSpec("pos_eng", string(), description="English part of speech, e.g. noun"),
        FieldSpec("definition_eng", string()),
    ),
)

_V2_FIELDS = ("pos_th", "pos_eng", "definition_eng")


def validate_sense(candidate: Any) -> ValidationResult:
    return SENSE_SCHEMA.validate(candidate)


def is_complete_sense(candidate: Any) -> bool:
    """True quando o Sense é válido e todos os campos v2 estão preenchidos."""
    result = validate_sense(candidate)
    if not result.ok:
        return False
    data = result.value or {}
    return all(isinstance(data.get(f), str) and data[f].strip() for f in _V2_FIELDS)


def detect_sense_version(candidate: Any) -> str:
    """Retorna 'v2', 'v1' ou 'unknown'."""
    result = validate_sense(candidate)
    if not result.ok:
        return "unknown"
    data = result.value or {}
    return "v2" if any(data.get(f) for f in _V2_FIELDS) else "v1"
