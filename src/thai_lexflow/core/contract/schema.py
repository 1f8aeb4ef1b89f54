"""
Camada de contratos estruturais do thai_lexflow.

Este módulo implementa a verificação estrutural usada por todo o core:
tipos de campo, schemas de objeto fechados e o resultado discriminado
de validação.

A implementação evita dependências externas (ex.: Pydantic) para manter
o core leve: cada schema é um dado imutável e a validação é uma função
pura que devolve `ValidationResult` em vez de levantar exceção.

Princípios fundamentais:
    - Validação nunca levanta para entrada inválida; devolve `issues`
    - Schemas fechados rejeitam qualquer campo não declarado
    - O valor validado é sempre uma cópia independente do candidato

Limites explícitos:
    - Não conhece o schema do contexto do pipeline (ver `context`)
    - Não decide se uma violação é fatal (responsabilidade do executor)
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ContractIssue:
    """Uma violação pontual: caminho pontilhado, mensagem e código estável."""

    path: str
    message: str
    code: str = "invalid_type"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "code": self.code}

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """
    Resultado discriminado de validação.

    Campos:
        - ok: True quando não há issues
        - value: cópia validada do candidato (None quando ok=False)
        - issues: violações encontradas, na ordem de detecção
    """

    ok: bool
    value: Optional[Dict[str, Any]] = None
    issues: Tuple[ContractIssue, ...] = ()

    def describe(self) -> str:
        return "; ".join(str(i) for i in self.issues)


def join_path(base: str, key: Any) -> str:
    return f"{base}.{key}" if base else str(key)


def is_blank(value: Any) -> bool:
    """None e strings vazias/só espaços contam como ausentes."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True)
class FieldType:
    """Tipo de campo: rótulo legível + verificador `(value, path) -> issues`."""

    label: str
    checker: Callable[[Any, str], List[ContractIssue]] = field(repr=False, compare=False)

    def check(self, value: Any, path: str) -> List[ContractIssue]:
        return self.checker(value, path)


def string(*, non_empty: bool = False) -> FieldType:
    def _check(value: Any, path: str) -> List[ContractIssue]:
        if not isinstance(value, str):
            return [ContractIssue(path, f"expected string, got {type(value).__name__}")]
        if non_empty and not value.strip():
            return [ContractIssue(path, "must be a non-empty string", code="too_small")]
        return []

    return FieldType("non-empty string" if non_empty else "string", _check)


def integer(*, minimum: Optional[int] = None) -> FieldType:
    def _check(value: Any, path: str) -> List[ContractIssue]:
        if isinstance(value, bool) or not isinstance(value, int):
            return [ContractIssue(path, f"expected integer, got {type(value).__name__}")]
        if minimum is not None and value < minimum:
            return [ContractIssue(path, f"must be >= {minimum}", code="too_small")]
        return []

    return FieldType("integer", _check)


def number() -> FieldType:
    def _check(value: Any, path: str) -> List[ContractIssue]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return [ContractIssue(path, f"expected number, got {type(value).__name__}")]
        return []

    return FieldType("number", _check)


def iso_datetime() -> FieldType:
    def _check(value: Any, path: str) -> List[ContractIssue]:
        if not isinstance(value, str):
            return [ContractIssue(path, f"expected ISO-8601 datetime string, got {type(value).__name__}")]
        candidate = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            datetime.fromisoformat(candidate)
        except ValueError:
            return [ContractIssue(path, "invalid ISO-8601 datetime", code="invalid_string")]
        return []

    return FieldType("datetime", _check)


def list_of(item: FieldType) -> FieldType:
    def _check(value: Any, path: str) -> List[ContractIssue]:
        if not isinstance(value, (list, tuple)):
            return [ContractIssue(path, f"expected list, got {type(value).__name__}")]
        issues: List[ContractIssue] = []
        for idx, element in enumerate(value):
            issues.extend(item.check(element, join_path(path, idx)))
        return issues

    return FieldType(f"list[{item.label}]", _check)


def nested(schema: "ObjectSchema") -> FieldType:
    return FieldType(schema.name, lambda value, path: schema.issues_for(value, path))


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: FieldType
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class ObjectSchema:
    """
    Schema de objeto (mapping) com conjunto de campos declarado.

    Decisões arquiteturais:
        - `closed=True` rejeita campos não declarados (modo padrão)
        - Campos não obrigatórios podem estar ausentes, nunca com tipo errado
        - `None` explícito em campo opcional é tratado como tipo inválido

    Invariantes:
        - Nomes de campos são únicos no schema
        - `validate` nunca muta o candidato
    """

    name: str
    fields: Tuple[FieldSpec, ...]
    closed: bool = True

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"schema '{self.name}' declares duplicate fields")

    @property
    def field_names(self) -> FrozenSet[str]:
        return frozenset(f.name for f in self.fields)

    def get(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def issues_for(self, candidate: Any, path: str = "") -> List[ContractIssue]:
        if not isinstance(candidate, Mapping):
            return [ContractIssue(path, f"{self.name} must be a mapping, got {type(candidate).__name__}")]

        issues: List[ContractIssue] = []
        known = self.field_names
        if self.closed:
            for key in candidate:
                if key not in known:
                    issues.append(ContractIssue(join_path(path, key), "unrecognized field", code="unrecognized_key"))

        for spec in self.fields:
            fpath = join_path(path, spec.name)
            if spec.name not in candidate:
                if spec.required:
                    issues.append(ContractIssue(fpath, "required field is missing", code="missing"))
                continue
            issues.extend(spec.type.check(candidate[spec.name], fpath))
        return issues

    def validate(self, candidate: Any) -> ValidationResult:
        issues = self.issues_for(candidate)
        if issues:
            return ValidationResult(ok=False, value=None, issues=tuple(issues))
        return ValidationResult(ok=True, value=deepcopy(dict(candidate)), issues=())
