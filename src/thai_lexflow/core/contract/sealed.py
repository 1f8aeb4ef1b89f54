"""
Construtores selados do contexto do pipeline.

`SeededInput` (contexto de entrada aceito) e `ProcessedContext` (contexto
final de uma execução) só podem ser produzidos por `make_seeded_input` e
`make_processed_context`. Ambos validam o dado contra o schema canônico;
a instanciação direta das classes levanta `TypeError`.

Todo dado externo (banco, API, arquivos, respostas de modelo) entra no
pipeline como `Any` e precisa passar por um destes portões.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping

from .context import parse_context


_SEAL = object()


class _SealedContext(Mapping[str, Any]):
    """Mapping somente-leitura sobre um contexto já validado."""

    __slots__ = ("_data",)

    def __init__(self, data: Dict[str, Any], *, _seal: object = None) -> None:
        if _seal is not _SEAL:
            raise TypeError(
                f"{type(self).__name__} cannot be constructed directly; "
                f"use the matching make_* function"
            )
        self._data = data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _SealedContext):
            return type(self) is type(other) and self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def as_dict(self) -> Dict[str, Any]:
        return parse_context(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


class SeededInput(_SealedContext):
    """Contexto de entrada validado (portão: `make_seeded_input`)."""

    __slots__ = ()


class ProcessedContext(_SealedContext):
    """Contexto final validado (portão: `make_processed_context`)."""

    __slots__ = ()


def make_seeded_input(data: Any) -> SeededInput:
    return SeededInput(parse_context(data, where="seeded input"), _seal=_SEAL)


def make_processed_context(data: Any) -> ProcessedContext:
    return ProcessedContext(parse_context(data, where="processed context"), _seal=_SEAL)
