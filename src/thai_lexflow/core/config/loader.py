"""
Loader canônico de configuração do thai_lexflow.

A configuração é resolvida a partir de:
    - um arquivo de defaults (por padrão, `resources/defaults.yaml` do pacote)
    - um arquivo local de overrides (opcional)

Responsabilidades do módulo:
    - Carregar arquivos de configuração em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver a configuração final via deep-merge determinístico
    - Validar as chaves conhecidas (`pipeline`, `engine`, `episode`)

Invariantes:
    - O arquivo de defaults é obrigatório
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - Override local ausente no disco é ignorado

Limites explícitos:
    - Não persiste configuração ou hash
    - Não interage com o executor
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


DEFAULTS_PATH = Path(__file__).resolve().parents[2] / "resources" / "defaults.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
OBSERVER_KINDS = ("none", "logging", "recording")

PathLike = Union[str, Path]


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise DefaultsNotFoundError(f"Config file not found: {path}", details={"path": str(path)})

    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        raise UnsupportedConfigFormatError(f"Unsupported config format: {path.suffix}", details={"path": str(path)})

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root must be a mapping, got: {type(data).__name__}",
            details={"path": str(path)},
        )
    return data


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise InvalidConfigValueError(f"'{name}' must be a mapping", details={"key": name})
    return section


def _bad(key: str, expected: str, value: Any) -> InvalidConfigValueError:
    return InvalidConfigValueError(
        f"Invalid value for '{key}': expected {expected}, got {value!r}",
        details={"key": key, "expected": expected},
    )


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Verifica os tipos e domínios das chaves conhecidas; retorna `config`."""
    pipeline = _section(config, "pipeline")
    order_path = pipeline.get("order_path")
    if order_path is not None and not isinstance(order_path, str):
        raise _bad("pipeline.order_path", "string or null", order_path)

    engine = _section(config, "engine")
    level = engine.get("log_level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise _bad("engine.log_level", f"one of {LOG_LEVELS}", level)
    observer = engine.get("observer", "none")
    if observer not in OBSERVER_KINDS:
        raise _bad("engine.observer", f"one of {OBSERVER_KINDS}", observer)

    episode = _section(config, "episode")
    for key in ("subtitle_steps", "word_steps"):
        value = episode.get(key)
        if value is not None and (
            not isinstance(value, list) or not all(isinstance(v, str) and v for v in value)
        ):
            raise _bad(f"episode.{key}", "list of step names or null", value)
    concurrency = episode.get("max_concurrency", 1)
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise _bad("episode.max_concurrency", "integer >= 1", concurrency)
    skip = episode.get("skip_complete_words", True)
    if not isinstance(skip, bool):
        raise _bad("episode.skip_complete_words", "boolean", skip)
    return config


def load_config(
    *,
    defaults_path: Optional[PathLike] = None,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva.

    Args:
        defaults_path: arquivo de defaults; None usa o arquivo do pacote.
        local_path: override local opcional (ignorado se não existir).

    Raises:
        DefaultsNotFoundError, UnsupportedConfigFormatError,
        InvalidConfigRootTypeError, ConfigTypeConflictError,
        InvalidConfigValueError
    """
    defaults_file = Path(defaults_path) if defaults_path is not None else DEFAULTS_PATH
    effective = _load_file(defaults_file)

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return validate_config(effective)
