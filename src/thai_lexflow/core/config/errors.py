"""
Exceções canônicas da camada de configuração do thai_lexflow.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Violações estruturais são fatais e detectadas antes da execução
    - Mensagens apontam o arquivo ou a chave em conflito
"""

from __future__ import annotations

from thai_lexflow.core.exceptions import LexflowError


class ConfigError(LexflowError):
    """Base das falhas de configuração."""

    default_hint = "Revise o arquivo de configuração (defaults + overrides locais)."


class DefaultsNotFoundError(ConfigError):
    """Arquivo de configuração obrigatório não encontrado."""


class UnsupportedConfigFormatError(ConfigError):
    """Extensão diferente de .yaml, .yml ou .json."""


class InvalidConfigRootTypeError(ConfigError):
    """A raiz do arquivo não é um mapping."""


class ConfigTypeConflictError(ConfigError):
    """Override com tipo incompatível com o valor base na mesma chave."""


class InvalidConfigValueError(ConfigError):
    """Chave conhecida com valor fora do domínio aceito."""
