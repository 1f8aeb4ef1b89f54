# tests/conftest.py
"""
Fixtures compartilhados para testes do thai_lexflow.

Este módulo define fixtures reutilizáveis que fornecem:
- colaboradores stub (tokenizador, G2P, transliteração, dicionário,
  geração e normalização de sentidos) com respostas fixas
- a ordem de processamento canônica e o registry de funções ligado
  aos stubs
- uma fábrica de StepDefinition para testes estruturais do engine
- configurações YAML mínimas para o loader

O objetivo destas fixtures é permitir testes do core
(contract, pipeline, engine, config e traceability) e dos serviços sem
depender de:
- rede (dicionário, modelos de linguagem)
- banco de dados
- tokenizadores reais

Decisões arquiteturais:
    - Stubs são classes simples com dicionários de respostas
    - Stubs registram as chamadas recebidas em `calls`
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa pipeline real
    - Nenhuma fixture realiza I/O de rede
    - Dados retornados são determinísticos

Limites explícitos:
    - Não substituir testes de integração com serviços reais
    - Não conter lógica condicional complexa
"""

from typing import Any, Dict, Optional

import pytest

from tests._helpers import (
    StubDictionary,
    StubG2P,
    StubSenseGenerator,
    StubSenseNormalizer,
    StubTokenizer,
    StubTransliterator,
    make_sense,
)


@pytest.fixture
def stubs() -> Dict[str, Any]:
    """
    Conjunto de stubs com respostas para um pequeno vocabulário.

    Vocabulário:
        - "กินข้าว" tokeniza em ["กิน", "ข้าว"]
        - "กิน" e "ข้าว" têm G2P, transliteração e sentidos no dicionário
        - "สมมติ" tem G2P mas não existe no dicionário; o gerador cria um sentido
        - "ไม่มี" não tem G2P (run abortada no Step g2p)
    """
    return {
        "tokenizer": StubTokenizer({"กินข้าว": ["กิน", "ข้าว"], "กินข้าว สมมติ": ["กิน", "ข้าว", " ", "สมมติ"]}),
        "g2p": StubG2P({"กิน": "kin1", "ข้าว": "khaaw2", "สมมติ": "som4 mot2"}),
        "transliterator": StubTransliterator({"kin1": "gin", "khaaw2": "khao"}),
        "dictionary": StubDictionary(
            {
                "กิน": [make_sense(1, "นำอาหารเข้าปาก")],
                "ข้าว": [make_sense(2, "ชื่อหญ้าชนิดหนึ่ง"), make_sense(3, "อาหาร")],
            }
        ),
        "sense_generator": StubSenseGenerator({"สมมติ": [make_sense(7, "ทึกทักเอาว่า", source="gpt")]}),
        "sense_normalizer": StubSenseNormalizer(),
    }


@pytest.fixture
def collaborators(stubs):
    from thai_lexflow.services.collaborators import Collaborators

    return Collaborators(**stubs)


@pytest.fixture
def registry(collaborators):
    from thai_lexflow.workflow.functions import build_function_registry

    return build_function_registry(collaborators)


@pytest.fixture
def canonical_order():
    from thai_lexflow.workflow import CANONICAL_FUNCTIONS, load_processing_order

    return load_processing_order(known_functions=CANONICAL_FUNCTIONS)


# =====================================================
# Fábricas estruturais
# =====================================================

@pytest.fixture
def make_step():
    """
    Fábrica de StepDefinition com defaults mínimos.

    `make_step("a", depends_on=["b"])` cria um Step cuja função de backing
    tem o mesmo nome do Step, salvo quando `function_name` é informado.
    """
    from thai_lexflow.core.pipeline.step import StepContract, StepDefinition

    def _make(
        name: str,
        *,
        function_name: Optional[str] = None,
        depends_on=(),
        acceptable_failure: bool = False,
        required=(),
        optional=(),
        out_required=(),
        out_optional=(),
    ):
        return StepDefinition(
            name=name,
            function_name=function_name or name,
            depends_on=tuple(depends_on),
            acceptable_failure=acceptable_failure,
            input_contract=StepContract(required=tuple(required), optional=tuple(optional)),
            output_contract=StepContract(required=tuple(out_required), optional=tuple(out_optional)),
        )

    return _make


@pytest.fixture
def make_function():
    """Fábrica de BackingFunction a partir de um callable `ctx -> saída`."""
    from thai_lexflow.core.pipeline.registry import BackingFunction

    def _make(name: str, call, *, produces, reads=(), requires=(), check_output=None, to_fields=None):
        kwargs: Dict[str, Any] = {}
        if check_output is not None:
            kwargs["check_output"] = check_output
        if to_fields is not None:
            kwargs["to_fields"] = to_fields
        return BackingFunction(
            name=name,
            call=call,
            produces=tuple(produces),
            reads=tuple(reads),
            requires=tuple(requires),
            **kwargs,
        )

    return _make


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `resources/defaults.yaml` do pacote.

    Fornecido como string para que o teste controle onde o arquivo é
    gravado (`tmp_path`).
    """
    return """\
pipeline:
  order_path: null
engine:
  log_level: INFO
  observer: logging
episode:
  subtitle_steps: [tokenize]
  word_steps: [g2p, phonetic, orst, gpt-meaning, gpt_normalize]
  max_concurrency: 4
  skip_complete_words: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de override local: muda o nível de log e a lista de Steps de palavra."""
    return """\
engine:
  log_level: DEBUG
episode:
  word_steps: [g2p, orst]
  max_concurrency: 2
"""


# =====================================================
# Logging
# =====================================================

@pytest.fixture(autouse=True)
def restore_package_log_level():
    """`EpisodeProcessor.from_config` ajusta o logger do pacote; cada teste parte do mesmo nível."""
    import logging

    logger = logging.getLogger("thai_lexflow")
    level = logger.level
    yield
    logger.setLevel(level)
