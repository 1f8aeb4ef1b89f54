# tests/core/engine/test_classifier.py
"""
Testes do classificador de falhas de Step.

A regra é uma tabela pequena; cada linha vira um caso parametrizado.
"""

import pytest

from thai_lexflow.core.contract.errors import CorruptContext, InvalidStepOutput
from thai_lexflow.core.engine.classifier import classify_failure, underlying_cause
from thai_lexflow.core.exceptions import PreconditionError, StepExecutionError, UnknownFunctionError
from thai_lexflow.core.pipeline.types import StepState


TOLERATED = StepState.TOLERATED_FAILURE
FATAL = StepState.FATAL_FAILURE


@pytest.mark.parametrize(
    "error, tolerant, expected",
    [
        (StepExecutionError("x"), True, TOLERATED),
        (StepExecutionError("x"), False, FATAL),
        (PreconditionError("x", field="word_th"), True, TOLERATED),
        (PreconditionError("x", field="word_th"), False, FATAL),
        (InvalidStepOutput("x"), True, FATAL),
        (CorruptContext("x"), True, FATAL),
        (UnknownFunctionError("x"), True, FATAL),
        (RuntimeError("x"), True, FATAL),
    ],
)
def test_classification_table(make_step, error, tolerant, expected):
    step = make_step("s", acceptable_failure=tolerant)
    assert classify_failure(step, error) is expected


def test_underlying_cause_unwraps_execution_error():
    original = KeyError("word")
    assert underlying_cause(StepExecutionError("wrapped", cause=original)) is original


def test_underlying_cause_keeps_other_errors():
    err = PreconditionError("missing", field="g2p")
    assert underlying_cause(err) is err
    bare = StepExecutionError("no cause")
    assert underlying_cause(bare) is bare
