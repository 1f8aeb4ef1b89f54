import asyncio
from pathlib import Path

import pytest
import yaml

from thai_lexflow.core.config.hashing import compute_config_hash, compute_order_hash
from thai_lexflow.core.config.loader import load_config
from thai_lexflow.core.engine.executor import Executor, execute
from thai_lexflow.core.exceptions import PipelineAbortedError, StepExecutionError
from thai_lexflow.core.pipeline.types import StepState
from thai_lexflow.core.traceability.events import ManifestObserver
from thai_lexflow.core.traceability.manifest import load_manifest, save_manifest
from thai_lexflow.services.collaborators import NotFoundError
from thai_lexflow.services.episode import EpisodeProcessor
from thai_lexflow.services.persistence import InMemoryWordStore, SubtitleRecord
from thai_lexflow.workflow import WORD_STEPS


def _run(order, registry, context, steps=None, observer=None):
    return asyncio.run(execute(order, context, steps, functions=registry, observer=observer))


def test_tokenize_only(canonical_order, registry):
    result = _run(canonical_order, registry, {"thaiText": "กินข้าว"}, ["tokenize"])

    assert result.final_context["tokens_th"]["tokens"] == ["กิน", "ข้าว"]
    assert [(r.step_name, r.success) for r in result.results] == [("tokenize", True)]
    assert result.final_context["thaiText"] == "กินข้าว"


def test_dictionary_miss_is_tolerated(canonical_order, registry):
    result = _run(canonical_order, registry, {"word_th": "สมมติ"}, ["orst"])

    assert len(result.results) == 1
    orst = result.results[0]
    assert orst.step_name == "orst"
    assert orst.success is False
    assert orst.state is StepState.TOLERATED_FAILURE
    assert isinstance(orst.error, NotFoundError)
    assert not result.final_context.get("orstSenses")
    assert result.final_context["word_th"] == "สมมติ"


def test_full_word_run(canonical_order, registry, stubs):
    result = _run(canonical_order, registry, {"word_th": "กิน"}, WORD_STEPS)

    assert result.succeeded_steps == list(WORD_STEPS)
    final = result.final_context
    assert final["g2p"] == "kin1"
    assert final["phonetic_en"] == "gin"
    assert [s["id"] for s in final["orstSenses"]] == [1]
    assert final["gptMeanings"] == []
    assert final["normalizedSenses"][0]["pos_eng"] == "verb"
    assert stubs["sense_generator"].calls == []


def test_word_missing_from_dictionary_gets_generated_senses(canonical_order, registry):
    result = _run(canonical_order, registry, {"word_th": "สมมติ"}, WORD_STEPS)

    assert result.failed_steps == ["orst"]
    final = result.final_context
    assert "orstSenses" not in final
    assert "phonetic_en" not in final
    assert final["gptMeanings"][0]["source"] == "gpt"
    assert final["normalizedSenses"][0]["definition_eng"] == "meaning of สมมติ"


def test_filter_pulls_dependencies(canonical_order, registry):
    result = _run(canonical_order, registry, {"word_th": "กิน"}, ["phonetic"])
    assert [r.step_name for r in result.results] == ["g2p", "phonetic"]


def test_missing_g2p_aborts_run(canonical_order, registry, stubs):
    with pytest.raises(PipelineAbortedError) as exc:
        _run(canonical_order, registry, {"word_th": "ไม่มี"}, WORD_STEPS)

    err = exc.value
    assert err.step_name == "g2p"
    assert isinstance(err.cause, StepExecutionError)
    assert [(r.step_name, r.state) for r in err.results] == [("g2p", StepState.FATAL_FAILURE)]
    # nenhum Step depois da falha fatal
    assert stubs["dictionary"].calls == []


def test_repeated_runs_are_deterministic(canonical_order, registry):
    executor = Executor(canonical_order, registry)
    first = asyncio.run(executor.run({"word_th": "ข้าว"}, WORD_STEPS))
    second = asyncio.run(executor.run({"word_th": "ข้าว"}, WORD_STEPS))

    assert first.final_context == second.final_context
    assert first.summaries() == second.summaries()
    assert first.run_id != second.run_id


def test_manifest_round_trip(tmp_path: Path, canonical_order, registry):
    config = load_config()
    observer = ManifestObserver(config_hash=compute_config_hash(config))
    _run(canonical_order, registry, {"word_th": "สมมติ"}, WORD_STEPS, observer=observer)

    manifest = observer.manifest
    assert manifest.run["status"] == "finished"
    assert manifest.run["order_name"] == "episode_processing"
    assert manifest.inputs["order_hash"] == compute_order_hash(canonical_order)
    assert manifest.step_states["orst"] == StepState.TOLERATED_FAILURE.value
    assert manifest.step_states["gpt_normalize"] == StepState.SUCCEEDED.value

    path = tmp_path / "runs" / "manifest.json"
    save_manifest(manifest, path)
    restored = load_manifest(path)
    assert restored.to_dict() == manifest.to_dict()


def test_manifest_of_aborted_run(canonical_order, registry):
    observer = ManifestObserver()
    with pytest.raises(PipelineAbortedError):
        _run(canonical_order, registry, {"word_th": "ไม่มี"}, WORD_STEPS, observer=observer)

    assert observer.manifest.run["status"] == "aborted"
    assert observer.manifest.step_states == {"g2p": StepState.FATAL_FAILURE.value}


def _write_local_config(path: Path) -> None:
    config = {
        "engine": {"observer": "recording"},
        "episode": {"max_concurrency": 1, "word_steps": ["g2p", "orst", "gpt-meaning", "gpt_normalize"]},
    }
    path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")


def test_episode_from_local_config(tmp_path: Path, collaborators):
    local = tmp_path / "config.local.yaml"
    _write_local_config(local)
    config = load_config(local_path=local)

    store = InMemoryWordStore(
        subtitles={
            "ep7_1": SubtitleRecord("ep7_1", "กินข้าว สมมติ", 4.0, 6.0),
            "ep7_0": SubtitleRecord("ep7_0", "กินข้าว", 0.5, 2.0),
        }
    )
    processor = EpisodeProcessor.from_config(config, store=store, collaborators=collaborators)
    report = asyncio.run(processor.process_episode("ep7"))

    assert report.subtitles_tokenized == ["ep7_0", "ep7_1"]
    assert report.words_saved == ["กิน", "ข้าว", "สมมติ"]
    # sem o Step phonetic, nenhuma transliteração é gravada
    assert store.words["กิน"].phonetic_en is None
    assert store.words["กิน"].g2p == "kin1"
    assert "run_started" in processor.executor.observer.stages
