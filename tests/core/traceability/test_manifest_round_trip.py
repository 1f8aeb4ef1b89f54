# tests/core/traceability/test_manifest_round_trip.py
"""
Testes de persistência e round-trip do Manifest (traceability).

Este módulo valida que o Manifest pode ser serializado, persistido e
recarregado sem perda estrutural.

Os testes asseguram que:
- o Manifest pode ser salvo em formato JSON
- a estrutura principal é preservada após reload
- texto tailandês é gravado sem escape
- diretórios intermediários são criados

Decisões arquiteturais:
    - O formato de armazenamento é JSON determinístico
    - APIs de persistência são separadas da lógica de execução

Invariantes:
    - `run_id` e hashes são preservados entre save/load
    - `events` é sempre uma lista e `steps` um dicionário após reload

Limites explícitos:
    - Não valida compatibilidade entre versões diferentes de schema
"""
import json
import pytest
from datetime import datetime, timezone
from pathlib import Path

try:
    from thai_lexflow.core.traceability.manifest import (
        add_event,
        create_manifest,
        load_manifest,
        save_manifest,
        step_finished,
        step_started,
    )
except Exception as e:
    create_manifest = None
    save_manifest = None
    load_manifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que as APIs de persistência do Manifest estejam disponíveis para os testes.

    Limites explícitos:
        - Não valida comportamento das APIs
        - Não substitui testes funcionais de persistência
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing manifest persistence APIs. Implement:
- save_manifest(manifest, path)
- load_manifest(path)
Import error: {_IMPORT_ERR}
""")


def test_manifest_round_trip(tmp_path: Path):
    _require_imports()
    ts = datetime(2026, 1, 16, tzinfo=timezone.utc)
    m = create_manifest(
        run_id="run-rt",
        order_name="episode_processing",
        started_at=ts,
        lexflow_version="0.1.0",
        order_hash="o" * 64,
        config_hash="c" * 64,
    )
    add_event(m, event_type="run_started", ts=ts, payload={"steps": ["orst"]})
    step_started(m, step_name="orst", function_name="fetch_orst_senses", ts=ts)
    step_finished(m, step_name="orst", ts=ts, state="tolerated_failure", error="NotFoundError: 'สมมติ'")

    path = tmp_path / "runs" / "run-rt" / "manifest.json"
    save_manifest(m, path)
    assert path.exists()

    raw = path.read_text(encoding="utf-8")
    assert "สมมติ" in raw
    assert json.loads(raw)["version"] == 1

    loaded = load_manifest(path)
    assert loaded.run["run_id"] == "run-rt"
    assert loaded.inputs == {"order_hash": "o" * 64, "config_hash": "c" * 64}
    assert isinstance(loaded.events, list)
    assert isinstance(loaded.steps, dict)
    assert loaded.step_states == {"orst": "tolerated_failure"}
    assert loaded.to_dict() == m.to_dict()


def test_load_missing_manifest_raises(tmp_path: Path):
    _require_imports()
    with pytest.raises(FileNotFoundError):
        load_manifest(tmp_path / "absent.json")
