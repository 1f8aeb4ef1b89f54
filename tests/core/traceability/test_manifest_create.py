# tests/core/traceability/test_manifest_create.py
"""
Testes de criação do Run Manifest.

Este módulo valida que `create_manifest` produz a estrutura mínima
exigida para rastreabilidade de uma execução do pipeline.

Os testes asseguram que:
- metadados da execução estão presentes
- hashes da ordem e da configuração são registrados como inputs
- `steps` inicia como dicionário vazio e `events` como lista vazia
- timestamps são normalizados para UTC

Invariantes:
    - Nenhum evento é emitido implicitamente na criação
    - O Manifest carrega a versão do schema em `to_dict`

Limites explícitos:
    - Não valida persistência (ver test_manifest_round_trip)
"""

import pytest
from datetime import datetime, timedelta, timezone

try:
    from thai_lexflow.core.traceability.manifest import MANIFEST_VERSION, create_manifest
except Exception as e:
    create_manifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que a API de criação do Manifest esteja disponível.

    Decisões arquiteturais:
        - Falha antecipada e explícita em caso de API ausente
        - Não realiza fallback nem lógica alternativa
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"Missing traceability.manifest.create_manifest. Import error: {_IMPORT_ERR}")


def test_create_manifest_has_minimum_fields():
    _require_imports()
    m = create_manifest(
        run_id="run-001",
        order_name="episode_processing",
        started_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        lexflow_version="0.1.0",
        order_hash="a" * 64,
        config_hash="c" * 64,
    )
    data = m.to_dict()

    assert data["version"] == MANIFEST_VERSION
    assert data["run"]["run_id"] == "run-001"
    assert data["run"]["order_name"] == "episode_processing"
    assert data["run"]["started_at"] == "2026-01-16T00:00:00+00:00"
    assert data["run"]["lexflow_version"] == "0.1.0"
    assert data["inputs"] == {"order_hash": "a" * 64, "config_hash": "c" * 64}
    assert data["steps"] == {}
    assert data["events"] == []


def test_started_at_normalized_to_utc():
    _require_imports()
    bangkok = timezone(timedelta(hours=7))
    m = create_manifest(
        run_id="r",
        order_name="o",
        started_at=datetime(2026, 1, 16, 7, 0, 0, tzinfo=bangkok),
        lexflow_version="0.1.0",
        order_hash="h",
    )
    assert m.run["started_at"] == "2026-01-16T00:00:00+00:00"
    assert m.inputs["config_hash"] is None


def test_naive_timestamp_assumed_utc():
    _require_imports()
    m = create_manifest(
        run_id="r",
        order_name="o",
        started_at=datetime(2026, 1, 16, 12, 30, 0),
        lexflow_version="0.1.0",
        order_hash="h",
    )
    assert m.run["started_at"] == "2026-01-16T12:30:00+00:00"
