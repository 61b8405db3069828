# tests/core/traceability/test_manifest_create.py
"""
Testes de criação do Run Manifest.

Os testes asseguram que:
- o Manifest nasce com os campos mínimos de identificação da run
- `steps` e `events` começam vazios (nenhum evento implícito)
- timestamps sem timezone são interpretados como UTC

Limites explícitos:
    - Não valida Event Log (ver test_manifest_event_log.py)
    - Não valida persistência (ver test_manifest_round_trip.py)
"""

import pytest
from datetime import datetime, timezone

try:
    from ml_process.core.traceability.manifest import RunManifest, create_manifest
except Exception as e:
    create_manifest = None
    RunManifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o módulo de Manifest esteja disponível para os testes.

    Falha imediatamente quando `core.traceability.manifest` ou seus
    símbolos públicos não podem ser importados.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing manifest module. Implement:\n"
            "- src/ml_process/core/traceability/manifest.py\n"
            "Expected exports: create_manifest, RunManifest\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_create_manifest_has_minimum_fields():
    """
    Verifica a estrutura mínima canônica de um Manifest recém-criado.

    Invariantes:
        - `run.run_id`, `run.started_at` e `run.ml_process_version` presentes
        - `inputs.config_hash` e `inputs.scenario_hash` presentes
        - `steps` vazio e `events` vazio
    """
    _require_imports()

    m = create_manifest(
        run_id="run-001",
        started_at=datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc),
        ml_process_version="0.1.0",
        config_hash="c" * 64,
        scenario_hash="s" * 64,
    )

    assert isinstance(m, RunManifest)
    data = m.to_dict()
    assert data["run"] == {
        "run_id": "run-001",
        "started_at": "2026-01-16T12:00:00+00:00",
        "ml_process_version": "0.1.0",
    }
    assert data["inputs"] == {"config_hash": "c" * 64, "scenario_hash": "s" * 64}
    assert data["steps"] == {}
    assert data["events"] == []


def test_naive_timestamp_is_treated_as_utc():
    _require_imports()
    m = create_manifest(
        run_id="run-naive",
        started_at=datetime(2026, 1, 16, 12, 0, 0),
        ml_process_version="0.1.0",
        config_hash="c" * 64,
    )
    assert m.run["started_at"].endswith("+00:00")
    assert m.inputs["scenario_hash"] is None
