# tests/core/config/test_hashing.py
"""
Testes do hash canônico usado para identificar configuração e cenário no
Manifest (compute_config_hash).

Os testes asseguram que:
- a mesma configuração efetiva tem o mesmo hash, independente da ordem
  das chaves e do formato do arquivo (YAML ou JSON)
- um override que muda a configuração efetiva muda o hash
- o hash do cenário chega ao Manifest em `inputs.scenario_hash` e
  sobrevive ao save/load

Limites explícitos:
    - Não valida o algoritmo de hashing em si, só estabilidade e sensibilidade
"""

import json
from datetime import datetime, timezone

import pytest

try:
    from ml_process.core.config import compute_config_hash, load_config, load_mapping_file
    from ml_process.core.scenario import load_scenario
    from ml_process.core.traceability.manifest import (
        create_manifest,
        load_manifest,
        save_manifest,
    )
except Exception as e:
    compute_config_hash = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing hashing APIs. Implement:
- src/ml_process/core/config/hashing.py (compute_config_hash)
Import error: {_IMPORT_ERR}
""")


SCENARIO_YAML = """\
steps:
  extract:
    unit: rel_pos
    params: {word_col: word_no, pred_col: pred_no}
    inputs: [raw.csv]
    outputs: [feat.csv]
  train:
    unit: classifier
    params: {estimator: knn, n_neighbors: 3}
    inputs: [feat.csv, test.csv]
    outputs: [pred.csv]
"""


def test_hash_ignores_key_order_and_file_format(tmp_path, project_like_config_defaults_yaml):
    _require_imports()
    yaml_path = tmp_path / "defaults.yaml"
    yaml_path.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    config = load_config(defaults_path=str(yaml_path))

    reordered = {k: config[k] for k in reversed(list(config))}
    json_path = tmp_path / "defaults.json"
    json_path.write_text(json.dumps(reordered), encoding="utf-8")

    digest = compute_config_hash(config)
    assert len(digest) == 64
    assert compute_config_hash(load_config(defaults_path=str(json_path))) == digest


def test_override_changes_hash(
    tmp_path, project_like_config_defaults_yaml, project_like_config_local_yaml
):
    _require_imports()
    defaults = tmp_path / "defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local = tmp_path / "local.yaml"
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    base = compute_config_hash(load_config(defaults_path=str(defaults)))
    overridden = compute_config_hash(
        load_config(defaults_path=str(defaults), local_path=str(local))
    )

    assert base != overridden


def test_scenario_hash_is_recorded_in_manifest(tmp_path):
    _require_imports()
    scenario_path = tmp_path / "scenario.yaml"
    scenario_path.write_text(SCENARIO_YAML, encoding="utf-8")
    scenario = load_mapping_file(scenario_path)
    assert [t.name for t in load_scenario(scenario_path)] == ["extract", "train"]

    scenario_hash = compute_config_hash(scenario)
    m = create_manifest(
        run_id="run-hash",
        started_at=datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc),
        ml_process_version="0.1.0",
        config_hash=compute_config_hash({}),
        scenario_hash=scenario_hash,
    )
    out = tmp_path / "manifest.json"
    save_manifest(m, out)

    assert load_manifest(out).inputs["scenario_hash"] == scenario_hash

    changed = load_mapping_file(scenario_path)
    changed["steps"]["train"]["params"] = {"estimator": "knn"}
    assert compute_config_hash(changed) != scenario_hash


def test_non_mapping_is_rejected():
    _require_imports()
    with pytest.raises(TypeError):
        compute_config_hash(["engine"])
