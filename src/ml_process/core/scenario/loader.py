"""
Leitura de cenários de experimento.

Um cenário declara seções nomeadas; cada seção vira um template de Step
Node no plano:

    steps:
      extract:
        unit: rel_pos
        params: {word_col: word_no, pred_col: pred_no}
        inputs: [raw.csv]
        outputs: [feat.csv]

Regras:
    - `unit` é obrigatório e não vazio
    - `params` é um mapa; valores escalares são convertidos para string
    - `inputs` / `outputs` são listas de strings (aceita-se string única)
    - Nomes de seção viram o prefixo dos ids (`extract[1]`)
    - A ordem de declaração é preservada

Erros estruturais levantam `ScenarioError` com o nome da seção em
`details`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from ml_process.core.config import load_mapping_file
from ml_process.core.exceptions import ScenarioError


@dataclass(frozen=True)
class StepTemplate:
    """Seção de cenário ainda não materializada no grafo."""

    name: str
    unit: str
    params: Dict[str, str] = field(default_factory=dict)
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)


def _as_str_list(section: str, key: str, value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ScenarioError(
            f"Section '{section}': '{key}' must be a list of strings",
            details={"section": section, "key": key},
        )
    return list(value)


def _parse_section(name: str, raw: Any) -> StepTemplate:
    if not isinstance(raw, dict):
        raise ScenarioError(
            f"Section '{name}' must be a mapping",
            details={"section": name, "type": type(raw).__name__},
        )

    unit = raw.get("unit")
    if not isinstance(unit, str) or not unit.strip():
        raise ScenarioError(
            f"Section '{name}': 'unit' is required",
            details={"section": name},
            hint="Declare a unidade plugável, ex.: unit: data_merger",
        )

    params = raw.get("params") or {}
    if not isinstance(params, dict):
        raise ScenarioError(
            f"Section '{name}': 'params' must be a mapping",
            details={"section": name},
        )
    for k, v in params.items():
        if isinstance(v, (dict, list)):
            raise ScenarioError(
                f"Section '{name}': parameter '{k}' must be a scalar",
                details={"section": name, "parameter": str(k)},
            )

    return StepTemplate(
        name=name,
        unit=unit.strip(),
        params={str(k): ("" if v is None else str(v)) for k, v in params.items()},
        inputs=_as_str_list(name, "inputs", raw.get("inputs")),
        outputs=_as_str_list(name, "outputs", raw.get("outputs")),
    )


def parse_scenario(data: Dict[str, Any]) -> List[StepTemplate]:
    """Converte o mapa de cenário em templates, na ordem de declaração."""
    if not isinstance(data, dict):
        raise ScenarioError(
            "Scenario root must be a mapping",
            details={"type": type(data).__name__},
        )
    steps = data.get("steps")
    if not isinstance(steps, dict) or not steps:
        raise ScenarioError(
            "Scenario must declare a non-empty 'steps' mapping",
            details={"keys": sorted(str(k) for k in data)},
        )

    templates = []
    for name, raw in steps.items():
        if not isinstance(name, str) or not name.strip() or "#" in name:
            raise ScenarioError(
                f"Invalid section name: {name!r}",
                details={"section": str(name)},
                hint="Nomes de seção não podem ser vazios nem conter '#'",
            )
        templates.append(_parse_section(name.strip(), raw))
    return templates


def load_scenario(path: Union[str, Path]) -> List[StepTemplate]:
    """Lê e valida um cenário YAML/JSON."""
    return parse_scenario(load_mapping_file(path))
