"""
Contrato canônico das unidades plugáveis.

Uma unidade é a computação concreta por trás de um Step Node. Ela é
construída a partir de `(node_id, parameters, inputs, outputs)`, valida na
construção as contagens de entradas/saídas e os parâmetros que espera, e
expõe uma única operação `perform(ctx)`.

Princípios fundamentais:
    - Unidades não conhecem o grafo, o planner ou o executor
    - Unidades nunca alteram `status` ou `order` de nós
    - Falhas são exceções tipadas; o executor decide o que fazer

Invariantes:
    - Parâmetros são strings (opacos para o grafo); conversão tipada é
      responsabilidade da unidade (`get_int`, `get_float`, ...)
    - `perform` é chamado no máximo uma vez por instância

Limites explícitos:
    - Não define retry
    - Não registra eventos no Manifest
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ml_process.core.exceptions import UnitConfigurationError
from ml_process.core.pipeline.context import RunContext


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@runtime_checkable
class Unit(Protocol):
    """
    Interface mínima de uma unidade plugável.

    `perform` pode devolver um dicionário de métricas (reportado em
    `StepResult.metrics`) ou None.
    """

    id: str
    unit_name: str
    parameters: Dict[str, str]
    inputs: List[str]
    outputs: List[str]

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        ...


class BaseUnit:
    """
    Base para unidades concretas.

    Copia os argumentos e chama `validate()`, que as subclasses
    sobrescrevem para checar contagens e parâmetros. Erros de validação
    são `UnitConfigurationError`.
    """

    unit_name: str = ""

    def __init__(
        self,
        node_id: str,
        parameters: Optional[Mapping[str, str]] = None,
        inputs: Optional[Sequence[str]] = None,
        outputs: Optional[Sequence[str]] = None,
    ):
        self.id = node_id
        self.parameters: Dict[str, str] = {str(k): str(v) for k, v in (parameters or {}).items()}
        self.inputs: List[str] = list(inputs or [])
        self.outputs: List[str] = list(outputs or [])
        self.validate()

    def validate(self) -> None:
        pass

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    # -----------------------------
    # Helpers de validação
    # -----------------------------
    def _config_error(self, message: str, **details: Any) -> UnitConfigurationError:
        return UnitConfigurationError(
            message,
            details={"step_id": self.id, "unit": self.unit_name, **details},
        )

    def require_io(self, *, min_inputs: int = 1, min_outputs: int = 1) -> None:
        if len(self.inputs) < min_inputs or len(self.outputs) < min_outputs:
            raise self._config_error(
                f"{self.unit_name} needs at least {min_inputs} input(s) and {min_outputs} output(s)",
                inputs=len(self.inputs),
                outputs=len(self.outputs),
            )

    def require_params(self, *names: str) -> None:
        missing = [n for n in names if n not in self.parameters]
        if missing:
            raise self._config_error(
                f"{self.unit_name}: missing parameter(s) {missing}",
                missing=missing,
            )

    # -----------------------------
    # Parâmetros tipados
    # -----------------------------
    def get_str(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.parameters.get(name, default)

    def get_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        raw = self.parameters.get(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise self._config_error(
                f"{self.unit_name}: parameter '{name}' must be an integer",
                parameter=name,
                value=raw,
            ) from None

    def get_float(self, name: str, default: Optional[float] = None) -> Optional[float]:
        raw = self.parameters.get(name)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError:
            raise self._config_error(
                f"{self.unit_name}: parameter '{name}' must be a number",
                parameter=name,
                value=raw,
            ) from None

    def get_bool(self, name: str, default: bool = False) -> bool:
        raw = self.parameters.get(name)
        if raw is None:
            return default
        v = raw.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
        raise self._config_error(
            f"{self.unit_name}: parameter '{name}' must be a boolean",
            parameter=name,
            value=raw,
        )

    def get_list(self, name: str, sep: str = " ") -> List[str]:
        """Valores separados por `sep` (vazio → lista vazia)."""
        raw = self.parameters.get(name)
        if raw is None:
            return []
        return [p for p in (s.strip() for s in raw.split(sep)) if p]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, inputs={self.inputs}, outputs={self.outputs})"
