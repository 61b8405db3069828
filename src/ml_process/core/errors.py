"""
ml-process: Canonical Error Structures (v1)

Este módulo define o payload canônico de erro do ml-process e o catálogo
estável de códigos. Erros de unidade chegam ao executor como exceções e são
convertidos aqui em estruturas:

- explícitas
- serializáveis
- rastreáveis

O core não formata mensagens para o usuário final: o chamador decide como
apresentar o payload.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .exceptions import (
    AmbiguousProducerError,
    CycleDetectedError,
    DuplicateIdError,
    InvalidExpansionTargetError,
    MlProcessException,
    OrderConflictError,
    ScenarioError,
    UnitConfigurationError,
    UnitExecutionError,
    UnknownStepError,
    UnknownUnitError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do ml-process.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Planejamento
CYCLE_DETECTED = "CYCLE_DETECTED"
ORDER_CONFLICT = "ORDER_CONFLICT"
INVALID_EXPANSION_TARGET = "INVALID_EXPANSION_TARGET"
DUPLICATE_ID = "DUPLICATE_ID"
UNKNOWN_STEP = "UNKNOWN_STEP"
AMBIGUOUS_PRODUCER = "AMBIGUOUS_PRODUCER"
SCENARIO_INVALID = "SCENARIO_INVALID"

# Unidades
UNIT_UNKNOWN = "UNIT_UNKNOWN"
UNIT_CONFIGURATION_ERROR = "UNIT_CONFIGURATION_ERROR"
UNIT_EXECUTION_ERROR = "UNIT_EXECUTION_ERROR"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


_CODES = {
    CycleDetectedError: CYCLE_DETECTED,
    OrderConflictError: ORDER_CONFLICT,
    InvalidExpansionTargetError: INVALID_EXPANSION_TARGET,
    DuplicateIdError: DUPLICATE_ID,
    UnknownStepError: UNKNOWN_STEP,
    AmbiguousProducerError: AMBIGUOUS_PRODUCER,
    ScenarioError: SCENARIO_INVALID,
    UnknownUnitError: UNIT_UNKNOWN,
    UnitConfigurationError: UNIT_CONFIGURATION_ERROR,
    UnitExecutionError: UNIT_EXECUTION_ERROR,
}


def error_code_for(exc: BaseException) -> str:
    """Código estável do catálogo para a exceção (ENGINE_EXECUTION_ERROR se desconhecida)."""
    for cls in type(exc).__mro__:
        if cls in _CODES:
            return _CODES[cls]
    return ENGINE_EXECUTION_ERROR


def to_error_payload(exc: BaseException, *, step: Optional[str] = None) -> ErrorPayload:
    """Converte uma exceção em ErrorPayload.

    Regras:
    - MlProcessException: já vem com message/details/hint.
    - Outras exceções: encapsular como ENGINE_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, MlProcessException):
        details = dict(exc.details or {})
        if step is not None:
            details.setdefault("step", step)
        return ErrorPayload(
            type=error_code_for(exc),
            message=exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    return engine_execution_error(
        step=step,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc) or None,
    )


def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique os artefatos de entrada e os parâmetros da unidade. Nenhum retry é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=exc_message or "Falha inesperada durante a execução da unidade",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
