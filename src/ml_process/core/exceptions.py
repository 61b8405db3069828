"""
ml-process: Exceções canônicas (v1)

Este módulo define as exceções tipadas internas do ml-process.

Objetivo:
- Permitir que grafo, planner, expander e unidades levantem erros semânticos
- Facilitar o mapeamento determinístico para ErrorPayload (core.errors)
- Evitar ValueError/RuntimeError genéricos em invariantes críticas

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Nenhuma mensagem voltada ao usuário final é formatada aqui.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class MlProcessException(Exception):
    """Base class para exceções internas do ml-process.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Grafo / Planejamento
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CycleDetectedError(MlProcessException):
    """Uma passada do scheduler não ordenou nenhum nó e ainda restam nós sem ordem.

    `details["stuck"]` contém os ids (ordenados) dos nós que ficaram sem ordem.
    """

    @property
    def stuck(self) -> List[str]:
        return list(self.details.get("stuck", []))


@dataclass(frozen=True)
class OrderConflictError(MlProcessException):
    """Aresta entre nós já ordenados viola `order(P) < order(D)`.

    `details["conflicts"]` lista pares `[pré-requisito, dependente]`.
    """


@dataclass(frozen=True)
class DuplicateIdError(MlProcessException):
    """Colisão de id no grafo (violação de invariante interna)."""


@dataclass(frozen=True)
class UnknownStepError(MlProcessException):
    """Referência a um nó que não pertence ao grafo."""


@dataclass(frozen=True)
class InvalidExpansionTargetError(MlProcessException):
    """Índice de entrada fora do intervalo durante expansão de slot (`***`)."""


@dataclass(frozen=True)
class AmbiguousProducerError(MlProcessException):
    """Mais de um nó produz o mesmo artefato concreto."""


@dataclass(frozen=True)
class ScenarioError(MlProcessException):
    """Cenário estruturalmente inválido ou impossível de expandir."""


# ---------------------------------------------------------------------------
# Unidades plugáveis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnknownUnitError(MlProcessException):
    """Nome de unidade ausente do UnitRegistry."""


@dataclass(frozen=True)
class UnitConfigurationError(MlProcessException):
    """Parâmetros ou número de entradas/saídas inválidos para a unidade."""


@dataclass(frozen=True)
class UnitExecutionError(MlProcessException):
    """Falha durante `perform()` de uma unidade (I/O, dados inválidos)."""
