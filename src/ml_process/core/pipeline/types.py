"""
Tipos canônicos do pipeline do ml-process.

Componentes principais:
    - NodeStatus   → estado de prontidão de um Step Node no grafo
    - ResultStatus → desfecho de um Step em uma execução (RunResult)
    - StepResult   → estrutura imutável de resultado de execução

Os dois enums são deliberadamente separados: `NodeStatus` é o estado
autoritativo de prontidão mantido pelo StatusPropagator, enquanto
`ResultStatus` é o que o executor reporta ao final da run.

Invariantes:
    - Enums possuem valores textuais canônicos e estáveis
    - StepResult é imutável
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class NodeStatus(str, Enum):
    """
    Estado de um Step Node.

    Transições permitidas:
        - WAITING ⇄ PENDING conforme pré-requisitos concluem ou novas
          dependências são adicionadas
        - PENDING → DONE quando a unidade conclui
        - PENDING → FAILED quando a unidade falha (decisão do executor)

    DONE e FAILED são terminais: um nó nunca regride a partir deles.
    """
    PENDING = "pending"
    WAITING = "waiting"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NodeStatus.DONE, NodeStatus.FAILED)


class ResultStatus(str, Enum):
    """
    Desfecho final de um Step em uma execução.

    Estados definidos:
        - SUCCESS: a unidade concluiu e o nó foi marcado DONE
        - SKIPPED: o nó não foi executado (pré-requisito falhou, fail-fast
          interrompeu a run ou a seção foi desabilitada)
        - FAILED: a unidade levantou erro
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um Step Node.

    Campos:
        - step_id: id do Step Node
        - unit_name: nome da unidade plugável executada
        - status: desfecho final
        - summary: resumo textual
        - order: ordem topológica do nó no momento da execução
        - metrics: métricas numéricas reportadas pela unidade
        - warnings: avisos não fatais
        - artifacts: artefatos produzidos (caminhos)
        - payload: dados adicionais (ex.: `payload["error"]` em falhas)
    """
    step_id: str
    unit_name: str
    status: ResultStatus
    summary: str
    order: int = -1
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, str] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)
