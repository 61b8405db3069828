"""
Grafo de dependências entre Step Nodes.

Este módulo define o `DependencyGraph`, dono exclusivo de todos os nós de
um plano. Os nós vivem em uma arena indexada por id e as arestas são
conjuntos de ids guardados nos próprios nós, sempre em pares simétricos.

Responsabilidades do módulo:
    - Gerar ids únicos por grafo (contador thread-safe)
    - Registrar nós e rejeitar colisões de id
    - Adicionar arestas de forma idempotente (`add_dependency`)
    - Remover arestas por prefixo de id (`loose_dependencies`)
    - Aposentar nós (`remove_node`)

Decisões arquiteturais:
    - O contador de ids pertence ao grafo, não ao processo: grafos
      independentes (ex.: em testes) não compartilham estado mutável
    - Arestas referenciam ids, nunca objetos; o grafo resolve ids sob demanda
    - Como as arestas são descobertas (casamento de artefatos) é decisão do
      chamador; o grafo expõe apenas `add_dependency`
    - `lock` é um RLock que o executor segura em volta de mutações feitas
      durante a execução (ver StatusPropagator)

Invariantes:
    - Ids são únicos durante toda a vida do grafo
    - `B in A.prerequisites` se e somente se `A in B.dependents`
    - Um nó com pelo menos um pré-requisito pendente fica WAITING

Limites explícitos:
    - Não detecta ciclos (responsabilidade do planner)
    - Não promove nós para PENDING (responsabilidade do StatusPropagator)
    - Não executa unidades
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ml_process.core.exceptions import CycleDetectedError, DuplicateIdError, UnknownStepError

from .node import StepNode
from .types import NodeStatus


NodeRef = Union[StepNode, str]


class IdGenerator:
    """
    Contador monotônico para ids de Step Nodes.

    Ids têm o formato `"<prefixo>[<n>]"`, ex.: `"train[17]"`. O incremento é
    protegido por lock, então vários threads de planejamento podem criar nós
    concorrentemente sem colisão.
    """

    def __init__(self, start: int = 0):
        self._last = int(start)
        self._lock = threading.Lock()

    @property
    def last(self) -> int:
        return self._last

    def next_id(self, prefix: str) -> str:
        with self._lock:
            self._last += 1
            n = self._last
        return f"{prefix}[{n}]"

    def advance_to(self, value: int) -> None:
        """Garante que o próximo id gerado seja maior que `value`."""
        with self._lock:
            if value > self._last:
                self._last = int(value)


class DependencyGraph:
    """
    Arena de Step Nodes com arestas simétricas por id.

    Todas as operações que recebem um nó aceitam tanto o `StepNode` quanto
    seu id. Um `StepNode` que não seja o objeto registrado no grafo com
    aquele id é rejeitado com `UnknownStepError`.
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self._nodes: Dict[str, StepNode] = {}
        self._ids = id_generator if id_generator is not None else IdGenerator()
        self.lock = threading.RLock()

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------
    @property
    def id_generator(self) -> IdGenerator:
        return self._ids

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        if isinstance(node, StepNode):
            return self._nodes.get(node.id) is node
        return node in self._nodes

    def __iter__(self) -> Iterator[StepNode]:
        return iter(self.nodes())

    def nodes(self) -> List[StepNode]:
        """Nós na ordem de registro."""
        return list(self._nodes.values())

    def get(self, node_id: str) -> StepNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownStepError(
                f"Unknown step id: {node_id}",
                details={"step_id": node_id},
            ) from None

    def resolve(self, node: NodeRef) -> StepNode:
        if isinstance(node, StepNode):
            registered = self._nodes.get(node.id)
            if registered is not node:
                raise UnknownStepError(
                    f"Step node is not registered in this graph: {node.id}",
                    details={"step_id": node.id},
                )
            return node
        return self.get(node)

    def create_node(
        self,
        prefix: str,
        unit_name: str,
        parameters: Optional[Mapping[str, str]] = None,
        inputs: Optional[List[str]] = None,
        outputs: Optional[List[str]] = None,
    ) -> StepNode:
        """
        Cria e registra um nó com id `"<prefix>[<n>]"`.

        Listas e parâmetros são copiados: o chamador pode reutilizar os
        originais sem afetar o nó.
        """
        if not isinstance(prefix, str) or not prefix.strip():
            raise ValueError("step id prefix must be a non-empty string")
        if not isinstance(unit_name, str) or not unit_name.strip():
            raise ValueError("unit_name must be a non-empty string")

        node = StepNode(
            id=self._ids.next_id(prefix.strip()),
            unit_name=unit_name.strip(),
            parameters={str(k): str(v) for k, v in (parameters or {}).items()},
            inputs=list(inputs or []),
            outputs=list(outputs or []),
        )
        return self.add_node(node)

    def add_node(self, node: StepNode) -> StepNode:
        """
        Registra um nó já construído (ex.: uma expansão de template).

        Ids de arestas que o nó já carrega são simetrizados: cada
        pré-requisito passa a listá-lo como dependente e vice-versa, com a
        mesma semântica de `add_dependency`.

        Raises:
            DuplicateIdError: Se já existir nó com o mesmo id.
            UnknownStepError: Se o nó referenciar ids fora do grafo.
        """
        with self.lock:
            if node.id in self._nodes:
                raise DuplicateIdError(
                    f"Duplicate step id: {node.id}",
                    details={"step_id": node.id},
                )
            missing = sorted(
                i for i in (node.prerequisites | node.dependents) if i not in self._nodes
            )
            if missing:
                raise UnknownStepError(
                    f"Step '{node.id}' references unknown steps: {missing}",
                    details={"step_id": node.id, "unknown": missing},
                )

            prerequisites = sorted(node.prerequisites)
            dependents = sorted(node.dependents)
            node.prerequisites = set()
            node.dependents = set()
            self._nodes[node.id] = node

            for pid in prerequisites:
                self._link(node, self._nodes[pid])
            for did in dependents:
                self._link(self._nodes[did], node)
            return node

    def remove_node(self, node: NodeRef) -> StepNode:
        """Desliga o nó de todos os vizinhos e o retira da arena."""
        with self.lock:
            n = self.resolve(node)
            self.loose_dependencies(n, None)
            del self._nodes[n.id]
            return n

    # ------------------------------------------------------------------
    # Arestas
    # ------------------------------------------------------------------
    def _link(self, dependent: StepNode, prerequisite: StepNode) -> bool:
        if dependent.id == prerequisite.id:
            raise CycleDetectedError(
                f"Step cannot depend on itself: {dependent.id}",
                details={"stuck": [dependent.id]},
            )

        added = False
        if prerequisite.id not in dependent.prerequisites:
            dependent.prerequisites.add(prerequisite.id)
            added = True
        if dependent.id not in prerequisite.dependents:
            prerequisite.dependents.add(dependent.id)
            added = True

        # Nova dependência revoga prontidão; nós terminais não regridem.
        if not dependent.status.is_terminal:
            dependent.status = NodeStatus.WAITING
        return added

    def add_dependency(self, dependent: NodeRef, prerequisite: NodeRef) -> bool:
        """
        Registra a aresta `prerequisite → dependent`.

        Idempotente: repetir o mesmo par ordenado não cria aresta nova.
        Sempre coloca o dependente em WAITING (exceto se já for DONE ou
        FAILED), mesmo que seus outros pré-requisitos estejam satisfeitos.

        Returns:
            bool: True se alguma das duas adjacências foi alterada.
        """
        with self.lock:
            return self._link(self.resolve(dependent), self.resolve(prerequisite))

    def loose_dependencies(self, node: NodeRef, id_prefix: Optional[str] = None) -> List[str]:
        """
        Remove toda aresta entre `node` e nós cujo id começa com `id_prefix`.

        As duas direções são removidas, nos dois extremos. Prefixo vazio ou
        None casa com todos os ids, desligando o nó por completo. O status
        do nó não é alterado.

        Returns:
            List[str]: Ids dos vizinhos desligados (ordenados, sem repetição).
        """
        prefix = id_prefix or ""
        with self.lock:
            n = self.resolve(node)
            removed = set()

            for pid in sorted(n.prerequisites):
                if pid.startswith(prefix):
                    n.prerequisites.discard(pid)
                    self._nodes[pid].dependents.discard(n.id)
                    removed.add(pid)

            for did in sorted(n.dependents):
                if did.startswith(prefix):
                    n.dependents.discard(did)
                    self._nodes[did].prerequisites.discard(n.id)
                    removed.add(did)

            return sorted(removed)

    def prerequisites_of(self, node: NodeRef) -> List[StepNode]:
        n = self.resolve(node)
        return [self._nodes[i] for i in sorted(n.prerequisites)]

    def dependents_of(self, node: NodeRef) -> List[StepNode]:
        n = self.resolve(node)
        return [self._nodes[i] for i in sorted(n.dependents)]

    def edges(self) -> List[Tuple[str, str]]:
        """Pares `(pré-requisito, dependente)` ordenados."""
        return sorted(
            (pid, n.id) for n in self._nodes.values() for pid in n.prerequisites
        )

    # ------------------------------------------------------------------
    # Serialização
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_id": self._ids.last,
            "nodes": [n.to_dict() for n in self._nodes.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencyGraph":
        """
        Reconstrói o grafo a partir de `to_dict`.

        Status e ordem são restaurados como estavam; a simetria das arestas
        é verificada em vez de reconstruída.
        """
        graph = cls(IdGenerator(start=int(data.get("last_id", 0))))
        for raw in data.get("nodes") or []:
            node = StepNode.from_dict(raw)
            if node.id in graph._nodes:
                raise DuplicateIdError(
                    f"Duplicate step id: {node.id}",
                    details={"step_id": node.id},
                )
            graph._nodes[node.id] = node

        for node in graph._nodes.values():
            for pid in node.prerequisites:
                other = graph._nodes.get(pid)
                if other is None or node.id not in other.dependents:
                    raise UnknownStepError(
                        f"Asymmetric or dangling edge {pid} -> {node.id}",
                        details={"prerequisite": pid, "dependent": node.id},
                    )
            for did in node.dependents:
                other = graph._nodes.get(did)
                if other is None or node.id not in other.prerequisites:
                    raise UnknownStepError(
                        f"Asymmetric or dangling edge {node.id} -> {did}",
                        details={"prerequisite": node.id, "dependent": did},
                    )
        return graph
