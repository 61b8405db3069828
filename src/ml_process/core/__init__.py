# src/ml_process/core/__init__.py
"""
Core do ml-process.

Este pacote reúne as responsabilidades essenciais para transformar um
cenário declarativo em um plano executável e acompanhar sua execução:

    - config       → resolução de configuração (merge, validação estrutural, hashing)
    - pipeline     → Step Node, grafo de dependências (arena) e RunContext
    - engine       → expansão de padrões, ligação por artefatos, propagação
                     de status, ordenação topológica e executor
    - scenario     → parsing de cenários e construção do plano
    - traceability → checkpoint do grafo e Manifest da execução

Invariantes:
    - O grafo é o único dono do ciclo de vida dos nós
    - Arestas são sempre simétricas (pré-requisito ↔ dependente)
    - A relação de pré-requisitos é acíclica após o planejamento

Limites explícitos:
    - Não contém lógica numérica das unidades plugáveis
    - Não depende de CLI ou serviços externos
"""
