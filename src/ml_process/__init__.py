# src/ml_process/__init__.py
"""
ml-process: planejamento e execução de experimentos de ML em múltiplas etapas.

Este pacote raiz define o namespace público do ml-process, um framework
para descrever experimentos (extração de features, treino, avaliação) como
um conjunto de Steps nomeados que declaram artefatos de entrada e saída.

Princípios centrais:
    - O experimento é um DAG de Step Nodes inferido a partir dos artefatos
    - Steps com wildcard são expandidos em instâncias concretas paralelas
    - A prontidão de um Step é propagada quando seus pré-requisitos concluem
    - Unidades de computação são plugáveis e resolvidas por registro explícito

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de configuração
    - core.pipeline     → Step Node, grafo de dependências e contexto de execução
    - core.engine       → expansão, ligação por artefatos, ordenação e execução
    - core.scenario     → leitura de cenários e construção do plano
    - core.traceability → checkpoint do grafo e Manifest de execução
    - units             → contrato e registro das unidades plugáveis

Limites explícitos:
    - Não define transporte distribuído entre processos
    - Não implementa codecs de formatos de arquivo além de CSV
    - Não expõe CLI
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
