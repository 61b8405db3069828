# tests/conftest.py
"""
Fixtures compartilhados para testes do ml-process.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações mínimas e determinísticas
- contexto de execução controlado (RunContext)
- um DependencyGraph vazio e isolado por teste
- unidades dummy e um UnitRegistry com elas registradas

O objetivo destas fixtures é permitir testes do core (grafo, propagação,
scheduler, expansão e executor) sem depender de unidades reais nem de
arquivos de dados.

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Cada teste recebe seu próprio grafo (contador de ids isolado)
    - Unidades dummy utilizam duck typing em vez de herança
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa um plano
    - Nenhuma fixture realiza I/O
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração (ver tests/core/scenario)
    - Não conter lógica condicional complexa
"""

import threading
from datetime import datetime, timezone

import pytest


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de configuração padrão (defaults) semelhante ao uso real.

    Serve de base para testes do loader, do deep-merge e do hashing.
    A string evita I/O; os testes que precisam de arquivo a gravam em
    `tmp_path`.

    Returns:
        str: Conteúdo YAML representando configuração padrão (defaults).
    """
    return """\
engine:
  fail_fast: true
  max_workers: 4
  log_level: INFO
plan:
  work_dir: .
  scan_work_dir: false
steps:
  extract:
    enabled: true
  train:
    enabled: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """
    YAML de configuração local (override).

    Representa apenas overrides: muda o nível de log, reduz o pool de
    workers e desabilita uma seção.
    """
    return """\
engine:
  log_level: DEBUG
  max_workers: 2
steps:
  train:
    enabled: false
"""


# =====================================================
# Pipeline fixtures (RunContext + grafo)
# =====================================================

@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima e válida, já resolvida.

    Invariantes:
        - `fail_fast` explicitamente habilitado
        - pool pequeno (2 workers), suficiente para exercitar concorrência
    """
    return {
        "engine": {"fail_fast": True, "max_workers": 2, "log_level": "DEBUG"},
        "steps": {},
    }


@pytest.fixture
def dummy_ctx(dummy_config):
    """
    RunContext determinístico para testes.

    `run_id` e `created_at` são fixos; `work_dir` fica vazio (nenhum teste
    que use este contexto faz I/O).
    """
    from ml_process.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def graph():
    """DependencyGraph vazio, com contador de ids próprio."""
    from ml_process.core.pipeline.graph import DependencyGraph

    return DependencyGraph()


# =====================================================
# Unidades dummy + registry
# =====================================================

@pytest.fixture
def DummyUnit():
    """
    Classe de unidade mínima e duck-typed.

    `perform` registra o id em `performed` (lista compartilhada pela
    classe) e devolve uma métrica fixa. Não faz I/O.
    """

    class _DummyUnit:
        unit_name = "noop"
        performed = []
        _lock = threading.Lock()

        def __init__(self, node_id, parameters, inputs, outputs):
            self.id = node_id
            self.parameters = dict(parameters)
            self.inputs = list(inputs)
            self.outputs = list(outputs)

        def perform(self, ctx):
            with self._lock:
                self.performed.append(self.id)
            ctx.log(step_id=self.id, level="INFO", message="dummy performed")
            return {"ok": 1}

    _DummyUnit.performed = []
    return _DummyUnit


@pytest.fixture
def FailingUnit():
    """Unidade que sempre levanta RuntimeError em `perform`."""

    class _FailingUnit:
        unit_name = "fail"

        def __init__(self, node_id, parameters, inputs, outputs):
            self.id = node_id
            self.parameters = dict(parameters)
            self.inputs = list(inputs)
            self.outputs = list(outputs)

        def perform(self, ctx):
            raise RuntimeError("boom")

    return _FailingUnit


@pytest.fixture
def unit_registry(DummyUnit, FailingUnit):
    """UnitRegistry com `noop` e `fail` registradas."""
    from ml_process.units.registry import UnitRegistry

    registry = UnitRegistry()
    registry.register("noop", DummyUnit)
    registry.register("fail", FailingUnit)
    return registry
