# tests/conftest.py
"""
Fixtures compartilhados para testes do regtest-lifecycle.

Este módulo define fixtures reutilizáveis que fornecem:
- configuração mínima e determinística
- contexto de execução controlado (RunContext)
- Steps dummy para testes estruturais do grafo e do engine
- um ProcessHandle em memória (sem subprocessos reais)

Decisões arquiteturais:
    - Steps dummy e processo falso utilizam duck typing em vez de herança
    - Imports do core são realizados de forma lazy para melhorar
      a clareza de erros durante falhas
    - O processo falso registra cada chamada com um número de sequência
      global, permitindo verificar ordem de execução entre threads

Limites explícitos:
    - Não substituir testes com processos reais (ver tests/lifecycle/test_node_process.py)
"""

import itertools
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest


@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao uso real do projeto.

    Returns:
        str: Conteúdo YAML representando configuração padrão (defaults).
    """
    return """\
engine:
  fail_fast: true
  max_workers: 1
node:
  binary: bitcoind
  args: ["-regtest", "-datadir={data_dir}"]
  stop_timeout: 10
instances:
  - data_dir: .localnet/bitcoind
    suffix: ""
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de override local: paraleliza e troca as instâncias."""
    return """\
engine:
  max_workers: 4
node:
  stop_timeout: 2.5
instances:
  - data_dir: /tmp/node-a
    suffix: A
  - data_dir: /tmp/node-b
    suffix: B
"""


@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração mínima e válida para testes.

    Returns:
        dict: Configuração já resolvida (sem loader/merge).
    """
    return {
        "engine": {"fail_fast": True, "max_workers": 1},
        "steps": {},
    }


@pytest.fixture
def dummy_ctx(dummy_config):
    """
    RunContext determinístico para testes.

    `run_id` e `created_at` são fixos; a config é injetada explicitamente.
    """
    from regtest_lifecycle.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def DummyStep():
    """
    Fixture factory que fornece uma implementação mínima e duck-typed de um Step.

    A classe retornada registra um artefato `<id>.ok` no RunContext e
    devolve StepResult SUCCESS. `delay` permite simular trabalho para os
    testes de execução paralela.

    Returns:
        type: Classe _DummyStep que pode ser instanciada pelos testes.
    """
    from regtest_lifecycle.core.pipeline.types import StepKind, StepStatus, StepResult

    class _DummyStep:
        def __init__(
            self,
            step_id: str = "task",
            kind: StepKind = StepKind.TASK,
            depends_on=None,
            delay: float = 0.0,
        ):
            self.id = step_id
            self.kind = kind
            self.depends_on = depends_on or []
            self.delay = delay

        def run(self, ctx):
            if self.delay:
                time.sleep(self.delay)
            ctx.set_artifact(f"{self.id}.ok", True)
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary="dummy ok",
                artifacts={"ok": f"{self.id}.ok"},
                payload={"note": "dummy"},
            )

    return _DummyStep


@pytest.fixture
def FakeProcess():
    """
    Fixture factory de um ProcessHandle em memória.

    Comportamento:
        - start cria o data_dir com um arquivo de estado e marca o nó como rodando
        - start de nó já rodando devolve o handle existente
        - stop remove o nó da tabela de processos (após `stop_delay`)
        - cada chamada é registrada em `calls` como
          (operação, data_dir, seq_inicio, seq_fim)

    Returns:
        type: Classe _FakeProcess.
    """
    from regtest_lifecycle.lifecycle.process import NodeHandle

    seq = itertools.count()

    class _FakeProcess:
        def __init__(self, stop_delay: float = 0.0):
            self.stop_delay = stop_delay
            self.running = {}
            self.calls = []
            self._pids = itertools.count(1000)
            self._lock = threading.Lock()

        def _record(self, op, data_dir, begin):
            with self._lock:
                self.calls.append((op, Path(data_dir), begin, next(seq)))

        def start(self, data_dir):
            begin = next(seq)
            key = Path(data_dir)
            with self._lock:
                pid = self.running.get(key)
                if pid is None:
                    key.mkdir(parents=True, exist_ok=True)
                    (key / "regtest.state").write_text("blocks", encoding="utf-8")
                    pid = next(self._pids)
                    self.running[key] = pid
            self._record("start", key, begin)
            return NodeHandle(data_dir=key, pid=pid)

        def find(self, data_dir):
            key = Path(data_dir)
            with self._lock:
                pid = self.running.get(key)
            return NodeHandle(data_dir=key, pid=pid) if pid is not None else None

        def is_running(self, handle):
            with self._lock:
                return self.running.get(Path(handle.data_dir)) == handle.pid

        def stop(self, handle):
            begin = next(seq)
            if self.stop_delay:
                time.sleep(self.stop_delay)
            with self._lock:
                self.running.pop(Path(handle.data_dir), None)
            self._record("stop", handle.data_dir, begin)

        def ops(self, name):
            return [c for c in self.calls if c[0] == name]

    return _FakeProcess


@pytest.fixture
def graph():
    from regtest_lifecycle.core.pipeline.graph import PipelineGraph

    return PipelineGraph()
