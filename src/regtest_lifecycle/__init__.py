# src/regtest_lifecycle/__init__.py
"""
regtest-lifecycle: ciclo de vida de nós regtest como operações de pipeline.

Este pacote publica o start, o stop e a limpeza de workspace de um nó
blockchain local (regtest) como operações nomeadas de um grafo de
execução, com dependências explícitas e contrato de idempotência.

Arquitetura em alto nível:
    - core.config    → carregamento e deep-merge de configuração
    - core.pipeline  → Step, RunContext e PipelineGraph
    - core.engine    → planejamento (DAG) e execução do grafo
    - lifecycle      → processo do nó, operações e LifecycleRegistrar

Uso típico:

    graph = PipelineGraph()
    registrar = LifecycleRegistrar(graph=graph, process=NodeProcess())
    registrar.register_all("/tmp/node-a", suffix="A")
    Engine(steps=graph.list(), ctx=ctx, targets=["cleanA"]).run()

Limites explícitos:
    - Não define o protocolo RPC do nó nem semântica de blockchain
    - Não persiste estado entre runs
"""

from .core.engine import Engine, RunResult
from .core.pipeline import PipelineGraph, RunContext
from .lifecycle import LifecycleRegistrar, NodeProcess, NodeSettings

__version__ = "0.1.0"

__all__ = [
    "Engine",
    "LifecycleRegistrar",
    "NodeProcess",
    "NodeSettings",
    "PipelineGraph",
    "RunContext",
    "RunResult",
    "__version__",
]
