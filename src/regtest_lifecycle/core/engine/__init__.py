# src/regtest_lifecycle/core/engine/__init__.py
"""
Engine do regtest-lifecycle.

Planeja e executa o grafo de operações de uma run.

Componentes principais:
    - planner → ordenação topológica determinística e validações estruturais
    - engine  → execução coordenada (sequencial ou em pool de threads)

Invariantes:
    - Operações só são executadas após suas dependências terminarem
    - Cada operação é executada no máximo uma vez por run
    - O resultado reflete explicitamente o estado de cada operação executada
"""

from .engine import Engine, RunResult
from .planner import CycleDetectedError, UnknownDependencyError, plan_execution

__all__ = [
    "CycleDetectedError",
    "Engine",
    "RunResult",
    "UnknownDependencyError",
    "plan_execution",
]
