# src/regtest_lifecycle/core/pipeline/__init__.py
"""
# Pipeline Core (regtest-lifecycle)

Contratos e estruturas fundamentais do grafo de operações.

Um pipeline é um **DAG explícito de operações (Steps)**, onde:
- cada operação declara nome, tipo semântico e dependências
- a execução é coordenada exclusivamente pelo Engine
- o estado compartilhado é mediado pelo `RunContext`

## Componentes

- **types**: `StepStatus`, `StepKind`, `StepResult`
- **step**: `Step` (Protocol) e `FunctionStep`
- **context**: `RunContext` (artefatos, logs, warnings)
- **graph**: `PipelineGraph` (namespace de nomes únicos) e `StepHandle`
"""

from .context import RunContext
from .graph import DuplicateStepIdError, PipelineGraph, StepHandle
from .step import FunctionStep, Step
from .types import StepKind, StepResult, StepStatus

__all__ = [
    "DuplicateStepIdError",
    "FunctionStep",
    "PipelineGraph",
    "RunContext",
    "Step",
    "StepHandle",
    "StepKind",
    "StepResult",
    "StepStatus",
]
