"""
Ciclo de vida de nós regtest sobre o grafo de operações do core.

Componentes:
    - settings  → parâmetros do processo do nó (seção `node`)
    - process   → contrato `ProcessHandle` e implementação `NodeProcess`
    - steps     → operações start / stop / clean
    - registrar → `LifecycleRegistrar` (nomes, sufixos e dependência clean → stop)
"""

from .process import NodeHandle, NodeProcess, ProcessHandle
from .registrar import (
    Instance,
    LifecycleOps,
    LifecycleRegistrar,
    operation_name,
    register_instances,
)
from .settings import NodeSettings
from .steps import CleanDataDirStep, StartNodeStep, StopNodeStep

__all__ = [
    "CleanDataDirStep",
    "Instance",
    "LifecycleOps",
    "LifecycleRegistrar",
    "NodeHandle",
    "NodeProcess",
    "NodeSettings",
    "ProcessHandle",
    "StartNodeStep",
    "StopNodeStep",
    "operation_name",
    "register_instances",
]
