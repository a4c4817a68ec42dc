# src/regtest_lifecycle/core/pipeline/types.py
"""
Tipos canônicos do pipeline.

Componentes:
    - StepKind   → classificação semântica da operação (start, stop, clean, task)
    - StepStatus → estados finais (SUCCESS, SKIPPED, FAILED)
    - StepResult → resultado imutável de uma execução

Invariantes:
    - Enums possuem valores textuais canônicos (serializáveis em JSON)
    - StepResult é imutável (frozen)
    - Tipos não dependem de engine ou do processo do nó
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StepKind(str, Enum):
    """
    Tipos semânticos de operações no pipeline.

    Tipos definidos:
        - START: sobe o processo de um nó
        - STOP: encerra o processo de um nó
        - CLEAN: remove o workspace (data dir) de um nó
        - TASK: qualquer outra unidade de trabalho (ex.: suíte de testes)

    O Engine não usa `kind` para decidir execução; o valor é
    puramente informativo e aparece nos resultados e eventos.
    """
    START = "start"
    STOP = "stop"
    CLEAN = "clean"
    TASK = "task"


class StepStatus(str, Enum):
    """
    Estados finais possíveis da execução de uma operação.

    Estados definidos:
        - SUCCESS: execução concluída (inclui no-ops idempotentes)
        - SKIPPED: execução pulada (config ou dependência falhou)
        - FAILED: execução interrompida por erro
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de uma operação.

    Campos:
        - step_id: nome único da operação
        - kind: tipo semântico
        - status: estado final
        - summary: resumo textual
        - metrics: métricas numéricas (ex.: duração)
        - warnings: avisos não fatais
        - artifacts: referências produzidas (ex.: data_dir, pid)
        - payload: dados adicionais (ex.: `no_op`, `error`)
    """
    step_id: str
    kind: StepKind
    status: StepStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, str] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)
