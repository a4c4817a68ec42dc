# src/regtest_lifecycle/core/pipeline/step.py
"""
Contrato canônico de Step (operação agendável).

Um Step é a forma Python de uma operação do pipeline: uma descrição
declarada no registro e executada depois, sob controle do Engine, quando
suas dependências estiverem satisfeitas.

Princípios fundamentais:
    - Steps não conhecem o Engine nem o planner
    - Steps não controlam ordem de execução
    - Conformidade é garantida por duck typing (@runtime_checkable)

Este módulo também oferece `FunctionStep`, que adapta uma função simples
`action(ctx)` ao protocolo, usado por `PipelineGraph.register`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, runtime_checkable

from .context import RunContext
from .types import StepKind, StepResult, StepStatus


@runtime_checkable
class Step(Protocol):
    """
    Contrato canônico de um Step.

    Atributos obrigatórios:
        - id: nome único e estável da operação na run
        - kind: classificação semântica (`StepKind`)
        - depends_on: nomes das operações das quais depende

    Invariantes:
        - `id` é único no grafo
        - `run` é executado no máximo uma vez por run
        - O retorno de `run` é sempre um `StepResult`

    Limites explícitos:
        - Não define retry
        - Não decide políticas de execução (fail-fast, skip)
    """
    id: str
    kind: StepKind
    depends_on: List[str]

    def run(self, ctx: RunContext) -> StepResult:
        """Executa a operação uma única vez usando o RunContext."""
        ...


Action = Callable[[RunContext], Optional[StepResult]]


@dataclass
class FunctionStep:
    """Step que delega a execução para uma função `action(ctx)`.

    Se a função retornar None, o resultado é SUCCESS com resumo padrão.
    Exceções propagam intactas para o Engine.
    """

    id: str
    action: Action
    kind: StepKind = StepKind.TASK
    depends_on: List[str] = field(default_factory=list)

    def run(self, ctx: RunContext) -> StepResult:
        result = self.action(ctx)
        if result is not None:
            return result
        return StepResult(
            step_id=self.id,
            kind=self.kind,
            status=StepStatus.SUCCESS,
            summary="ok",
        )
