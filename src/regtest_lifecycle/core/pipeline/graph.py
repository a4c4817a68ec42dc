# src/regtest_lifecycle/core/pipeline/graph.py
"""
Namespace de operações de uma run (PipelineGraph).

Este módulo define o `PipelineGraph`, o objeto explícito onde operações
são publicadas antes de qualquer planejamento ou execução. Ele substitui
o registro global de tarefas de uma ferramenta de build: quem registra
recebe o grafo por parâmetro e obtém de volta um `StepHandle` opaco.

Responsabilidades do módulo:
    - Validar unicidade de nomes de operação
    - Preservar a ordem de registro
    - Expor acesso controlado às operações registradas

Invariantes:
    - Cada operação registrada possui um nome único
    - Uma tentativa de duplicidade nunca sobrescreve a operação existente
    - A lista de operações reflete exatamente a ordem de registro

Limites explícitos:
    - Não planeja execução (ver core.engine.planner)
    - Não executa operações
    - Não valida se dependências existem (o planner faz isso)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .step import Action, FunctionStep, Step
from .types import StepKind


class DuplicateStepIdError(ValueError):
    """
    Exceção levantada quando um nome de operação já existe no grafo.

    A duplicidade é tratada como erro fatal no momento do registro,
    antes de qualquer execução; o grafo permanece inalterado.
    """


@dataclass(frozen=True)
class StepHandle:
    """Referência opaca a uma operação registrada no grafo."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class PipelineGraph:
    """
    Namespace canônico de operações de uma run.

    Uso típico:

        graph = PipelineGraph()
        handle = graph.register("integrationTest", depends_on=["start"], action=run_tests)
        graph.add(StopNodeStep(...))

    Decisões arquiteturais:
        - A ordem de inserção é preservada separadamente do armazenamento
        - A estrutura interna não é exposta diretamente
        - Erros estruturais são tratados como falhas fatais
    """

    _steps: Dict[str, Step] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, step: Step) -> StepHandle:
        step_id = getattr(step, "id", None)
        if not isinstance(step_id, str) or not step_id.strip():
            raise ValueError("step.id must be a non-empty string")

        if step_id in self._steps:
            raise DuplicateStepIdError(f"Duplicate step id: {step_id}")

        self._steps[step_id] = step
        self._order.append(step_id)
        return StepHandle(step_id)

    def register(
        self,
        name: str,
        *,
        action: Action,
        depends_on: Iterable[str] = (),
        kind: StepKind = StepKind.TASK,
    ) -> StepHandle:
        """Publica uma função `action(ctx)` como operação nomeada."""
        return self.add(
            FunctionStep(id=name, action=action, kind=kind, depends_on=list(depends_on))
        )

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __len__(self) -> int:
        return len(self._order)

    def get(self, name: str) -> Step:
        return self._steps[name]

    def names(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[Step]:
        return [self._steps[sid] for sid in self._order]
