# src/regtest_lifecycle/core/engine/planner.py
"""
Planejador de execução do pipeline (DAG).

Valida a estrutura do grafo de operações e produz uma ordem de execução
topológica determinística.

Decisões arquiteturais:
    - Ordenação topológica determinística (Kahn modificado)
    - Empates são resolvidos por ordem lexicográfica de `step.id`
    - Erros estruturais são tratados como falhas fatais
    - Com `targets`, apenas os alvos e suas dependências transitivas
      entram no plano (execução sob demanda)

Invariantes:
    - Nenhuma operação aparece antes de suas dependências
    - Cada operação planejada aparece exatamente uma vez
    - A mesma definição de grafo produz sempre a mesma ordem

Limites explícitos:
    - Não executa operações
    - Não interage com RunContext
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set

from regtest_lifecycle.core.pipeline.step import Step


class UnknownDependencyError(ValueError):
    """
    Uma operação referencia (ou um alvo nomeia) uma operação inexistente.

    Dependências devem ser explícitas e resolvíveis; nada é inferido.
    """


class CycleDetectedError(ValueError):
    """
    O grafo de dependências contém um ciclo.

    Nenhuma execução parcial é permitida em presença de ciclos.
    """


def _index(steps: Iterable[Step]) -> Dict[str, Step]:
    by_id: Dict[str, Step] = {}
    for s in steps:
        sid = getattr(s, "id", None)
        if not isinstance(sid, str) or not sid.strip():
            raise ValueError("step.id must be a non-empty string")
        if sid in by_id:
            raise ValueError(f"Duplicate step id: {sid}")
        by_id[sid] = s
    return by_id


def _closure(by_id: Dict[str, Step], targets: Iterable[str]) -> Set[str]:
    """Alvos + dependências transitivas."""
    selected: Set[str] = set()
    stack = list(targets)
    while stack:
        sid = stack.pop()
        if sid in selected:
            continue
        if sid not in by_id:
            raise UnknownDependencyError(f"Unknown target step '{sid}'")
        selected.add(sid)
        stack.extend(getattr(by_id[sid], "depends_on", []) or [])
    return selected


def plan_execution(
    steps: Iterable[Step],
    targets: Optional[Iterable[str]] = None,
) -> List[Step]:
    """
    Valida e produz uma ordem de execução topológica determinística.

    Sempre que múltiplas operações estiverem prontas, a escolha é feita
    por ordem lexicográfica do `step.id`.

    Args:
        steps (Iterable[Step]): Operações registradas no grafo.
        targets (Optional[Iterable[str]]): Operações solicitadas. Quando
            None, todas as operações são planejadas.

    Returns:
        List[Step]: Operações em ordem topológica determinística.

    Raises:
        ValueError: Se alguma operação possuir `id` inválido ou duplicado.
        UnknownDependencyError: Dependência ou alvo inexistente.
        CycleDetectedError: Ciclo no grafo de dependências.
    """
    by_id = _index(steps)

    deps: Dict[str, List[str]] = {}
    for sid, s in by_id.items():
        d = list(getattr(s, "depends_on", []) or [])
        for dep in d:
            if dep not in by_id:
                raise UnknownDependencyError(f"Step '{sid}' depends on unknown step '{dep}'")
        deps[sid] = d

    if targets is not None:
        selected = _closure(by_id, targets)
        deps = {sid: d for sid, d in deps.items() if sid in selected}

    # Kahn's algorithm (deterministic)
    incoming_count: Dict[str, int] = {sid: len(set(d)) for sid, d in deps.items()}
    outgoing: Dict[str, Set[str]] = {sid: set() for sid in deps}
    for sid, dlist in deps.items():
        for dep in set(dlist):
            outgoing[dep].add(sid)

    ready: List[str] = sorted(sid for sid, c in incoming_count.items() if c == 0)
    order_ids: List[str] = []

    while ready:
        sid = ready.pop(0)
        order_ids.append(sid)
        for child in sorted(outgoing[sid]):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order_ids) != len(deps):
        raise CycleDetectedError("Cycle detected in step dependency graph")

    return [by_id[sid] for sid in order_ids]
