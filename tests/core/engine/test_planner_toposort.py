# tests/core/engine/test_planner_toposort.py
"""
Testes de ordenação topológica determinística do planner.

Este módulo valida que:
- nenhuma operação aparece antes de suas dependências
- empates são resolvidos por ordem lexicográfica do nome
- a mesma definição sempre produz a mesma ordem
- com `targets`, apenas os alvos e suas dependências transitivas entram no plano
"""

import pytest

try:
    from regtest_lifecycle.core.engine.planner import UnknownDependencyError, plan_execution
except Exception as e:  # noqa: BLE001
    plan_execution = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar planner: {_IMPORT_ERR}")


def _ids(steps):
    return [s.id for s in steps]


def test_dependencies_come_first_with_lexicographic_ties(DummyStep):
    _require_imports()

    steps = [
        DummyStep("startA"),
        DummyStep("stopA"),
        DummyStep("cleanA", depends_on=["stopA"]),
        DummyStep("integrationTest", depends_on=["startA"]),
    ]

    assert _ids(plan_execution(steps)) == ["startA", "integrationTest", "stopA", "cleanA"]


def test_order_is_independent_of_registration_order(DummyStep):
    _require_imports()

    a = [DummyStep("b"), DummyStep("a"), DummyStep("c", depends_on=["a", "b"])]
    b = [DummyStep("c", depends_on=["b", "a"]), DummyStep("a"), DummyStep("b")]

    assert _ids(plan_execution(a)) == _ids(plan_execution(b)) == ["a", "b", "c"]


def test_repeated_dependency_is_counted_once(DummyStep):
    _require_imports()

    steps = [DummyStep("stop"), DummyStep("clean", depends_on=["stop", "stop"])]

    assert _ids(plan_execution(steps)) == ["stop", "clean"]


def test_targets_select_transitive_closure(DummyStep):
    """
    Execução sob demanda: pedir `cleanA` planeja apenas `stopA` e `cleanA`.

    Operações de outras instâncias e `startA` (sem relação de dependência)
    ficam de fora do plano.
    """
    _require_imports()

    steps = [
        DummyStep("startA"),
        DummyStep("stopA"),
        DummyStep("cleanA", depends_on=["stopA"]),
        DummyStep("startB"),
        DummyStep("stopB"),
        DummyStep("cleanB", depends_on=["stopB"]),
    ]

    assert _ids(plan_execution(steps, targets=["cleanA"])) == ["stopA", "cleanA"]
    assert _ids(plan_execution(steps, targets=["startB", "cleanA"])) == ["startB", "stopA", "cleanA"]


def test_empty_targets_plan_nothing(DummyStep):
    _require_imports()

    assert plan_execution([DummyStep("start")], targets=[]) == []


def test_unknown_target_raises(DummyStep):
    _require_imports()

    with pytest.raises(UnknownDependencyError) as exc:
        plan_execution([DummyStep("stop")], targets=["cleanZ"])
    assert "cleanZ" in str(exc.value)
