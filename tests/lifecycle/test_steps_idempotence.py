# tests/lifecycle/test_steps_idempotence.py
"""
Testes de idempotência das operações start / stop / clean.

Contrato:
    - start com nó já rodando      → SUCCESS no-op (não inicia outro processo)
    - stop sem nó rodando          → SUCCESS no-op (handle morto é apenas descartado)
    - clean com data_dir ausente   → SUCCESS no-op

As operações usam o ProcessHandle em memória (`FakeProcess`) para não
depender de um binário real.
"""

import os
from pathlib import Path

import pytest

try:
    from regtest_lifecycle.core.exceptions import CleanupError
    from regtest_lifecycle.core.pipeline.types import StepKind, StepStatus
    from regtest_lifecycle.lifecycle.process import NodeHandle
    from regtest_lifecycle.lifecycle.steps import (
        CleanDataDirStep,
        StartNodeStep,
        StopNodeStep,
        handle_artifact_key,
    )
except Exception as e:  # noqa: BLE001
    StartNodeStep = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"Falha ao importar operações do ciclo de vida: {_IMPORT_ERR}")


# ---------------------------------------------------------------------------
# start
# ---------------------------------------------------------------------------

def test_start_starts_node_and_publishes_handle(dummy_ctx, FakeProcess, tmp_path):
    _require_imports()

    fake = FakeProcess()
    data_dir = tmp_path / "a"
    step = StartNodeStep(id="startA", data_dir=data_dir, process=fake)

    result = step.run(dummy_ctx)

    assert result.status == StepStatus.SUCCESS
    assert result.kind == StepKind.START
    assert result.summary == "node started"
    assert result.payload["no_op"] is False
    assert result.artifacts == {"data_dir": str(data_dir), "pid": "1000"}
    assert dummy_ctx.get_artifact(handle_artifact_key(data_dir)) == NodeHandle(data_dir=data_dir, pid=1000)
    assert len(fake.ops("start")) == 1


def test_start_twice_is_noop(dummy_ctx, FakeProcess, tmp_path):
    _require_imports()

    fake = FakeProcess()
    step = StartNodeStep(id="startA", data_dir=tmp_path / "a", process=fake)

    first = step.run(dummy_ctx)
    second = step.run(dummy_ctx)

    assert second.status == StepStatus.SUCCESS
    assert second.summary == "node already running"
    assert second.payload == {"no_op": True, "pid": first.payload["pid"]}
    assert len(fake.ops("start")) == 1
    assert len(fake.running) == 1


def test_start_propagates_process_errors(dummy_ctx, tmp_path):
    _require_imports()

    from regtest_lifecycle.core.exceptions import ProcessStartError

    class BrokenProcess:
        def find(self, data_dir):
            return None

        def start(self, data_dir):
            raise ProcessStartError(message="[Errno 2] No such file or directory: 'bitcoind'")

    step = StartNodeStep(id="start", data_dir=tmp_path, process=BrokenProcess())

    with pytest.raises(ProcessStartError) as exc:
        step.run(dummy_ctx)
    assert str(exc.value) == "[Errno 2] No such file or directory: 'bitcoind'"


# ---------------------------------------------------------------------------
# stop
# ---------------------------------------------------------------------------

def test_stop_running_node(dummy_ctx, FakeProcess, tmp_path):
    _require_imports()

    fake = FakeProcess()
    data_dir = tmp_path / "a"
    StartNodeStep(id="startA", data_dir=data_dir, process=fake).run(dummy_ctx)

    result = StopNodeStep(id="stopA", data_dir=data_dir, process=fake).run(dummy_ctx)

    assert result.status == StepStatus.SUCCESS
    assert result.summary == "node stopped"
    assert result.payload == {"no_op": False, "pid": 1000}
    assert fake.running == {}


def test_stop_never_started_is_noop(dummy_ctx, FakeProcess, tmp_path):
    """stop sem start prévio é sucesso e nunca chama `process.stop`."""
    _require_imports()

    fake = FakeProcess()

    result = StopNodeStep(id="stop", data_dir=tmp_path / "a", process=fake).run(dummy_ctx)

    assert result.status == StepStatus.SUCCESS
    assert result.summary == "node not running"
    assert result.payload == {"no_op": True}
    assert fake.ops("stop") == []


def test_stop_twice_is_noop(dummy_ctx, FakeProcess, tmp_path):
    _require_imports()

    fake = FakeProcess()
    data_dir = tmp_path / "a"
    StartNodeStep(id="start", data_dir=data_dir, process=fake).run(dummy_ctx)
    step = StopNodeStep(id="stop", data_dir=data_dir, process=fake)

    step.run(dummy_ctx)
    second = step.run(dummy_ctx)

    assert second.payload["no_op"] is True
    assert len(fake.ops("stop")) == 1


def test_stop_with_stale_handle_is_noop(dummy_ctx, FakeProcess, tmp_path):
    """
    Handle conhecido mas morto: resultado no-op, e `process.stop` é
    chamado uma vez para descartar o registro obsoleto.
    """
    _require_imports()

    class StaleProcess(FakeProcess):
        def find(self, data_dir):
            return NodeHandle(data_dir=Path(data_dir), pid=99999)

    fake = StaleProcess()

    result = StopNodeStep(id="stop", data_dir=tmp_path, process=fake).run(dummy_ctx)

    assert result.payload == {"no_op": True}
    assert result.summary == "node not running"
    assert [c[1] for c in fake.ops("stop")] == [tmp_path]


# ---------------------------------------------------------------------------
# clean
# ---------------------------------------------------------------------------

def test_clean_removes_data_dir_recursively(dummy_ctx, tmp_path):
    _require_imports()

    data_dir = tmp_path / "a"
    (data_dir / "regtest" / "blocks").mkdir(parents=True)
    (data_dir / "regtest" / "blocks" / "blk00000.dat").write_bytes(b"\x00" * 16)
    (data_dir / "node.log").write_text("log", encoding="utf-8")

    result = CleanDataDirStep(id="cleanA", data_dir=data_dir).run(dummy_ctx)

    assert result.status == StepStatus.SUCCESS
    assert result.kind == StepKind.CLEAN
    assert result.summary == "data dir deleted"
    assert result.payload == {"no_op": False}
    assert not data_dir.exists()
    assert tmp_path.exists()


def test_clean_absent_dir_is_noop(dummy_ctx, tmp_path):
    _require_imports()

    step = CleanDataDirStep(id="cleanA", data_dir=tmp_path / "never-created")

    first = step.run(dummy_ctx)
    second = step.run(dummy_ctx)

    for result in (first, second):
        assert result.status == StepStatus.SUCCESS
        assert result.summary == "data dir absent"
        assert result.payload == {"no_op": True}


def test_clean_removes_symlink_not_target(dummy_ctx, tmp_path):
    _require_imports()

    target = tmp_path / "real"
    target.mkdir()
    (target / "keep.txt").write_text("x", encoding="utf-8")
    link = tmp_path / "link"
    try:
        link.symlink_to(target, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks indisponíveis nesta plataforma")

    CleanDataDirStep(id="clean", data_dir=link).run(dummy_ctx)

    assert not link.exists() and not link.is_symlink()
    assert (target / "keep.txt").exists()


def test_clean_refuses_filesystem_root(dummy_ctx):
    _require_imports()

    root = Path(Path.cwd().anchor)

    with pytest.raises(CleanupError) as exc:
        CleanDataDirStep(id="clean", data_dir=root).run(dummy_ctx)
    assert "filesystem root" in str(exc.value)


@pytest.mark.skipif(os.name != "posix", reason="permissões POSIX")
def test_clean_failure_keeps_original_message(dummy_ctx, tmp_path):
    """
    Falha de filesystem vira CleanupError com a mensagem original do SO.

    A exceção do SO permanece encadeada em `__cause__`.
    """
    _require_imports()

    if hasattr(os, "geteuid") and os.geteuid() == 0:
        pytest.skip("root ignora permissões de diretório")

    parent = tmp_path / "locked"
    data_dir = parent / "a"
    (data_dir / "sub").mkdir(parents=True)
    (data_dir / "sub" / "f").write_text("x", encoding="utf-8")
    os.chmod(data_dir / "sub", 0o500)
    try:
        with pytest.raises(CleanupError) as exc:
            CleanDataDirStep(id="cleanA", data_dir=data_dir).run(dummy_ctx)
    finally:
        os.chmod(data_dir / "sub", 0o700)

    assert isinstance(exc.value.__cause__, OSError)
    assert str(exc.value) == str(exc.value.__cause__)
    assert exc.value.details["data_dir"] == str(data_dir)
