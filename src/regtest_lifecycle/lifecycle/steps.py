"""Operações canônicas do ciclo de vida de um nó: start, stop e clean.

Cada operação é um Step (descrição declarada no registro e executada
depois pelo Engine) vinculado a exatamente uma instância (`data_dir`).

Idempotência:
- start com nó já rodando      → SUCCESS, payload["no_op"] = True
- stop sem nó rodando          → SUCCESS, payload["no_op"] = True (handle morto é descartado)
- clean com data_dir ausente   → SUCCESS, payload["no_op"] = True

Erros não são convertidos em resultado aqui: ProcessStartError,
ProcessStopError e CleanupError propagam para o Engine, que os reporta
com a mensagem original.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from regtest_lifecycle.core.exceptions import CleanupError
from regtest_lifecycle.core.pipeline.context import RunContext
from regtest_lifecycle.core.pipeline.types import StepKind, StepResult, StepStatus

from .process import NodeHandle, ProcessHandle


def handle_artifact_key(data_dir: Path) -> str:
    """Chave do artefato com o `NodeHandle` iniciado para `data_dir`."""
    return f"node.handle:{Path(data_dir)}"


def _success(step: Any, summary: str, *, no_op: bool, **payload: Any) -> StepResult:
    artifacts: Dict[str, str] = {"data_dir": str(step.data_dir)}
    if "pid" in payload:
        artifacts["pid"] = str(payload["pid"])
    return StepResult(
        step_id=step.id,
        kind=step.kind,
        status=StepStatus.SUCCESS,
        summary=summary,
        artifacts=artifacts,
        payload={"no_op": no_op, **payload},
    )


@dataclass
class StartNodeStep:
    """Sobe o nó da instância; nó já rodando é um no-op bem-sucedido."""

    id: str
    data_dir: Path
    process: ProcessHandle
    kind: StepKind = StepKind.START
    depends_on: List[str] = field(default_factory=list)

    def run(self, ctx: RunContext) -> StepResult:
        existing = self.process.find(self.data_dir)
        if existing is not None and self.process.is_running(existing):
            ctx.set_artifact(handle_artifact_key(self.data_dir), existing)
            ctx.log(
                step_id=self.id,
                level="info",
                message="node already running",
                data_dir=str(self.data_dir),
                pid=existing.pid,
            )
            return _success(self, "node already running", no_op=True, pid=existing.pid)

        handle: NodeHandle = self.process.start(self.data_dir)
        ctx.set_artifact(handle_artifact_key(self.data_dir), handle)
        ctx.log(
            step_id=self.id,
            level="info",
            message="node started",
            data_dir=str(self.data_dir),
            pid=handle.pid,
        )
        return _success(self, "node started", no_op=False, pid=handle.pid)


@dataclass
class StopNodeStep:
    """Encerra o nó da instância; nó parado (ou nunca iniciado) é um no-op."""

    id: str
    data_dir: Path
    process: ProcessHandle
    kind: StepKind = StepKind.STOP
    depends_on: List[str] = field(default_factory=list)

    def run(self, ctx: RunContext) -> StepResult:
        handle = self.process.find(self.data_dir)
        if handle is None or not self.process.is_running(handle):
            if handle is not None:
                # stop de um handle morto apenas descarta o registro (ex.: arquivo de PID)
                self.process.stop(handle)
            ctx.log(step_id=self.id, level="info", message="node not running", data_dir=str(self.data_dir))
            return _success(self, "node not running", no_op=True)

        self.process.stop(handle)
        ctx.log(
            step_id=self.id,
            level="info",
            message="node stopped",
            data_dir=str(self.data_dir),
            pid=handle.pid,
        )
        return _success(self, "node stopped", no_op=False, pid=handle.pid)


@dataclass
class CleanDataDirStep:
    """Remove recursivamente o diretório de dados da instância.

    Deve depender do stop da mesma instância: apagar o diretório com o
    processo ainda segurando arquivos abertos pode falhar ou corromper.
    """

    id: str
    data_dir: Path
    kind: StepKind = StepKind.CLEAN
    depends_on: List[str] = field(default_factory=list)

    def run(self, ctx: RunContext) -> StepResult:
        path = Path(self.data_dir)

        if not path.exists() and not path.is_symlink():
            ctx.log(step_id=self.id, level="info", message="data dir absent", data_dir=str(path))
            return _success(self, "data dir absent", no_op=True)

        if path.resolve() == Path(path.resolve().anchor):
            raise CleanupError(
                message=f"refusing to delete filesystem root: {path}",
                details={"data_dir": str(path)},
            )

        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            raise CleanupError(
                message=str(e),
                details={"data_dir": str(path), "errno": e.errno},
                hint="Check permissions and that no process still holds files in the data dir.",
            ) from e

        ctx.log(step_id=self.id, level="info", message="data dir deleted", data_dir=str(path))
        return _success(self, "data dir deleted", no_op=False)
