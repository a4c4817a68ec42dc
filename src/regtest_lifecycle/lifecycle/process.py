"""Processo do nó regtest: contrato (`ProcessHandle`) e implementação via subprocess.

O contrato é o único ponto de contato entre as operações do ciclo de vida
e o sistema operacional:

- start(data_dir) -> NodeHandle       (idempotente para "já rodando")
- find(data_dir) -> NodeHandle | None (descoberta do processo da instância)
- is_running(handle) -> bool
- stop(handle) -> None                (idempotente para "já parado")

`NodeProcess` descobre processos por dois meios: os filhos que ele mesmo
iniciou (objetos `Popen`) e, como fallback, o arquivo de PID gravado no
diretório de dados. Isso cobre um nó remanescente de uma run anterior
interrompida.

Identidade do processo:
- O arquivo de PID guarda `<pid> <create_time>` (instante de criação
  segundo o psutil). Um PID só é aceito se o processo vivo com esse
  número tiver o mesmo instante de criação; caso contrário o PID foi
  reutilizado pelo SO e o arquivo é descartado como obsoleto.
- Nenhum sinal é enviado a um processo cuja identidade não confere.

Limites explícitos (v1):
- Somente POSIX (sessões de processo e sinais)
- NÃO consulta RPC do nó para prontidão; apenas verifica que o processo
  sobreviveu ao período `startup_grace`
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

import psutil

from regtest_lifecycle.core.exceptions import ProcessStartError, ProcessStopError

from .settings import DATA_DIR_PLACEHOLDER, NodeSettings


PathLike = Union[str, Path]

_KILL_TIMEOUT = 5.0
_POLL_INTERVAL = 0.05
# create_time do psutil tem resolução de ticks do kernel
_CREATE_TIME_TOLERANCE = 1.0


@dataclass(frozen=True)
class NodeHandle:
    """Identifica o processo de nó de uma instância.

    `create_time` é o instante de criação do processo (psutil); None
    significa que a identidade não foi registrada e apenas o PID é usado.
    """

    data_dir: Path
    pid: int
    create_time: Optional[float] = None


@runtime_checkable
class ProcessHandle(Protocol):
    """Contrato do colaborador que inicia/encerra o processo do nó."""

    def start(self, data_dir: Path) -> NodeHandle:
        ...

    def find(self, data_dir: Path) -> Optional[NodeHandle]:
        ...

    def is_running(self, handle: NodeHandle) -> bool:
        ...

    def stop(self, handle: NodeHandle) -> None:
        ...


def _reap(pid: int) -> bool:
    """Recolhe `pid` se for um filho já encerrado deste interpretador."""
    try:
        reaped, _ = os.waitpid(pid, os.WNOHANG)
    except ChildProcessError:
        # não é filho deste processo (ou já foi recolhido)
        return False
    return reaped == pid


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    if _reap(pid):
        return False
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # existe, mas pertence a outro usuário
        return True


def _create_time(pid: int) -> Optional[float]:
    try:
        return psutil.Process(pid).create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return None


def _same_process(handle: NodeHandle) -> bool:
    """O processo vivo com `handle.pid` é o mesmo registrado no handle."""
    if handle.create_time is None:
        return True
    actual = _create_time(handle.pid)
    return actual is not None and abs(actual - handle.create_time) <= _CREATE_TIME_TOLERANCE


class NodeProcess:
    """Implementação de `ProcessHandle` baseada em `subprocess.Popen`."""

    def __init__(self, settings: Optional[NodeSettings] = None):
        self.settings = settings or NodeSettings()
        self._children: Dict[Path, Tuple[subprocess.Popen, NodeHandle]] = {}
        self._lock = threading.Lock()

    # -----------------------------
    # Caminhos e comando
    # -----------------------------
    @staticmethod
    def _key(data_dir: PathLike) -> Path:
        return Path(data_dir).expanduser().absolute()

    def pid_path(self, data_dir: PathLike) -> Path:
        return self._key(data_dir) / self.settings.pid_file

    def log_path(self, data_dir: PathLike) -> Path:
        return self._key(data_dir) / self.settings.log_file

    def command(self, data_dir: PathLike) -> List[str]:
        key = str(self._key(data_dir))
        return [self.settings.binary] + [a.replace(DATA_DIR_PLACEHOLDER, key) for a in self.settings.args]

    # -----------------------------
    # Arquivo de PID
    # -----------------------------
    def write_pid_file(self, handle: NodeHandle) -> None:
        """Grava `<pid> <create_time>` no arquivo de PID da instância."""
        line = f"{handle.pid}"
        if handle.create_time is not None:
            line += f" {handle.create_time!r}"
        self.pid_path(handle.data_dir).write_text(line + "\n", encoding="utf-8")

    def _read_pid_file(self, key: Path) -> Optional[NodeHandle]:
        pid_file = self.pid_path(key)
        if not pid_file.is_file():
            return None
        fields = pid_file.read_text(encoding="utf-8").split()
        try:
            pid = int(fields[0])
            create_time = float(fields[1])
        except (IndexError, ValueError):
            # corrompido ou sem identidade: não há como confirmar o processo
            return None
        return NodeHandle(data_dir=key, pid=pid, create_time=create_time)

    # -----------------------------
    # ProcessHandle
    # -----------------------------
    def start(self, data_dir: PathLike) -> NodeHandle:
        key = self._key(data_dir)

        existing = self.find(key)
        if existing is not None and self.is_running(existing):
            return existing

        cmd = self.command(key)
        details = {"command": cmd, "data_dir": str(key)}

        try:
            key.mkdir(parents=True, exist_ok=True)
            with self.log_path(key).open("ab") as log:
                proc = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    cwd=str(key),
                    start_new_session=True,
                )
        except OSError as e:
            raise ProcessStartError(message=str(e), details=details) from e

        handle = NodeHandle(data_dir=key, pid=proc.pid, create_time=_create_time(proc.pid))

        if self.settings.startup_grace > 0:
            try:
                returncode = proc.wait(timeout=self.settings.startup_grace)
            except subprocess.TimeoutExpired:
                returncode = None
            if returncode is not None:
                raise ProcessStartError(
                    message=f"node exited during startup with code {returncode}",
                    details={**details, "returncode": returncode, "log_file": str(self.log_path(key))},
                    hint="Inspect the node log file for the startup failure.",
                )

        self.write_pid_file(handle)
        with self._lock:
            self._children[key] = (proc, handle)
        return handle

    def find(self, data_dir: PathLike) -> Optional[NodeHandle]:
        """Handle do nó da instância, ou None.

        Um arquivo de PID corrompido, de processo morto ou de PID
        reutilizado por outro processo é removido.
        """
        key = self._key(data_dir)
        with self._lock:
            tracked = self._children.get(key)
        if tracked is not None:
            return tracked[1]

        handle = self._read_pid_file(key)
        if handle is None or not self.is_running(handle):
            self.pid_path(key).unlink(missing_ok=True)
            return None
        return handle

    def is_running(self, handle: NodeHandle) -> bool:
        proc = self._child_for(handle)
        if proc is not None:
            return proc.poll() is None
        return _pid_alive(handle.pid) and _same_process(handle)

    def stop(self, handle: NodeHandle) -> None:
        if not self.is_running(handle):
            self._forget(handle)
            return

        proc = self._child_for(handle)
        try:
            self._signal(handle.pid, signal.SIGTERM)
            if self._wait_exit(handle, proc, self.settings.stop_timeout):
                self._forget(handle)
                return
            self._signal(handle.pid, signal.SIGKILL)
        except ProcessLookupError:
            self._forget(handle)
            return
        except PermissionError as e:
            raise ProcessStopError(
                message=str(e),
                details={"pid": handle.pid, "data_dir": str(handle.data_dir)},
            ) from e

        if not self._wait_exit(handle, proc, _KILL_TIMEOUT):
            raise ProcessStopError(
                message=f"node process {handle.pid} did not exit after SIGKILL",
                details={"pid": handle.pid, "data_dir": str(handle.data_dir)},
            )
        self._forget(handle)

    # -----------------------------
    # Internos
    # -----------------------------
    def _child_for(self, handle: NodeHandle) -> Optional[subprocess.Popen]:
        with self._lock:
            tracked = self._children.get(self._key(handle.data_dir))
        if tracked is not None and tracked[0].pid == handle.pid:
            return tracked[0]
        return None

    @staticmethod
    def _signal(pid: int, sig: int) -> None:
        # nós iniciados aqui lideram a própria sessão: sinaliza o grupo inteiro
        if os.getpgid(pid) == pid:
            os.killpg(pid, sig)
        else:
            os.kill(pid, sig)

    @staticmethod
    def _wait_exit(handle: NodeHandle, proc: Optional[subprocess.Popen], timeout: float) -> bool:
        if proc is not None:
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                return False
            return True

        deadline = time.monotonic() + timeout
        while _pid_alive(handle.pid):
            if time.monotonic() >= deadline:
                return False
            time.sleep(_POLL_INTERVAL)
        return True

    def _forget(self, handle: NodeHandle) -> None:
        key = self._key(handle.data_dir)
        with self._lock:
            tracked = self._children.get(key)
            if tracked is not None and tracked[0].pid == handle.pid:
                del self._children[key]
        on_disk = self._read_pid_file(key)
        if on_disk is None or on_disk.pid == handle.pid:
            self.pid_path(key).unlink(missing_ok=True)
