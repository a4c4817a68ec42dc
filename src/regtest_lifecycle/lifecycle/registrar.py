# src/regtest_lifecycle/lifecycle/registrar.py
"""
Registro das operações de ciclo de vida de uma instância de nó.

Este módulo define o `LifecycleRegistrar`, responsável por publicar no
`PipelineGraph` as três operações de uma instância `(data_dir, suffix)`:

    start<Label><suffix>  → StartNodeStep
    stop<Label><suffix>   → StopNodeStep
    clean<Label><suffix>  → CleanDataDirStep (depends_on: stop)

Com o label padrão (vazio) os nomes são `start`, `stop` e `clean`
seguidos do sufixo, ex.: `startA`, `stopA`, `cleanA`.

Princípios fundamentais:
    - Registro é construção pura de grafo: nada executa como efeito colateral
    - A única mutação é a inserção das três operações no grafo
    - Colisão de nomes é verificada antes de qualquer inserção; uma falha
      deixa o grafo exatamente como estava

Invariantes:
    - clean sempre depende de stop da mesma instância
    - start e stop não são ordenados entre si
    - Nomes são funções determinísticas de (verbo, label, sufixo)

Limites explícitos:
    - Não executa operações (ver core.engine)
    - Não garante exclusividade de data_dir entre instâncias (convenção:
      sufixo único implica data_dir único)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from regtest_lifecycle.core.config.errors import ConfigError
from regtest_lifecycle.core.errors import duplicate_instance
from regtest_lifecycle.core.exceptions import DuplicateInstanceError
from regtest_lifecycle.core.pipeline.graph import PipelineGraph, StepHandle

from .process import ProcessHandle
from .steps import CleanDataDirStep, StartNodeStep, StopNodeStep


START = "start"
STOP = "stop"
CLEAN = "clean"
VERBS: Tuple[str, str, str] = (START, STOP, CLEAN)


def operation_name(verb: str, suffix: str = "", label: str = "") -> str:
    """Nome canônico de uma operação: `<verb><label><suffix>`."""
    return f"{verb}{label}{suffix}"


@dataclass(frozen=True)
class Instance:
    """Uma instância de nó: diretório de dados + sufixo de nomes."""

    data_dir: Path
    suffix: str = ""


@dataclass(frozen=True)
class LifecycleOps:
    """Handles das três operações registradas para uma instância."""

    instance: Instance
    start: StepHandle
    stop: StepHandle
    clean: StepHandle

    def names(self) -> List[str]:
        return [self.start.name, self.stop.name, self.clean.name]


@dataclass
class LifecycleRegistrar:
    """
    Publica start/stop/clean de instâncias de nó num `PipelineGraph`.

    Exemplo:

        graph = PipelineGraph()
        registrar = LifecycleRegistrar(graph=graph, process=NodeProcess())
        ops = registrar.register_all("/tmp/node-a", suffix="A")
        ops.names()  # ["startA", "stopA", "cleanA"]

    Args:
        graph: namespace de operações da run.
        process: colaborador que inicia/encerra o processo do nó.
        instance_label: texto inserido entre verbo e sufixo.
    """

    graph: PipelineGraph
    process: ProcessHandle
    instance_label: str = ""
    _registered: List[LifecycleOps] = field(default_factory=list, init=False, repr=False)

    def names_for(self, suffix: str = "") -> Tuple[str, str, str]:
        start, stop, clean = (operation_name(v, suffix, self.instance_label) for v in VERBS)
        return start, stop, clean

    def register_all(self, data_dir: Union[str, Path], suffix: str = "") -> LifecycleOps:
        """
        Registra start, stop e clean de uma instância e declara clean → stop.

        Args:
            data_dir: diretório de dados da instância (não vazio).
            suffix: sufixo dos nomes; vazio para a instância padrão.

        Returns:
            LifecycleOps: handles das três operações.

        Raises:
            ValueError: se `data_dir` for vazio ou `suffix` não for string.
            DuplicateInstanceError: se algum dos nomes já existir no grafo.
        """
        if data_dir is None or not str(data_dir).strip():
            raise ValueError("data_dir must be a non-empty path")
        if not isinstance(suffix, str):
            raise ValueError(f"suffix must be a string, got {type(suffix).__name__}")

        path = Path(data_dir)
        start_name, stop_name, clean_name = self.names_for(suffix)

        colliding = [n for n in (start_name, stop_name, clean_name) if n in self.graph]
        if colliding:
            payload = duplicate_instance(
                colliding_names=colliding,
                data_dir=str(path),
                suffix=suffix,
            )
            raise DuplicateInstanceError(
                message=payload.message,
                details=payload.details,
                hint=payload.hint,
            )

        start = self.graph.add(StartNodeStep(id=start_name, data_dir=path, process=self.process))
        stop = self.graph.add(StopNodeStep(id=stop_name, data_dir=path, process=self.process))
        clean = self.graph.add(CleanDataDirStep(id=clean_name, data_dir=path, depends_on=[stop.name]))

        ops = LifecycleOps(
            instance=Instance(data_dir=path, suffix=suffix),
            start=start,
            stop=stop,
            clean=clean,
        )
        self._registered.append(ops)
        return ops

    @property
    def registered(self) -> List[LifecycleOps]:
        return list(self._registered)


def register_instances(registrar: LifecycleRegistrar, config: Dict[str, Any]) -> List[LifecycleOps]:
    """
    Registra todas as instâncias declaradas em `config["instances"]`.

    Cada entrada é um mapa `{data_dir: str, suffix: str (opcional)}`.
    A ordem de declaração é a ordem de registro.

    Raises:
        ConfigError: se a seção `instances` for malformada.
        DuplicateInstanceError: se dois sufixos colidirem.
    """
    entries = (config or {}).get("instances", []) or []
    if not isinstance(entries, list):
        raise ConfigError("Invalid config: instances must be a list")

    registered: List[LifecycleOps] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid config: instances[{i}] must be a mapping")
        data_dir = entry.get("data_dir")
        if not isinstance(data_dir, str) or not data_dir.strip():
            raise ConfigError(f"Invalid config: instances[{i}].data_dir must be a non-empty string")
        suffix = entry.get("suffix", "")
        if suffix is None:
            suffix = ""
        if not isinstance(suffix, str):
            raise ConfigError(f"Invalid config: instances[{i}].suffix must be a string")
        registered.append(registrar.register_all(data_dir, suffix=suffix))
    return registered
