# src/regtest_lifecycle/core/pipeline/context.py
"""
Contexto de execução compartilhado do pipeline.

Este módulo define o `RunContext`, a estrutura passada a todas as
operações durante uma run. É o único meio permitido de:
    - armazenar artefatos intermediários (ex.: handle do nó iniciado)
    - registrar logs estruturados de execução
    - coletar warnings não fatais por operação

Invariantes:
    - Cada run possui seu próprio contexto (sem estado global)
    - Logs sempre incluem `run_id`, `step_id` e timestamp UTC
    - Warnings são agrupados por `step_id`
    - Mutações são serializadas: o Engine pode executar operações
      independentes em paralelo sobre o mesmo contexto

Limites explícitos:
    - Não executa operações
    - Não persiste dados entre runs
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


@dataclass
class RunContext:
    """
    Contexto de execução compartilhado de uma run do pipeline.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração efetiva (defaults + override local)
    - meta: metadados livres (ex.: origem da run)
    - events: log estruturado de eventos, em ordem de emissão
    - warnings: warnings por step_id
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False, compare=False
    )

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        with self._lock:
            self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        with self._lock:
            return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        with self._lock:
            if key not in self._artifacts:
                raise KeyError(key)
            return self._artifacts[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(step_id, []).append(message)

    def events_for(self, step_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self.events if e.get("step_id") == step_id]
