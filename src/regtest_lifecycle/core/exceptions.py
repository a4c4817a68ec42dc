
"""
regtest-lifecycle: Exceções canônicas (v1)

Este módulo define as exceções tipadas do ciclo de vida de nós regtest.

Objetivo:
- Permitir que operações (start/stop/clean) e o registrar levantem exceções semânticas
- Facilitar o mapeamento determinístico para LifecycleErrorPayload
- Preservar a mensagem original da causa (sem re-embrulhar texto)

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A exceção original de SO/filesystem é encadeada via `raise ... from`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LifecycleException(Exception):
    """Base class para exceções internas do regtest-lifecycle.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser a mensagem da causa, sem prefixos que a escondam
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Registro
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DuplicateInstanceError(LifecycleException):
    """Nome de operação já registrado no grafo (sufixo reutilizado)."""


# ---------------------------------------------------------------------------
# Processo do nó
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProcessStartError(LifecycleException):
    """O processo do nó não pôde ser iniciado."""


@dataclass(frozen=True)
class ProcessStopError(LifecycleException):
    """O processo do nó não pôde ser encerrado."""


# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CleanupError(LifecycleException):
    """Falha ao remover o diretório de dados de uma instância."""


# ---------------------------------------------------------------------------
# Engine / Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineConfigurationError(LifecycleException):
    """Configuração inválida ou inconsistente para execução."""
