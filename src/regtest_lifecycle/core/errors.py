"""
regtest-lifecycle: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros reportados pelo Engine.
Erros fazem parte do contrato operacional do pipeline e devem ser:

- explícitos
- serializáveis
- acionáveis

A mensagem da causa original nunca é substituída.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LifecycleErrorPayload:
    """
    Payload canônico de erro do regtest-lifecycle.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem da causa, preservada sem re-embrulho
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    - decision_required: indica se o pipeline aguarda decisão humana
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Registro
DUPLICATE_INSTANCE = "DUPLICATE_INSTANCE"

# Processo do nó
PROCESS_START_ERROR = "PROCESS_START_ERROR"
PROCESS_STOP_ERROR = "PROCESS_STOP_ERROR"

# Workspace
CLEANUP_ERROR = "CLEANUP_ERROR"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"

# Mapeamento nome-da-exceção -> código estável
EXCEPTION_TYPE_CODES: Dict[str, str] = {
    "DuplicateInstanceError": DUPLICATE_INSTANCE,
    "ProcessStartError": PROCESS_START_ERROR,
    "ProcessStopError": PROCESS_STOP_ERROR,
    "CleanupError": CLEANUP_ERROR,
    "EngineConfigurationError": ENGINE_CONFIGURATION_ERROR,
}


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def duplicate_instance(
    *,
    colliding_names: List[str],
    data_dir: Optional[str] = None,
    suffix: Optional[str] = None,
    hint: str = "Use um sufixo distinto para cada instância registrada na mesma run.",
) -> LifecycleErrorPayload:
    return LifecycleErrorPayload(
        type=DUPLICATE_INSTANCE,
        message=f"Operation name already registered: {', '.join(colliding_names)}",
        details={
            "colliding_names": colliding_names,
            "data_dir": data_dir,
            "suffix": suffix,
        },
        hint=hint,
        decision_required=False,
    )


def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log de eventos da run. Nenhum retry é aplicado automaticamente.",
) -> LifecycleErrorPayload:
    return LifecycleErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=exc_message or "Erro inesperado durante execução",
        details={
            "step": step,
            "exc_type": exc_type,
        },
        hint=hint,
        decision_required=False,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para execução do pipeline",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a configuração do engine/steps antes de reexecutar.",
) -> LifecycleErrorPayload:
    return LifecycleErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=False,
    )
