# src/regtest_lifecycle/core/config/__init__.py

"""
Camada de configuração do regtest-lifecycle.

Responsável por carregar e resolver a configuração efetiva de uma run:
    - políticas do engine (fail_fast, max_workers)
    - habilitação por operação (steps.<nome>.enabled)
    - parâmetros do processo do nó (seção `node`)
    - instâncias a registrar (seção `instances`)

A resolução é determinística: defaults obrigatórios + override local
opcional, combinados por deep-merge estritamente tipado.

Limites explícitos:
    - Não registra operações nem executa pipeline
    - Não valida semântica da seção `node` (ver lifecycle.settings)
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .loader import load_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "deep_merge",
    "load_config",
]
