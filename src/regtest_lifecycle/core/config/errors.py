# src/regtest_lifecycle/core/config/errors.py
"""
Exceções canônicas da camada de configuração.

Todas as falhas de carregamento e resolução de configuração herdam de
`ConfigError`, permitindo captura genérica sem confundi-las com falhas
de execução de operações (start/stop/clean).
"""


class ConfigError(Exception):
    """Exceção base para erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de defaults ausente no caminho informado.

    O arquivo de defaults é obrigatório; sem ele não existe configuração
    efetiva válida para a run.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo de configuração não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz da configuração não é um mapa (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"node": {"stop_timeout": 10.0}}
        - override: {"node": "bitcoind"}
    """
