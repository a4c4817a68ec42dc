# src/regtest_lifecycle/core/config/loader.py
"""
Resolução da configuração de uma run do regtest-lifecycle.

Uma run lê duas camadas: o arquivo de defaults do projeto (obrigatório,
normalmente versionado) e um override local da máquina (opcional, ex.:
`local.yaml` apontando `node.binary` para outro bitcoind ou trocando a
lista de `instances`). O override local vence; ver `merge.deep_merge`
para a política por tipo.

Exemplo de defaults (YAML):

    engine:
      fail_fast: true
      max_workers: 1
    node:
      binary: bitcoind
      args: ["-regtest", "-datadir={data_dir}"]
      stop_timeout: 10
    instances:
      - data_dir: .localnet/bitcoind
        suffix: ""
    steps:
      cleanA:
        enabled: false

As seções (`engine`, `node`, `instances`, `steps`) são interpretadas por
quem as consome (Engine, NodeSettings, registrar); aqui só se garante
que cada camada é um mapa.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


Layer = Dict[str, Any]

# extensão → parser do texto da camada
_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


def _parse_layer(path: Path, role: str) -> Layer:
    """Lê uma camada (`role` é "defaults" ou "local", usado nas mensagens)."""
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        supported = ", ".join(sorted(_PARSERS))
        raise UnsupportedConfigFormatError(
            f"Config {role} com formato não suportado: {path.name} (aceitos: {supported})"
        )

    layer = parser(path.read_text(encoding="utf-8"))
    if layer is None:
        # arquivo vazio (ou só comentários) equivale a nenhuma chave
        return {}
    if not isinstance(layer, dict):
        raise InvalidConfigRootTypeError(
            f"Config {role} em {path} deve ser um mapa, recebido: {type(layer).__name__}"
        )
    return layer


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Devolve a configuração efetiva: defaults com o override local aplicado.

    `local_path` ausente no disco é normal (máquina sem overrides) e
    resulta nos defaults puros.

    Raises:
        DefaultsNotFoundError: defaults inexistente.
        UnsupportedConfigFormatError: extensão fora de .yaml/.yml/.json.
        InvalidConfigRootTypeError: camada cuja raiz não é um mapa.
        ConfigTypeConflictError: override local muda o tipo de uma chave.
    """
    defaults_file = Path(defaults_path)
    if not defaults_file.is_file():
        raise DefaultsNotFoundError(f"Arquivo de defaults não encontrado: {defaults_file}")
    config = _parse_layer(defaults_file, "defaults")

    local_file = Path(local_path) if local_path is not None else None
    if local_file is None or not local_file.exists():
        return config
    return deep_merge(config, _parse_layer(local_file, "local"))
