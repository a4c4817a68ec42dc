# src/regtest_lifecycle/core/config/merge.py
"""
Aplicação do override local sobre os defaults da run.

Por tipo do valor no override:
    - mapa sobre mapa: recursão (ex.: `steps.cleanA.enabled` isolado)
    - lista sobre lista: a lista local substitui a inteira, pois
      `instances` e `node.args` não fazem sentido concatenados
    - chave nova ou valor nulo nos defaults: aceita qualquer valor
    - demais: substitui, desde que o tipo seja compatível

Um tipo incompatível (ex.: `node: bitcoind` sobre o mapa `node`) aborta
a resolução com o caminho pontuado da chave. Nenhuma entrada é mutada.
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def _compatible(current: Any, incoming: Any) -> bool:
    # bool é subclasse de int, mas `fail_fast: 1` nunca é um booleano válido
    if isinstance(current, bool) or isinstance(incoming, bool):
        return type(current) is type(incoming)
    # timeouts aceitam 10 ou 2.5
    if isinstance(current, (int, float)) and isinstance(incoming, (int, float)):
        return True
    return type(current) is type(incoming)


def _merge_value(path: Tuple[str, ...], current: Any, incoming: Any) -> Any:
    if current is None:
        return deepcopy(incoming)
    if isinstance(current, dict) and isinstance(incoming, dict):
        return _merge_mapping(path, current, incoming)
    if isinstance(current, list) and isinstance(incoming, list):
        return deepcopy(incoming)
    if not _compatible(current, incoming):
        raise ConfigTypeConflictError(
            f"Override de '{'.'.join(path)}' muda o tipo: "
            f"{type(current).__name__} -> {type(incoming).__name__}"
        )
    return deepcopy(incoming)


def _merge_mapping(path: Tuple[str, ...], current: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    # ordem das chaves: a dos defaults, seguida das chaves novas do override
    merged: Dict[str, Any] = {}
    for key, value in current.items():
        if key in incoming:
            merged[key] = _merge_value(path + (str(key),), value, incoming[key])
        else:
            merged[key] = deepcopy(value)
    for key, value in incoming.items():
        if key not in current:
            merged[key] = deepcopy(value)
    return merged


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Nova configuração com `override` aplicado sobre `base`.

    Raises:
        ConfigTypeConflictError: raiz não-mapa ou tipo incompatível em
            alguma chave (a mensagem traz o caminho, ex. `engine.max_workers`).
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Camadas de config devem ser mapas, recebido: "
            f"{type(base).__name__} e {type(override).__name__}"
        )
    return _merge_mapping((), base, override)
