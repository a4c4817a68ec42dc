"""Parâmetros do processo do nó (seção `node` da configuração).

Exemplo:

    node:
      binary: bitcoind
      args: ["-regtest", "-datadir={data_dir}", "-server"]
      pid_file: node.pid
      log_file: node.log
      stop_timeout: 10
      startup_grace: 0.5

O placeholder `{data_dir}` em `args` é substituído pelo caminho absoluto
do diretório de dados da instância.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from regtest_lifecycle.core.config.errors import ConfigError


DATA_DIR_PLACEHOLDER = "{data_dir}"


def _require_str(node_cfg: Dict[str, Any], key: str, default: str) -> str:
    value = node_cfg.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid config: node.{key} must be a non-empty string")
    return value


def _require_seconds(node_cfg: Dict[str, Any], key: str, default: float) -> float:
    value = node_cfg.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"Invalid config: node.{key} must be a non-negative number")
    return float(value)


@dataclass(frozen=True)
class NodeSettings:
    binary: str = "bitcoind"
    args: Tuple[str, ...] = field(default=("-regtest", f"-datadir={DATA_DIR_PLACEHOLDER}"))
    pid_file: str = "node.pid"
    log_file: str = "node.log"
    stop_timeout: float = 10.0
    startup_grace: float = 0.5

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "NodeSettings":
        node_cfg = (config or {}).get("node", {}) or {}
        if not isinstance(node_cfg, dict):
            raise ConfigError("Invalid config: node must be a mapping")

        defaults = cls()
        args = node_cfg.get("args", list(defaults.args))
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise ConfigError("Invalid config: node.args must be a list of strings")

        return cls(
            binary=_require_str(node_cfg, "binary", defaults.binary),
            args=tuple(args),
            pid_file=_require_str(node_cfg, "pid_file", defaults.pid_file),
            log_file=_require_str(node_cfg, "log_file", defaults.log_file),
            stop_timeout=_require_seconds(node_cfg, "stop_timeout", defaults.stop_timeout),
            startup_grace=_require_seconds(node_cfg, "startup_grace", defaults.startup_grace),
        )
