from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Mapping, TypeAlias
import tomllib

from qbit_lsp.diagnostics import FailurePolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "qbit.toml"
DEFAULT_TIMEOUT_MS = 2000
DEFAULT_LOG_LEVEL = "WARNING"

PARSER_ENV = "QBIT_PARSER"
TIMEOUT_ENV = "QBIT_ANALYSIS_TIMEOUT_MS"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        logger.warning("cannot read config %s", path, exc_info=True)
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("ignoring invalid config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def analysis_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("analysis", {})
    return section if isinstance(section, dict) else {}


def server_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("server", {})
    return section if isinstance(section, dict) else {}


def _as_timeout_ms(value: TomlValue) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        # int(0.5) would silently disable the deadline.
        return None
    if isinstance(value, (int, float)):
        return int(value) if value >= 0 else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
        return parsed if parsed >= 0 else None
    return None


def _as_failure_policy(value: TomlValue) -> FailurePolicy | None:
    if not isinstance(value, str):
        return None
    try:
        return FailurePolicy(value.strip().lower())
    except ValueError:
        return None


def _as_log_level(value: TomlValue) -> str | None:
    if not isinstance(value, str):
        return None
    level = value.strip().upper()
    return level if level in _LOG_LEVELS else None


@dataclass(frozen=True)
class AnalysisSettings:
    parser: str | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    failure_policy: FailurePolicy = FailurePolicy.FALLBACK
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms <= 0:
            return None
        return self.timeout_ms / 1000


def resolve_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AnalysisSettings:
    env = os.environ if environ is None else environ
    analysis = analysis_defaults(root=root, config_path=config_path)
    server = server_defaults(root=root, config_path=config_path)

    parser_value = env.get(PARSER_ENV, "").strip() or analysis.get("parser")
    parser = parser_value.strip() if isinstance(parser_value, str) else None

    timeout_ms = DEFAULT_TIMEOUT_MS
    for raw in (analysis.get("timeout_ms"), env.get(TIMEOUT_ENV)):
        if raw in (None, ""):
            continue
        parsed = _as_timeout_ms(raw)
        if parsed is None:
            logger.warning("ignoring invalid analysis timeout %r", raw)
            continue
        timeout_ms = parsed

    failure_policy = FailurePolicy.FALLBACK
    raw_policy = analysis.get("failure_policy")
    if raw_policy is not None:
        parsed_policy = _as_failure_policy(raw_policy)
        if parsed_policy is None:
            logger.warning("ignoring unknown failure_policy %r", raw_policy)
        else:
            failure_policy = parsed_policy

    log_level = _as_log_level(server.get("log_level")) or DEFAULT_LOG_LEVEL

    return AnalysisSettings(
        parser=parser or None,
        timeout_ms=timeout_ms,
        failure_policy=failure_policy,
        log_level=log_level,
    )
