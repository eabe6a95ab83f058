"""Typed configuration loader for chainhash tables."""

from __future__ import annotations

import math
import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from numbers import Real
from pathlib import Path
from typing import Any

from .contracts.error import InvalidConfigurationError
from .core.table import DEFAULT_CAPACITY, DEFAULT_LOAD_FACTOR, MAXIMUM_CAPACITY, HashTable

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}
_DISABLED_STRINGS = {"none", "null", "disabled", "off"}


def _coerce_bool(raw: Any, name: str) -> bool:
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
        raise InvalidConfigurationError(f"{name} must be boolean")
    return bool(raw)


@dataclass
class TablePolicy:
    initial_capacity: int = DEFAULT_CAPACITY
    load_factor: float = DEFAULT_LOAD_FACTOR
    allow_null_keys: bool = True

    def validate(self) -> None:
        if isinstance(self.initial_capacity, bool) or not isinstance(self.initial_capacity, int):
            raise InvalidConfigurationError("table.initial_capacity must be an integer")
        if not 0 < self.initial_capacity <= MAXIMUM_CAPACITY:
            raise InvalidConfigurationError(
                f"table.initial_capacity must be in (0, {MAXIMUM_CAPACITY}]"
            )
        if isinstance(self.load_factor, bool) or not isinstance(self.load_factor, Real):
            raise InvalidConfigurationError("table.load_factor must be a number")
        if not math.isfinite(self.load_factor) or not 0.0 < self.load_factor <= 1.0:
            raise InvalidConfigurationError("table.load_factor must be in (0, 1]")


@dataclass
class WatchdogPolicy:
    chain_length_warn: int | None = 8

    def validate(self) -> None:
        warn = self.chain_length_warn
        if warn is None:
            return
        if isinstance(warn, bool) or not isinstance(warn, int):
            raise InvalidConfigurationError("watchdog.chain_length_warn must be an integer or None")
        if warn <= 0:
            raise InvalidConfigurationError("watchdog.chain_length_warn must be > 0 when set")


@dataclass
class AppConfig:
    table: TablePolicy = field(default_factory=TablePolicy)
    watchdog: WatchdogPolicy = field(default_factory=WatchdogPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise InvalidConfigurationError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise InvalidConfigurationError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise InvalidConfigurationError("[table] section must be a table")
        table_kwargs = dict(table_data)
        if "allow_null_keys" in table_kwargs:
            table_kwargs["allow_null_keys"] = _coerce_bool(
                table_kwargs["allow_null_keys"], "table.allow_null_keys"
            )
        try:
            table = TablePolicy(**table_kwargs)
        except TypeError as exc:
            raise InvalidConfigurationError(f"Unknown [table] option: {exc}") from exc

        watchdog_data = data.get("watchdog", {})
        if not isinstance(watchdog_data, dict):
            raise InvalidConfigurationError("[watchdog] section must be a table")
        watchdog_kwargs: dict[str, Any] = {}
        if "chain_length_warn" in watchdog_data:
            value = watchdog_data["chain_length_warn"]
            if value is None or (
                isinstance(value, str) and value.strip().lower() in _DISABLED_STRINGS
            ):
                watchdog_kwargs["chain_length_warn"] = None
            elif isinstance(value, str):
                try:
                    watchdog_kwargs["chain_length_warn"] = int(value)
                except ValueError as exc:
                    raise InvalidConfigurationError(
                        "watchdog.chain_length_warn must be an integer or 'none'"
                    ) from exc
            else:
                watchdog_kwargs["chain_length_warn"] = value

        watchdog = WatchdogPolicy(**watchdog_kwargs)
        return cls(table=table, watchdog=watchdog)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        table_mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "CHAINHASH_INITIAL_CAPACITY": ("initial_capacity", int),
            "CHAINHASH_LOAD_FACTOR": ("load_factor", float),
        }
        for key, (attr, caster) in table_mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise InvalidConfigurationError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.table, attr, value)

        raw_nulls = env.get("CHAINHASH_ALLOW_NULL_KEYS")
        if raw_nulls is not None:
            normalized = raw_nulls.strip().lower()
            if normalized in _TRUE_STRINGS:
                self.table.allow_null_keys = True
            elif normalized in _FALSE_STRINGS:
                self.table.allow_null_keys = False
            else:
                raise InvalidConfigurationError(
                    f"Invalid env override CHAINHASH_ALLOW_NULL_KEYS={raw_nulls!r}"
                )

        raw_warn = env.get("CHAINHASH_CHAIN_LENGTH_WARN")
        if raw_warn is not None:
            if raw_warn.strip().lower() in _DISABLED_STRINGS:
                self.watchdog.chain_length_warn = None
            else:
                try:
                    self.watchdog.chain_length_warn = int(raw_warn)
                except ValueError as exc:
                    raise InvalidConfigurationError(
                        f"Invalid env override CHAINHASH_CHAIN_LENGTH_WARN={raw_warn!r}"
                    ) from exc

    def validate(self) -> None:
        self.table.validate()
        self.watchdog.validate()

    def build_table(self) -> HashTable[Any, Any]:
        self.validate()
        return HashTable.from_policy(self.table, chain_length_warn=self.watchdog.chain_length_warn)


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
