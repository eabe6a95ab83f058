from __future__ import annotations

from fractions import Fraction
from pathlib import Path
from typing import Any

import pytest

from chainhash.config import AppConfig, TablePolicy, WatchdogPolicy, load_app_config
from chainhash.contracts.error import InvalidConfigurationError

_ENV_KEYS = (
    "CHAINHASH_INITIAL_CAPACITY",
    "CHAINHASH_LOAD_FACTOR",
    "CHAINHASH_ALLOW_NULL_KEYS",
    "CHAINHASH_CHAIN_LENGTH_WARN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.table.initial_capacity == 16
    assert cfg.table.load_factor == pytest.approx(0.75)
    assert cfg.table.allow_null_keys is True
    assert cfg.watchdog.chain_length_warn == 8


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text(
        """
[table]
initial_capacity = 64
load_factor = 0.5
allow_null_keys = false

[watchdog]
chain_length_warn = 6
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    assert cfg.table.initial_capacity == 64
    assert cfg.table.load_factor == pytest.approx(0.5)
    assert cfg.table.allow_null_keys is False
    assert cfg.watchdog.chain_length_warn == 6

    # env override takes precedence
    monkeypatch.setenv("CHAINHASH_INITIAL_CAPACITY", "128")
    monkeypatch.setenv("CHAINHASH_ALLOW_NULL_KEYS", "yes")
    monkeypatch.setenv("CHAINHASH_CHAIN_LENGTH_WARN", "off")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.table.initial_capacity == 128
    assert cfg_env.table.allow_null_keys is True
    assert cfg_env.watchdog.chain_length_warn is None


def test_build_table_applies_config() -> None:
    cfg = AppConfig.from_dict(
        {"table": {"initial_capacity": 32, "load_factor": 1.0, "allow_null_keys": False}}
    )
    table = cfg.build_table()
    assert table.capacity == 32
    assert table.load_factor == pytest.approx(1.0)
    assert table.allow_null_keys is False


def test_from_dict_coerces_strings() -> None:
    cfg = AppConfig.from_dict(
        {
            "table": {"allow_null_keys": " off "},
            "watchdog": {"chain_length_warn": "none"},
        }
    )
    assert cfg.table.allow_null_keys is False
    assert cfg.watchdog.chain_length_warn is None

    cfg = AppConfig.from_dict({"watchdog": {"chain_length_warn": "12"}})
    assert cfg.watchdog.chain_length_warn == 12


@pytest.mark.parametrize(
    "data",
    [
        {"table": []},
        {"watchdog": "loud"},
        {"table": {"buckets": 4}},
        {"table": {"allow_null_keys": "maybe"}},
        {"watchdog": {"chain_length_warn": "long"}},
    ],
)
def test_from_dict_rejects_malformed_sections(data: dict[str, Any]) -> None:
    with pytest.raises(InvalidConfigurationError):
        AppConfig.from_dict(data)


@pytest.mark.parametrize(
    ("updates", "message"),
    [
        ({"initial_capacity": 0}, "table.initial_capacity"),
        ({"initial_capacity": -4}, "table.initial_capacity"),
        ({"initial_capacity": 1 << 31}, "table.initial_capacity"),
        ({"initial_capacity": "16"}, "table.initial_capacity"),
        ({"load_factor": 0.0}, "table.load_factor"),
        ({"load_factor": 1.5}, "table.load_factor"),
        ({"load_factor": "high"}, "table.load_factor"),
    ],
)
def test_table_policy_rejects_invalid_values(updates: dict[str, Any], message: str) -> None:
    policy = TablePolicy(**updates)
    with pytest.raises(InvalidConfigurationError) as exc:
        policy.validate()
    assert message in str(exc.value)


def test_table_policy_accepts_non_power_of_two_capacity() -> None:
    TablePolicy(initial_capacity=12).validate()


def test_watchdog_policy_rejects_non_positive_threshold() -> None:
    with pytest.raises(InvalidConfigurationError) as exc:
        WatchdogPolicy(chain_length_warn=0).validate()
    assert "watchdog.chain_length_warn" in str(exc.value)


def test_invalid_files_raise(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigurationError):
        load_app_config(str(tmp_path / "missing.toml"))

    broken = tmp_path / "broken.toml"
    broken.write_text("[table\n", encoding="utf-8")
    with pytest.raises(InvalidConfigurationError):
        load_app_config(str(broken))

    bad = tmp_path / "bad.toml"
    bad.write_text("[table]\nload_factor = 1.5\n", encoding="utf-8")
    with pytest.raises(InvalidConfigurationError):
        load_app_config(str(bad))


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("CHAINHASH_LOAD_FACTOR", "abc"),
        ("CHAINHASH_INITIAL_CAPACITY", "1.5"),
        ("CHAINHASH_ALLOW_NULL_KEYS", "sometimes"),
        ("CHAINHASH_CHAIN_LENGTH_WARN", "many"),
    ],
)
def test_invalid_env_overrides_raise(key: str, value: str) -> None:
    cfg = AppConfig()
    with pytest.raises(InvalidConfigurationError) as exc:
        cfg.apply_env_overrides({key: value})
    assert key in str(exc.value)


@pytest.mark.parametrize("value", ["8", 2.9, True, 0, -3])
def test_watchdog_policy_rejects_non_positive_or_non_integer(value: Any) -> None:
    with pytest.raises(InvalidConfigurationError) as exc:
        WatchdogPolicy(chain_length_warn=value).validate()
    assert "watchdog.chain_length_warn" in str(exc.value)


@pytest.mark.parametrize("value", [2.9, True, [8]])
def test_from_dict_keeps_non_string_threshold_for_validation(value: Any) -> None:
    cfg = AppConfig.from_dict({"watchdog": {"chain_length_warn": value}})
    assert cfg.watchdog.chain_length_warn == value
    with pytest.raises(InvalidConfigurationError):
        cfg.validate()


@pytest.mark.parametrize("raw", ["2.9", "true"])
def test_toml_float_and_bool_thresholds_rejected(tmp_path: Path, raw: str) -> None:
    cfg_path = tmp_path / "watchdog.toml"
    cfg_path.write_text(f"[watchdog]\nchain_length_warn = {raw}\n", encoding="utf-8")
    with pytest.raises(InvalidConfigurationError):
        load_app_config(str(cfg_path))


def test_fraction_load_factor_accepted_through_policy() -> None:
    policy = TablePolicy(load_factor=Fraction(1, 2))
    policy.validate()
    table = AppConfig(table=policy).build_table()
    assert table.load_factor == pytest.approx(0.5)
