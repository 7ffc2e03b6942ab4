# SMB Tracker - Financial tracking dashboard for small businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Tracker.

This module is responsible for:
- loading the application configuration from a TOML file,
- turning the metric-related sections into the settings used by the engine,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .db import DatabaseConfig
from .debts import DebtSettings
from .engine import MetricSettings
from .formulas import HealthScoreWeights
from .kpis import KpiSettings

DEFAULT_CONFIG_FILE = "smb_tracker_config.toml"


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Tracker.

    This aggregates:
    - the database configuration (where entries are stored),
    - the default user whose entries are displayed,
    - the engine settings (starting balance, health score weights, KPI and
      debt thresholds),
    - display options for tables and CSV output.
    """

    database: DatabaseConfig
    user_id: str
    currency: str
    metrics: MetricSettings
    display_mode: str
    decimals: int


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a sub-table, or an empty mapping when missing or not a table."""
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _float_option(
    section: Mapping[str, Any], key: str, default: float, where: str
) -> float:
    raw = section.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected a number."
        ) from exc


def _int_option(
    section: Mapping[str, Any], key: str, default: int, where: str
) -> int:
    raw = section.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected an integer."
        ) from exc


def _parse_health_weights(section: Mapping[str, Any]) -> HealthScoreWeights:
    defaults = HealthScoreWeights()
    return HealthScoreWeights(
        margin_weight=_float_option(
            section, "margin_weight", defaults.margin_weight, "health_score"
        ),
        cash_flow_bonus=_float_option(
            section, "cash_flow_bonus", defaults.cash_flow_bonus, "health_score"
        ),
        cash_flow_penalty=_float_option(
            section, "cash_flow_penalty", defaults.cash_flow_penalty, "health_score"
        ),
        debt_bonus=_float_option(
            section, "debt_bonus", defaults.debt_bonus, "health_score"
        ),
        debt_penalty=_float_option(
            section, "debt_penalty", defaults.debt_penalty, "health_score"
        ),
        debt_to_profit_limit=_float_option(
            section,
            "debt_to_profit_limit",
            defaults.debt_to_profit_limit,
            "health_score",
        ),
    )


def _parse_kpi_settings(section: Mapping[str, Any]) -> KpiSettings:
    defaults = KpiSettings()

    raw_keywords = section.get("lower_is_better_keywords")
    if raw_keywords is None:
        keywords = defaults.lower_is_better_keywords
    elif isinstance(raw_keywords, list):
        keywords = tuple(str(k).strip().lower() for k in raw_keywords if str(k).strip())
    else:
        raise ValueError(
            "Invalid value for 'kpi.lower_is_better_keywords' in the "
            "configuration. Expected a list of strings."
        )

    return KpiSettings(
        lower_is_better_keywords=keywords,
        at_risk_floor=_float_option(
            section, "at_risk_floor", defaults.at_risk_floor, "kpi"
        ),
        at_risk_ceiling=_float_option(
            section, "at_risk_ceiling", defaults.at_risk_ceiling, "kpi"
        ),
    )


def _parse_debt_settings(section: Mapping[str, Any]) -> DebtSettings:
    defaults = DebtSettings()
    high = _int_option(
        section, "high_urgency_days", defaults.high_urgency_days, "debts"
    )
    medium = _int_option(
        section, "medium_urgency_days", defaults.medium_urgency_days, "debts"
    )
    if medium < high:
        raise ValueError(
            "'debts.medium_urgency_days' cannot be lower than "
            "'debts.high_urgency_days'."
        )
    return DebtSettings(high_urgency_days=high, medium_urgency_days=medium)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Tracker application configuration from a TOML file.

    Expected top-level sections in the TOML file (all optional)
    -----------------------------------------------------------
    [database]
        engine ("sqlite") and path of the SQLite file.

    [user]
        id of the user whose entries are displayed by default.

    [cash_flow]
        starting_balance used by the running-balance projection.

    [health_score]
        margin_weight, cash_flow_bonus, cash_flow_penalty, debt_bonus,
        debt_penalty, debt_to_profit_limit.

    [kpi]
        lower_is_better_keywords (list), at_risk_floor, at_risk_ceiling.

    [debts]
        high_urgency_days, medium_urgency_days.

    [display]
        mode ("table", "csv", "both"), decimals, currency.

    Notes
    -----
    All file paths in the TOML are resolved relative to the directory of
    the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``smb_tracker_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/smb_tracker.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()
    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 2) User
    user_section = _section(raw, "user")
    user_id = str(user_section.get("id") or "default")

    # 3) Engine settings
    cash_flow_section = _section(raw, "cash_flow")
    metrics = MetricSettings(
        starting_balance=_float_option(
            cash_flow_section, "starting_balance", 0.0, "cash_flow"
        ),
        health_weights=_parse_health_weights(_section(raw, "health_score")),
        kpi=_parse_kpi_settings(_section(raw, "kpi")),
        debts=_parse_debt_settings(_section(raw, "debts")),
    )

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in {"table", "csv", "both"}:
        raise ValueError(
            f"Invalid display mode {display_mode!r}, expected table, csv or both."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2
    currency = str(display_section.get("currency") or "USD")

    return AppConfig(
        database=database_config,
        user_id=user_id,
        currency=currency,
        metrics=metrics,
        display_mode=display_mode,
        decimals=decimals,
    )
