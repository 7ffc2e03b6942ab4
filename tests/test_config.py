from pathlib import Path

import pytest

from smb_tracker.config import load_app_config


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "smb_tracker_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_with_empty_file(tmp_path) -> None:
    cfg = load_app_config(str(write_config(tmp_path, "")))

    assert cfg.database.engine == "sqlite"
    assert cfg.database.path == (tmp_path / "data/db/smb_tracker.sqlite").resolve()
    assert cfg.user_id == "default"
    assert cfg.display_mode == "table"
    assert cfg.decimals == 2
    assert cfg.currency == "USD"
    assert cfg.metrics.starting_balance == 0.0
    assert cfg.metrics.health_weights.debt_penalty == 30.0
    assert cfg.metrics.kpi.lower_is_better_keywords == ("cost", "ratio")
    assert cfg.metrics.debts.high_urgency_days == 7


def test_full_configuration(tmp_path) -> None:
    content = """
[database]
engine = "sqlite"
path = "store/app.sqlite"

[user]
id = "alice"

[cash_flow]
starting_balance = 2500

[health_score]
margin_weight = 0.5
debt_penalty = 10

[kpi]
lower_is_better_keywords = ["Cost", " churn ", ""]
at_risk_floor = 70

[debts]
high_urgency_days = 3
medium_urgency_days = 14

[display]
mode = "both"
decimals = 1
currency = "EUR"
"""
    cfg = load_app_config(str(write_config(tmp_path, content)))

    assert cfg.database.path == (tmp_path / "store/app.sqlite").resolve()
    assert cfg.user_id == "alice"
    assert cfg.metrics.starting_balance == pytest.approx(2500.0)
    assert cfg.metrics.health_weights.margin_weight == pytest.approx(0.5)
    assert cfg.metrics.health_weights.debt_penalty == pytest.approx(10.0)
    # Unset weights keep their defaults.
    assert cfg.metrics.health_weights.cash_flow_bonus == pytest.approx(20.0)
    assert cfg.metrics.kpi.lower_is_better_keywords == ("cost", "churn")
    assert cfg.metrics.kpi.at_risk_floor == pytest.approx(70.0)
    assert cfg.metrics.debts.medium_urgency_days == 14
    assert cfg.display_mode == "both"
    assert cfg.decimals == 1
    assert cfg.currency == "EUR"


def test_empty_keyword_list_disables_inference(tmp_path) -> None:
    cfg = load_app_config(
        str(write_config(tmp_path, "[kpi]\nlower_is_better_keywords = []\n"))
    )
    assert cfg.metrics.kpi.lower_is_better_keywords == ()


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


def test_invalid_toml_raises(tmp_path) -> None:
    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(str(write_config(tmp_path, "[database\npath = ")))


@pytest.mark.parametrize(
    "content",
    [
        '[display]\nmode = "pdf"\n',
        '[cash_flow]\nstarting_balance = "lots"\n',
        "[debts]\nhigh_urgency_days = 30\nmedium_urgency_days = 7\n",
        '[kpi]\nlower_is_better_keywords = "cost"\n',
    ],
)
def test_invalid_values_raise(tmp_path, content: str) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(write_config(tmp_path, content)))
