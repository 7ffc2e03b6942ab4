from pathlib import Path

import pytest

from smb_tracker import __version__
from smb_tracker.cli import main


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "smb_tracker_config.toml"
    path.write_text(
        '[database]\npath = "db/cli.sqlite"\n\n[user]\nid = "alice"\n',
        encoding="utf-8",
    )
    return path


def write_cash_flow_csv(tmp_path: Path) -> Path:
    path = tmp_path / "cash_flow.csv"
    path.write_text(
        "month,inflows,outflows\n2024-02,12000,9000\n2024-01,10000,8000\n",
        encoding="utf-8",
    )
    return path


def test_version(capsys) -> None:
    main(["--version"])
    assert __version__ in capsys.readouterr().out


def test_import_and_render_cash_flow(tmp_path, config_path, capsys) -> None:
    csv_path = write_cash_flow_csv(tmp_path)

    main(
        [
            "--config",
            str(config_path),
            "--import",
            "cash_flow",
            str(csv_path),
            "--scope",
            "cashflow",
        ]
    )

    out = capsys.readouterr().out
    assert "Imported 2 cash_flow entries." in out
    assert "=== Cash-flow projection ===" in out
    assert "5000.0" in out


def test_csv_output(tmp_path, config_path, capsys) -> None:
    output_dir = tmp_path / "out"

    main(
        [
            "--config",
            str(config_path),
            "--scope",
            "all",
            "--display-mode",
            "csv",
            "--output",
            str(output_dir),
        ]
    )

    names = sorted(p.name.rsplit("_", 1)[0] for p in output_dir.glob("*.csv"))
    assert names == [
        "breakdowns",
        "cash_flow",
        "debts",
        "kpis",
        "profit_loss",
        "summary",
    ]
    assert "Warning: no entries" in capsys.readouterr().out


def test_entries_add_list_delete(config_path, capsys) -> None:
    base = ["--config", str(config_path)]

    main(
        base
        + [
            "entries",
            "add",
            "revenue",
            "--set",
            "date=2025-01-10",
            "--set",
            "client=Acme",
            "--set",
            "category=Services",
            "--set",
            "amount=1200",
        ]
    )
    out = capsys.readouterr().out
    entry_id = out.strip().splitlines()[-1].split()[-1].rstrip(".")

    main(base + ["entries", "list", "revenue"])
    out = capsys.readouterr().out
    assert "Acme" in out
    assert "Total entries: 1" in out

    main(base + ["entries", "delete", "revenue", entry_id])
    assert f"Deleted revenue entry {entry_id}." in capsys.readouterr().out


def test_entries_add_rejects_missing_fields(config_path) -> None:
    with pytest.raises(SystemExit):
        main(
            [
                "--config",
                str(config_path),
                "entries",
                "add",
                "revenue",
                "--set",
                "amount=1",
            ]
        )


def test_import_unknown_kind_is_an_error(tmp_path, config_path) -> None:
    csv_path = write_cash_flow_csv(tmp_path)
    with pytest.raises(SystemExit):
        main(["--config", str(config_path), "--import", "invoices", str(csv_path)])


def add_revenue_args(config_path: Path, user_id: str) -> list[str]:
    return [
        "--config",
        str(config_path),
        "--user",
        user_id,
        "entries",
        "add",
        "revenue",
        "--set",
        "id=r1",
        "--set",
        "date=2025-01-10",
        "--set",
        "amount=500",
    ]


def test_entries_add_same_id_for_two_users(config_path, capsys) -> None:
    main(add_revenue_args(config_path, "alice"))
    main(add_revenue_args(config_path, "bob"))

    out = capsys.readouterr().out
    assert out.count("Added revenue entry r1.") == 2


def test_entries_add_duplicate_id_is_an_error(config_path, capsys) -> None:
    main(add_revenue_args(config_path, "alice"))

    with pytest.raises(SystemExit):
        main(add_revenue_args(config_path, "alice"))
    assert "Cannot store revenue entry" in capsys.readouterr().err


def test_import_with_ids_for_two_users(tmp_path, config_path, capsys) -> None:
    csv_path = tmp_path / "cash_flow_ids.csv"
    csv_path.write_text(
        "id,month,inflows,outflows\nc1,2024-01,10000,8000\n",
        encoding="utf-8",
    )
    base = ["--config", str(config_path), "--scope", "summary"]

    main(base + ["--user", "alice", "--import", "cash_flow", str(csv_path)])
    main(base + ["--user", "bob", "--import", "cash_flow", str(csv_path)])
    assert capsys.readouterr().out.count("Imported 1 cash_flow entries.") == 2

    with pytest.raises(SystemExit):
        main(base + ["--user", "bob", "--import", "cash_flow", str(csv_path)])
    assert "Cannot import cash_flow entries" in capsys.readouterr().err
