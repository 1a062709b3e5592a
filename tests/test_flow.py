import csv
import json
import pathlib
import shutil
import sys
from collections import Counter

import pytest

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from banquet_seating import cli, csv_loader


@pytest.fixture
def guests_csv(tmp_path):
    path = tmp_path / "guests.csv"
    shutil.copy(pathlib.Path(__file__).parent / "data" / "guests.csv", path)
    return path


def test_full_flow(guests_csv, tmp_path, capsys):
    report = tmp_path / "out" / "report.csv"
    cli.main([
        "--guests", str(guests_csv), "--event", "gala",
        "allocate", "--num-tables", "2", "--seats-per-table", "2", "--seed", "3",
        "--out-report", str(report),
    ])
    summary = json.loads(capsys.readouterr().out)
    assert summary["assigned_count"] == 8
    assert summary["num_tables_used"] == 5
    assert summary["tables_auto_adjusted"] is True

    guests = {g.id: g for g in csv_loader.load_guests(guests_csv)}
    # press guests share table 1
    assert guests["g5"].table_number == guests["g6"].table_number == 1
    # VIP untouched, withdrawn RSVP cleared, other event untouched
    assert guests["g7"].table_number == 7
    assert guests["g8"].table_number is None
    assert guests["g11"].table_number == 3

    # table capacities respected
    seated = [g for gid, g in guests.items() if gid not in ("g7", "g11") and g.table_number]
    counts = Counter(g.table_number for g in seated)
    assert max(counts.values()) <= 2
    assert set(counts) == set(range(1, 6))

    with report.open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert list(rows[0]) == ["table", "partition", "guest_count", "members"]
    # only allocated tables, the VIP table 7 is not part of the run
    assert [(r["table"], r["partition"]) for r in rows] == [
        ("1", "press"), ("2", "female"), ("3", "female/1"), ("4", "male"), ("5", "male/1"),
    ]
    assert set(rows[0]["members"].split("|")) == {"g5", "g6"}
    assert sum(int(r["guest_count"]) for r in rows) == 8


def test_seed_reproducible(guests_csv, tmp_path, capsys):
    other = tmp_path / "copy.csv"
    shutil.copy(guests_csv, other)
    for path in (guests_csv, other):
        cli.main(["--guests", str(path), "--event", "gala", "allocate", "--seats-per-table", "3", "--seed", "11"])
    capsys.readouterr()
    first = {g.id: g.table_number for g in csv_loader.load_guests(guests_csv)}
    second = {g.id: g.table_number for g in csv_loader.load_guests(other)}
    assert first == second


def test_swap_reset_and_rosters(guests_csv, capsys):
    cli.main(["--guests", str(guests_csv), "--event", "other", "swap", "--table-a", "3", "--table-b", "8"])
    assert json.loads(capsys.readouterr().out)["moved_to_b"] == 1

    cli.main(["--guests", str(guests_csv), "--event", "other", "rosters"])
    assert capsys.readouterr().out.strip() == "Table 8: Karl Kern"

    cli.main(["--guests", str(guests_csv), "--event", "gala", "reset"])
    assert "10 guests" in capsys.readouterr().out
    tables = {g.id: g.table_number for g in csv_loader.load_guests(guests_csv)}
    assert tables["g7"] is None
    assert tables["g11"] == 8


def test_invalid_input_exits(guests_csv, capsys):
    with pytest.raises(SystemExit) as info:
        cli.main(["--guests", str(guests_csv), "--event", "gala", "allocate", "--seats-per-table", "0"])
    assert info.value.code == 1
    assert "error (input)" in capsys.readouterr().err


def test_database_source(tmp_path, capsys):
    from banquet_seating.models import Guest
    from banquet_seating.sql_store import SqlGuestStore

    url = f"sqlite:///{tmp_path / 'guests.db'}"
    store = SqlGuestStore(url)
    store.create_schema()
    store.add_guests([
        Guest(id="a", event_id="e1", attributes={"Zusage": "ja"}),
        Guest(id="b", event_id="e1", attributes={"Zusage": "ja", "Presse": "ja"}),
    ])
    cli.main(["--database", url, "--event", "e1", "allocate", "--num-tables", "1", "--seats-per-table", "2"])
    assert json.loads(capsys.readouterr().out)["num_tables_used"] == 2
    tables = {g.id: g.table_number for g in store.list_guests_by_event("e1")}
    assert tables == {"b": 1, "a": 2}


def test_assign_subcommand(guests_csv, capsys):
    cli.main(["--guests", str(guests_csv), "--event", "gala", "assign", "--table", "4", "--guest-ids", "g1", "g2", "g11", "nobody"])
    assert capsys.readouterr().out.strip() == "Moved 2 guests to table 4"
    tables = {g.id: g.table_number for g in csv_loader.load_guests(guests_csv)}
    assert (tables["g1"], tables["g2"]) == (4, 4)
    assert tables["g11"] == 3


def test_bad_database_url_exits(capsys):
    with pytest.raises(SystemExit) as info:
        cli.main(["--database", "not a url", "--event", "e1", "rosters"])
    assert info.value.code == 1
    assert "error (store_read)" in capsys.readouterr().err
