import io
import json
import pathlib
import shutil
import sys

import pandas as pd
import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from banquet_seating.attributes import has_rsvp_or_attending, is_vip
from banquet_seating.csv_loader import guests_to_frame, load_guests
from banquet_seating.engine import allocate_tables
from banquet_seating.models import Guest, TableNumberUpdate
from banquet_seating.sql_store import SqlGuestStore
from banquet_seating.store import CsvGuestStore

DATA = pathlib.Path(__file__).parent / "data" / "guests.csv"


def keep_order(members):
    return list(members)


@pytest.fixture
def guests_csv(tmp_path):
    path = tmp_path / "guests.csv"
    shutil.copy(DATA, path)
    return path


class TestCsvLoader:
    def test_load_guests(self):
        guests = {g.id: g for g in load_guests(DATA)}
        assert len(guests) == 11
        assert guests["g7"].is_vip
        assert guests["g7"].table_number == 7
        assert guests["g1"].table_number is None
        assert guests["g2"].attributes == {"Zusage": "TRUE", "Weiblich": "TRUE", "Tischfarbe": "1"}
        assert guests["g11"].event_id == "other"

    def test_additional_data_column(self):
        text = 'id,name,additional_data,Presse\na,Ann,"{""Zusage"": true, ""VIP"": 1}",ja\n'
        (guest,) = load_guests(io.StringIO(text))
        assert guest.attributes == {"Zusage": True, "VIP": 1, "Presse": "ja"}

    def test_missing_id_column(self):
        with pytest.raises(ValueError):
            load_guests(io.StringIO("name\nAnn\n"))

    def test_duplicate_ids(self):
        with pytest.raises(ValueError):
            load_guests(io.StringIO("id,name\na,Ann\na,Bob\n"))

    def test_guests_to_frame(self):
        df = guests_to_frame([Guest(id="a", name="Ann", attributes={"Zusage": "ja"}, table_number=3)])
        assert list(df.columns[:5]) == ["id", "name", "event_id", "is_vip", "table_number"]
        assert df.loc[0, "table_number"] == "3"
        assert json.loads(df.loc[0, "additional_data"]) == {"Zusage": "ja"}

    def test_export_keeps_attribute_types(self):
        text = 'id,name,additional_data\na,Ann,"{""VIP"": 1, ""Zusage"": true}"\n'
        buf = io.StringIO()
        guests_to_frame(load_guests(io.StringIO(text))).to_csv(buf, index=False)
        buf.seek(0)
        (again,) = load_guests(buf)
        assert again.attributes == {"VIP": 1, "Zusage": True}
        assert is_vip(again)
        assert has_rsvp_or_attending(again)

    def test_export_round_trip_of_sample_file(self):
        buf = io.StringIO()
        guests_to_frame(load_guests(DATA)).to_csv(buf, index=False)
        buf.seek(0)
        before = {g.id: g for g in load_guests(DATA)}
        after = {g.id: g for g in load_guests(buf)}
        assert before == after


class TestCsvGuestStore:
    def test_list_filters_event(self, guests_csv):
        store = CsvGuestStore(guests_csv)
        assert [g.id for g in store.list_guests_by_event("other")] == ["g11"]
        assert len(store.list_guests_by_event("gala")) == 10

    def test_same_id_in_two_events(self, tmp_path):
        path = tmp_path / "shared.csv"
        path.write_text("id,name,event_id,Zusage\na,Ann,e1,ja\na,Ann,e2,ja\nb,Bob,e2,ja\n")
        store = CsvGuestStore(path)
        assert [g.id for g in store.list_guests_by_event("e1")] == ["a"]
        assert [g.id for g in store.list_guests_by_event("e2")] == ["a", "b"]
        allocate_tables(store, "e2", 1, 1, permute=keep_order)
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        assert list(df["table_number"]) == ["", "1", "2"]

    def test_file_without_event_column(self, tmp_path):
        path = tmp_path / "single.csv"
        path.write_text("id,name,Zusage\na,Ann,ja\nb,Bob,ja\n")
        store = CsvGuestStore(path)
        summary = allocate_tables(store, "any", 1, 1, permute=keep_order)
        assert summary.assigned_count == 2
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        assert list(df["table_number"]) == ["1", "2"]
        assert list(df["Zusage"]) == ["ja", "ja"]

    def test_batch_is_all_or_nothing(self, guests_csv):
        store = CsvGuestStore(guests_csv)
        before = guests_csv.read_text()
        with pytest.raises(KeyError):
            store.batch_set_table_numbers(
                "gala", [TableNumberUpdate("g1", 4), TableNumberUpdate("g11", 5)]
            )
        assert guests_csv.read_text() == before
        assert not list(guests_csv.parent.glob(".guests.csv.*"))

    def test_full_allocation(self, guests_csv):
        store = CsvGuestStore(guests_csv)
        summary = allocate_tables(store, "gala", 3, 2, permute=keep_order)
        tables = {g.id: g.table_number for g in load_guests(guests_csv)}
        assert tables == {
            "g5": 1, "g6": 1,          # press
            "g1": 2, "g4": 2,          # female, no color
            "g2": 3,                   # female, color 1
            "g9": 4, "g10": 4,         # male, no color (color 9 is invalid)
            "g3": 5,                   # male, color 1
            "g7": 7,                   # VIP untouched
            "g8": None,                # RSVP withdrawn
            "g11": 3,                  # other event
        }
        assert summary.to_dict() == {
            "event_id": "gala",
            "assigned_count": 8,
            "num_tables_used": 5,
            "tables_auto_adjusted": True,
            "unassigned_count": 1,
            "skipped_vip_count": 1,
            "skipped_no_rsvp_count": 1,
            "num_tables_requested": 3,
            "seats_per_table": 2,
        }


class TestSqlGuestStore:
    @pytest.fixture
    def store(self, tmp_path):
        store = SqlGuestStore(f"sqlite:///{tmp_path / 'guests.db'}")
        store.create_schema()
        store.add_guests([
            Guest(id="a", name="Ann", event_id="e1", attributes={"Zusage": "ja", "Weiblich": "ja"}),
            Guest(id="b", name="Bob", event_id="e1", attributes='{"Nimmt teil": true}', table_number=9),
            Guest(id="c", name="Cem", event_id="e1", attributes="broken {", table_number=4),
            Guest(id="v", name="Vera", event_id="e1", is_vip=True, table_number=7),
            Guest(id="x", name="Xaver", event_id="e2", attributes={"Zusage": "ja"}, table_number=1),
        ])
        return store

    def test_round_trip(self, store):
        guests = {g.id: g for g in store.list_guests_by_event("e1")}
        assert set(guests) == {"a", "b", "c", "v"}
        assert guests["v"].is_vip
        assert guests["b"].table_number == 9

    def test_allocation(self, store):
        summary = allocate_tables(store, "e1", 1, 4, permute=keep_order)
        tables = {g.id: g.table_number for g in store.list_guests_by_event("e1")}
        assert tables == {"a": 1, "b": 2, "c": None, "v": 7}
        assert summary.tables_auto_adjusted
        assert store.list_guests_by_event("e2")[0].table_number == 1

    def test_rollback_on_unknown_guest(self, store):
        with pytest.raises(LookupError):
            store.batch_set_table_numbers("e1", [TableNumberUpdate("a", 5), TableNumberUpdate("x", 5)])
        tables = {g.id: g.table_number for g in store.list_guests_by_event("e1")}
        assert tables["a"] is None
