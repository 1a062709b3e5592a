"""Guest stores the engine reads from and writes table numbers to.

A store must apply a batch of table number updates all-or-nothing. Every
update is checked before anything is written.
"""
from __future__ import annotations

import copy
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

import pandas as pd

from .config import EVENT_COLUMN, ID_COLUMN, TABLE_COLUMNS
from .csv_loader import frame_to_guests, read_guest_frame
from .models import Guest, TableNumberUpdate

logger = logging.getLogger(__name__)


class GuestStore(Protocol):
    def list_guests_by_event(self, event_id: str) -> List[Guest]:
        ...

    def batch_set_table_numbers(self, event_id: str, updates: Iterable[TableNumberUpdate]) -> None:
        ...


class InMemoryGuestStore:
    """Dict backed store. Hands out copies so callers cannot mutate it."""

    def __init__(self, guests: Optional[Iterable[Guest]] = None) -> None:
        self._guests: Dict[str, Guest] = {}
        for g in guests or []:
            self.add(g)

    def add(self, guest: Guest) -> None:
        self._guests[guest.id] = copy.deepcopy(guest)

    def get(self, guest_id: str) -> Guest:
        return copy.deepcopy(self._guests[guest_id])

    def all_guests(self) -> List[Guest]:
        return [copy.deepcopy(g) for g in self._guests.values()]

    def list_guests_by_event(self, event_id: str) -> List[Guest]:
        return [copy.deepcopy(g) for g in self._guests.values() if g.event_id == event_id]

    def batch_set_table_numbers(self, event_id: str, updates: Iterable[TableNumberUpdate]) -> None:
        updates = list(updates)
        for u in updates:
            guest = self._guests.get(u.guest_id)
            if guest is None or guest.event_id != event_id:
                raise KeyError(f"Unknown guest {u.guest_id} for event {event_id}")
        for u in updates:
            self._guests[u.guest_id].table_number = u.table_number


class CsvGuestStore:
    """Guests kept in a CSV file.

    A file without an ``event_id`` column holds the guests of a single event
    and matches any event id. Writes go to a temporary sibling which then
    replaces the file, so readers never see a half written batch.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _event_mask(self, df, event_id: str):
        if EVENT_COLUMN not in df.columns:
            return pd.Series(True, index=df.index)
        return df[EVENT_COLUMN].str.strip() == event_id

    def list_guests_by_event(self, event_id: str) -> List[Guest]:
        df = read_guest_frame(self.path)
        # ids only need to be unique within one event
        return frame_to_guests(df[self._event_mask(df, event_id)])

    def batch_set_table_numbers(self, event_id: str, updates: Iterable[TableNumberUpdate]) -> None:
        df = read_guest_frame(self.path)
        mask = self._event_mask(df, event_id)
        row_by_id = {str(gid).strip(): idx for idx, gid in df.loc[mask, ID_COLUMN].items()}

        updates = list(updates)
        missing = [u.guest_id for u in updates if u.guest_id not in row_by_id]
        if missing:
            raise KeyError(f"Unknown guests for event {event_id}: {', '.join(missing)}")

        table_col = next((c for c in TABLE_COLUMNS if c in df.columns), TABLE_COLUMNS[0])
        if table_col not in df.columns:
            df[table_col] = ""
        for u in updates:
            df.at[row_by_id[u.guest_id], table_col] = "" if u.table_number is None else str(u.table_number)

        self._write_atomic(df)
        logger.debug("Wrote %d table numbers to %s", len(updates), self.path)

    def _write_atomic(self, df) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                df.to_csv(f, index=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
