"""CSV loading utilities."""
from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any, Dict, List

import pandas as pd

from .attributes import parse_attribute_bag
from .config import (
    ADDITIONAL_DATA_COLUMN,
    EVENT_COLUMN,
    ID_COLUMN,
    NAME_COLUMN,
    TABLE_COLUMNS,
    VIP_COLUMNS,
)
from .models import Guest, parse_bool, parse_table_number

_RESERVED = {ID_COLUMN, NAME_COLUMN, EVENT_COLUMN, ADDITIONAL_DATA_COLUMN, *VIP_COLUMNS, *TABLE_COLUMNS}


def read_guest_frame(path: Path | str | IO[Any]) -> pd.DataFrame:
    """Read a guests CSV keeping every cell as text and blanks as ``""``."""
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _first_column(df: pd.DataFrame, candidates) -> str | None:
    return next((c for c in candidates if c in df.columns), None)


def frame_to_guests(df: pd.DataFrame) -> List[Guest]:
    """Build guests from a frame read by :func:`read_guest_frame`.

    Columns other than the known guest fields become attributes. An
    ``additional_data`` column holding JSON objects is merged in first.
    """
    if ID_COLUMN not in df.columns:
        raise ValueError(f"Guest file has no '{ID_COLUMN}' column")
    vip_col = _first_column(df, VIP_COLUMNS)
    table_col = _first_column(df, TABLE_COLUMNS)
    attribute_cols = [c for c in df.columns if c not in _RESERVED]

    guests: List[Guest] = []
    seen = set()
    for _, row in df.iterrows():
        guest_id = str(row[ID_COLUMN]).strip()
        if not guest_id:
            raise ValueError("Guest file has a row without an id")
        if guest_id in seen:
            raise ValueError(f"Duplicate guest id: {guest_id}")
        seen.add(guest_id)

        attributes: Dict[str, object] = {}
        if ADDITIONAL_DATA_COLUMN in df.columns:
            attributes.update(parse_attribute_bag(row[ADDITIONAL_DATA_COLUMN]))
        for col in attribute_cols:
            value = str(row[col]).strip()
            if value:
                attributes[col] = value

        guests.append(
            Guest(
                id=guest_id,
                name=str(row.get(NAME_COLUMN, "")).strip(),
                event_id=str(row.get(EVENT_COLUMN, "")).strip(),
                is_vip=parse_bool(row[vip_col]) if vip_col else False,
                attributes=attributes,
                table_number=parse_table_number(row[table_col]) if table_col else None,
            )
        )
    return guests


def load_guests(path: Path | str | IO[Any]) -> List[Guest]:
    """Load guests from a guests CSV."""
    return frame_to_guests(read_guest_frame(path))


def guests_to_frame(guests: List[Guest]) -> pd.DataFrame:
    """One row per guest. The attribute bag is written as JSON to
    ``additional_data`` so booleans and numbers keep their type on reload.
    """
    columns = [ID_COLUMN, NAME_COLUMN, EVENT_COLUMN, VIP_COLUMNS[0], TABLE_COLUMNS[0], ADDITIONAL_DATA_COLUMN]
    rows = [
        {
            ID_COLUMN: g.id,
            NAME_COLUMN: g.name,
            EVENT_COLUMN: g.event_id,
            VIP_COLUMNS[0]: "true" if g.is_vip else "false",
            TABLE_COLUMNS[0]: "" if g.table_number is None else str(g.table_number),
            ADDITIONAL_DATA_COLUMN: json.dumps(parse_attribute_bag(g.attributes), ensure_ascii=False, default=str),
        }
        for g in guests
    ]
    return pd.DataFrame(rows, columns=columns)
