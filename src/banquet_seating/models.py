"""Data models for banquet seating."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional
import math


def parse_bool(value: object) -> bool:
    """Parse common truthy CSV cells into bool.

    ``pandas`` may hand over ``float('nan')`` or ``""`` for missing cells,
    both of which are false.
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return str(value).strip().lower() in {"true", "1", "yes", "ja"}


def parse_table_number(value: object) -> Optional[int]:
    """Parse a stored table number. Blank or non positive values mean unseated."""
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value) or not value.is_integer():
            return None
        value = int(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = int(float(text))
    except ValueError:
        return None
    return number if number >= 1 else None


@dataclass
class Guest:
    """A guest of one event.

    ``attributes`` is the loosely typed fact bag (RSVP, gender marker, color
    tag, press flag, ...). It is kept raw and only interpreted by
    :mod:`banquet_seating.attributes`.
    """

    id: str
    name: str = ""
    event_id: str = ""
    is_vip: bool = False
    attributes: object = field(default_factory=dict)
    table_number: Optional[int] = None


class PartitionKey(NamedTuple):
    """Gender and color block of a general partition."""

    is_female: bool
    color_tag: str


class TableNumberUpdate(NamedTuple):
    guest_id: str
    table_number: Optional[int]


@dataclass
class PartitionAllocation:
    """Contiguous table range handed to one partition."""

    label: str
    guest_ids: List[str]
    first_table: int
    table_count: int
    key: Optional[PartitionKey] = None

    @property
    def last_table(self) -> int:
        return self.first_table + self.table_count - 1


@dataclass
class AllocationPlan:
    """Complete guest to table mapping computed before any write."""

    assignments: Dict[str, int] = field(default_factory=dict)
    clears: List[str] = field(default_factory=list)
    partitions: List[PartitionAllocation] = field(default_factory=list)
    table_count: int = 0

    def updates(self) -> Iterator[TableNumberUpdate]:
        for guest_id, table in self.assignments.items():
            yield TableNumberUpdate(guest_id, table)
        for guest_id in self.clears:
            yield TableNumberUpdate(guest_id, None)

    def __len__(self) -> int:
        return len(self.assignments) + len(self.clears)


@dataclass
class AllocationSummary:
    """Outcome of one allocation run."""

    event_id: str
    assigned_count: int
    num_tables_used: int
    tables_auto_adjusted: bool
    unassigned_count: int
    skipped_vip_count: int
    skipped_no_rsvp_count: int
    num_tables_requested: int
    seats_per_table: int

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class SwapSummary:
    table_a: int
    table_b: int
    moved_to_b: int
    moved_to_a: int

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)
