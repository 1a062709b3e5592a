"""
Randomised banquet table allocation.

Guests are split into disjoint partitions and every partition gets its own
contiguous block of table numbers:

    1. press guests (numbering starts at 1),
    2. general guests by (gender, color tag), female first, colors "", 1..4.

Within a partition guests are shuffled and seated in order, ``k`` per table,
so a partition of ``n`` guests uses ``ceil(n / k)`` tables. VIP guests are
never touched. Non VIP guests without an RSVP signal get their table number
cleared.

Re-running reshuffles seating. The result is intentionally non-deterministic
unless a fixed ``permute`` function is passed in.
"""
from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from numbers import Integral
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .attributes import has_rsvp_or_attending, is_press, is_vip, partition_key
from .config import PRESS_LABEL
from .errors import InputValidationError
from .models import (
    AllocationPlan,
    AllocationSummary,
    Guest,
    PartitionAllocation,
    PartitionKey,
)

logger = logging.getLogger(__name__)

Permutation = Callable[[List[str]], List[str]]

# Allocation order of the general partitions. Changing it changes which
# block gets the low table numbers.
GENERAL_PARTITION_ORDER: Tuple[PartitionKey, ...] = (
    PartitionKey(True, ""),
    PartitionKey(True, "1"),
    PartitionKey(True, "2"),
    PartitionKey(True, "3"),
    PartitionKey(True, "4"),
    PartitionKey(False, ""),
    PartitionKey(False, "1"),
    PartitionKey(False, "2"),
    PartitionKey(False, "3"),
    PartitionKey(False, "4"),
)


def partition_label(key: PartitionKey) -> str:
    gender = "female" if key.is_female else "male"
    return f"{gender}/{key.color_tag}" if key.color_tag else gender


# ----------------------------- validation -----------------------------
def require_event_id(event_id: object) -> None:
    if not isinstance(event_id, str) or not event_id.strip():
        raise InputValidationError("event_id is required")


def require_positive_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, Integral) or value < 1:
        raise InputValidationError(f"{name} must be a positive integer, got {value!r}")


def validate_request(event_id: object, num_tables: object, seats_per_table: object) -> None:
    """Reject a bad request before any guest store access."""
    require_event_id(event_id)
    require_positive_int("num_tables", num_tables)
    require_positive_int("seats_per_table", seats_per_table)


# ----------------------------- classification -----------------------------
@dataclass
class Eligibility:
    """Guests of one event split by who may be seated."""

    total: int = 0
    non_vip: List[Guest] = field(default_factory=list)
    eligible: List[Guest] = field(default_factory=list)
    press: List[Guest] = field(default_factory=list)
    general: List[Guest] = field(default_factory=list)

    @property
    def skipped_vip_count(self) -> int:
        return self.total - len(self.non_vip)

    @property
    def skipped_no_rsvp_count(self) -> int:
        return len(self.non_vip) - len(self.eligible)


def classify_eligibility(guests: Sequence[Guest]) -> Eligibility:
    result = Eligibility(total=len(guests))
    for guest in guests:
        if is_vip(guest):
            continue
        result.non_vip.append(guest)
        if not has_rsvp_or_attending(guest):
            continue
        result.eligible.append(guest)
        if is_press(guest):
            result.press.append(guest)
        else:
            result.general.append(guest)
    return result


def partition_general(guests: Sequence[Guest]) -> List[Tuple[PartitionKey, List[str]]]:
    """Group general guests by (gender, color), non empty groups in fixed order."""
    groups: Dict[PartitionKey, List[str]] = {}
    for guest in guests:
        groups.setdefault(partition_key(guest), []).append(guest.id)
    return [(key, groups[key]) for key in GENERAL_PARTITION_ORDER if groups.get(key)]


# ----------------------------- numbering -----------------------------
def shuffle_members(members: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """Uniform random permutation (Fisher-Yates) returned as a new list."""
    out = list(members)
    (rng or random).shuffle(out)
    return out


def allocate_partition(
    members: Sequence[str], offset: int, seats_per_table: int
) -> Tuple[Dict[str, int], int]:
    """Seat ``members`` in order, ``seats_per_table`` per table, after ``offset``.

    Returns the guest to table mapping and the offset for the next partition.
    """
    table_count = math.ceil(len(members) / seats_per_table)
    assignments = {
        guest_id: offset + index // seats_per_table + 1
        for index, guest_id in enumerate(members)
    }
    return assignments, offset + table_count


# ----------------------------- planner -----------------------------
def plan_allocation(
    guests: Sequence[Guest],
    num_tables: int,
    seats_per_table: int,
    permute: Optional[Permutation] = None,
    event_id: str = "",
) -> Tuple[AllocationPlan, AllocationSummary]:
    """Compute the full plan for one event without touching any store."""
    permute = permute or shuffle_members
    eligibility = classify_eligibility(guests)

    phases: List[Tuple[str, Optional[PartitionKey], List[str]]] = []
    if eligibility.press:
        phases.append((PRESS_LABEL, None, [g.id for g in eligibility.press]))
    for key, members in partition_general(eligibility.general):
        phases.append((partition_label(key), key, members))

    plan = AllocationPlan()
    offset = 0
    for label, key, members in phases:
        seated = permute(list(members))
        assignments, new_offset = allocate_partition(seated, offset, seats_per_table)
        plan.assignments.update(assignments)
        plan.partitions.append(
            PartitionAllocation(
                label=label,
                guest_ids=seated,
                first_table=offset + 1,
                table_count=new_offset - offset,
                key=key,
            )
        )
        logger.debug("%s: %d guests on tables %d-%d", label, len(seated), offset + 1, new_offset)
        offset = new_offset
    plan.table_count = offset

    # Every non VIP guest left out gets an explicit clear, even if already unseated
    plan.clears = [g.id for g in eligibility.non_vip if g.id not in plan.assignments]

    auto_adjusted = offset > num_tables
    if auto_adjusted:
        logger.warning(
            "Event %s needs %d tables, more than the %d requested", event_id, offset, num_tables
        )
    summary = AllocationSummary(
        event_id=event_id,
        assigned_count=len(plan.assignments),
        num_tables_used=max(num_tables, offset),
        tables_auto_adjusted=auto_adjusted,
        unassigned_count=len(plan.clears),
        skipped_vip_count=eligibility.skipped_vip_count,
        skipped_no_rsvp_count=eligibility.skipped_no_rsvp_count,
        num_tables_requested=num_tables,
        seats_per_table=seats_per_table,
    )
    return plan, summary
