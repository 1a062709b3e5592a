"""Allocation entry points: load guests, plan, commit one atomic batch.

Any error aborts before or during the single store write, so either every
table number of the batch is applied or none is. There are no retries here;
callers rerun the whole cycle. Concurrent runs for the same event are not
serialised and the last committed batch wins.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .allocator import (
    Permutation,
    plan_allocation,
    require_event_id,
    require_positive_int,
    validate_request,
)
from .errors import AllocationError, InputValidationError, StoreReadError, StoreWriteError
from .models import AllocationPlan, AllocationSummary, Guest, SwapSummary, TableNumberUpdate
from .store import GuestStore

logger = logging.getLogger(__name__)


def load_event_guests(store: GuestStore, event_id: str) -> List[Guest]:
    try:
        return list(store.list_guests_by_event(event_id))
    except AllocationError:
        raise
    except Exception as exc:
        raise StoreReadError(f"Could not load guests for event {event_id}: {exc}") from exc


def commit_updates(store: GuestStore, event_id: str, updates: Sequence[TableNumberUpdate]) -> None:
    if not updates:
        logger.debug("Nothing to write for event %s", event_id)
        return
    try:
        store.batch_set_table_numbers(event_id, list(updates))
    except AllocationError:
        raise
    except Exception as exc:
        raise StoreWriteError(f"Table numbers for event {event_id} were not saved: {exc}") from exc


def execute_plan(store: GuestStore, event_id: str, plan: AllocationPlan) -> None:
    """Apply all assignments and clears of ``plan`` as one batch."""
    commit_updates(store, event_id, list(plan.updates()))


def run_allocation(
    store: GuestStore,
    event_id: str,
    num_tables: int,
    seats_per_table: int,
    permute: Optional[Permutation] = None,
) -> Tuple[AllocationPlan, AllocationSummary]:
    """Randomly seat every eligible guest of ``event_id`` and save the result.

    Returns the committed plan together with its summary.
    """
    validate_request(event_id, num_tables, seats_per_table)
    guests = load_event_guests(store, event_id)
    plan, summary = plan_allocation(
        guests, num_tables, seats_per_table, permute=permute, event_id=event_id
    )
    execute_plan(store, event_id, plan)
    logger.info(
        "Event %s: %d guests seated on %d tables, %d cleared, %d VIP and %d without RSVP skipped",
        event_id,
        summary.assigned_count,
        summary.num_tables_used,
        summary.unassigned_count,
        summary.skipped_vip_count,
        summary.skipped_no_rsvp_count,
    )
    return plan, summary


def allocate_tables(
    store: GuestStore,
    event_id: str,
    num_tables: int,
    seats_per_table: int,
    permute: Optional[Permutation] = None,
) -> AllocationSummary:
    _, summary = run_allocation(store, event_id, num_tables, seats_per_table, permute=permute)
    return summary


def reset_tables(store: GuestStore, event_id: str) -> int:
    """Clear the table number of every guest of the event, VIPs included."""
    require_event_id(event_id)
    guests = load_event_guests(store, event_id)
    commit_updates(store, event_id, [TableNumberUpdate(g.id, None) for g in guests])
    logger.info("Event %s: table numbers reset for %d guests", event_id, len(guests))
    return len(guests)


def swap_table_numbers(store: GuestStore, event_id: str, table_a: int, table_b: int) -> SwapSummary:
    """Everyone at table A moves to table B and everyone at B moves to A."""
    require_event_id(event_id)
    require_positive_int("table_a", table_a)
    require_positive_int("table_b", table_b)
    if table_a == table_b:
        raise InputValidationError("The two table numbers must differ")

    guests = load_event_guests(store, event_id)
    at_a = [g.id for g in guests if g.table_number == table_a]
    at_b = [g.id for g in guests if g.table_number == table_b]
    updates = [TableNumberUpdate(gid, table_b) for gid in at_a]
    updates += [TableNumberUpdate(gid, table_a) for gid in at_b]
    commit_updates(store, event_id, updates)

    logger.info(
        "Event %s: swapped tables %d and %d (%d and %d guests)",
        event_id, table_a, table_b, len(at_a), len(at_b),
    )
    return SwapSummary(table_a=table_a, table_b=table_b, moved_to_b=len(at_a), moved_to_a=len(at_b))


def table_rosters(guests: Sequence[Guest]) -> Dict[int, List[str]]:
    """Seated guests per table number, tables ascending, names sorted."""
    rosters: Dict[int, List[str]] = {}
    for g in guests:
        if g.table_number is None:
            continue
        rosters.setdefault(g.table_number, []).append(g.name.strip() or g.id)
    return {table: sorted(names) for table, names in sorted(rosters.items())}


def partition_report(plan: AllocationPlan) -> List[Dict[str, object]]:
    """One row per allocated table: table, partition, guest count, members."""
    rows = []
    for part in plan.partitions:
        members: Dict[int, List[str]] = {}
        for gid in part.guest_ids:
            members.setdefault(plan.assignments[gid], []).append(gid)
        for table in range(part.first_table, part.last_table + 1):
            ids = members.get(table, [])
            rows.append({
                "table": table,
                "partition": part.label,
                "guest_count": len(ids),
                "members": "|".join(ids),
            })
    return rows


def assign_guests_to_table(
    store: GuestStore, event_id: str, table_number: int, guest_ids: Iterable[str]
) -> List[str]:
    """Put the given guests at ``table_number``.

    Ids not belonging to the event are skipped. Returns the ids whose table
    number actually changed.
    """
    require_event_id(event_id)
    require_positive_int("table_number", table_number)
    if isinstance(guest_ids, str):
        raise InputValidationError("guest_ids must be a list of guest ids")

    current = {g.id: g.table_number for g in load_event_guests(store, event_id)}
    changed: List[str] = []
    for gid in guest_ids:
        if gid in current and current[gid] != table_number and gid not in changed:
            changed.append(gid)
    commit_updates(store, event_id, [TableNumberUpdate(gid, table_number) for gid in changed])

    logger.info("Event %s: %d guests moved to table %d", event_id, len(changed), table_number)
    return changed
