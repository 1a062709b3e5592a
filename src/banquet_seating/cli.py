"""Command line interface for banquet seating."""
from __future__ import annotations

import argparse
import csv
import json
import logging
import random
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_NUM_TABLES, DEFAULT_SEATS_PER_TABLE
from .engine import (
    assign_guests_to_table,
    load_event_guests,
    partition_report,
    reset_tables,
    run_allocation,
    swap_table_numbers,
    table_rosters,
)
from .errors import AllocationError, StoreReadError
from .store import CsvGuestStore, GuestStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Banquet table allocation")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--guests", type=Path, help="Path to guests.csv (updated in place)")
    source.add_argument("--database", help="SQLAlchemy database URL holding the guests table")
    parser.add_argument("--event", required=True, help="Event id")

    sub = parser.add_subparsers(dest="command", required=True)

    allocate = sub.add_parser("allocate", help="Randomly seat all eligible guests")
    allocate.add_argument("--num-tables", type=int, default=DEFAULT_NUM_TABLES,
                          help="Requested number of tables (raised automatically if too few).")
    allocate.add_argument("--seats-per-table", type=int, default=DEFAULT_SEATS_PER_TABLE,
                          help="Seats per table.")
    allocate.add_argument("--seed", type=int,
                          help="Seed the shuffle for a reproducible seating.")
    allocate.add_argument("--out-report", type=Path,
                          help="Write per-table report CSV: table, partition, guest count, members.")

    sub.add_parser("reset", help="Clear every table number of the event")

    swap = sub.add_parser("swap", help="Swap the guests of two tables")
    swap.add_argument("--table-a", type=int, required=True)
    swap.add_argument("--table-b", type=int, required=True)

    assign = sub.add_parser("assign", help="Put the given guests at one table")
    assign.add_argument("--table", type=int, required=True)
    assign.add_argument("--guest-ids", nargs="+", required=True)

    sub.add_parser("rosters", help="Print the guests seated at each table")
    return parser


def open_store(args: argparse.Namespace) -> GuestStore:
    if args.guests:
        return CsvGuestStore(args.guests)
    from sqlalchemy.exc import SQLAlchemyError

    from .sql_store import SqlGuestStore

    try:
        return SqlGuestStore(args.database)
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Cannot open database {args.database}: {exc}") from exc


def write_report(path: Path, rows: list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["table", "partition", "guest_count", "members"])
        w.writeheader()
        w.writerows(rows)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``banquet-seating`` and ``python -m banquet_seating.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        store = open_store(args)
        if args.command == "allocate":
            permute = None
            if args.seed is not None:
                rng = random.Random(args.seed)

                def permute(members):
                    rng.shuffle(members)
                    return members

            plan, summary = run_allocation(
                store, args.event, args.num_tables, args.seats_per_table, permute=permute
            )
            print(json.dumps(summary.to_dict(), indent=2))
            if args.out_report:
                write_report(args.out_report, partition_report(plan))
        elif args.command == "reset":
            count = reset_tables(store, args.event)
            print(f"Reset table numbers of {count} guests")
        elif args.command == "swap":
            result = swap_table_numbers(store, args.event, args.table_a, args.table_b)
            print(json.dumps(result.to_dict(), indent=2))
        elif args.command == "assign":
            changed = assign_guests_to_table(store, args.event, args.table, args.guest_ids)
            print(f"Moved {len(changed)} guests to table {args.table}")
        elif args.command == "rosters":
            for table, names in table_rosters(load_event_guests(store, args.event)).items():
                print(f"Table {table}: {', '.join(names)}")
    except AllocationError as exc:
        parser.exit(1, f"error ({exc.kind}): {exc}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
