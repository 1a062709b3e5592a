"""Banquet seating package."""
from .models import AllocationPlan, AllocationSummary, Guest, PartitionKey, SwapSummary
from .errors import AllocationError, InputValidationError, StoreReadError, StoreWriteError
from .csv_loader import load_guests, guests_to_frame
from .allocator import plan_allocation
from .engine import (
    allocate_tables,
    assign_guests_to_table,
    partition_report,
    reset_tables,
    run_allocation,
    swap_table_numbers,
    table_rosters,
)
from .store import CsvGuestStore, GuestStore, InMemoryGuestStore

__all__ = [
    "AllocationPlan",
    "AllocationSummary",
    "Guest",
    "PartitionKey",
    "SwapSummary",
    "AllocationError",
    "InputValidationError",
    "StoreReadError",
    "StoreWriteError",
    "load_guests",
    "guests_to_frame",
    "plan_allocation",
    "allocate_tables",
    "assign_guests_to_table",
    "partition_report",
    "run_allocation",
    "reset_tables",
    "swap_table_numbers",
    "table_rosters",
    "CsvGuestStore",
    "GuestStore",
    "InMemoryGuestStore",
]
