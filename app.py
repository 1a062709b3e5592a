"""Streamlit UI for banquet seating with CSV preview and download."""
from __future__ import annotations

# Add src to sys.path so banquet_seating can be found
import sys
import os
import io
import random
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

import pandas as pd
import streamlit as st

from banquet_seating.config import DEFAULT_NUM_TABLES, DEFAULT_SEATS_PER_TABLE, EVENT_COLUMN
from banquet_seating.csv_loader import frame_to_guests, guests_to_frame, read_guest_frame
from banquet_seating.engine import allocate_tables, table_rosters
from banquet_seating.errors import AllocationError
from banquet_seating.store import InMemoryGuestStore

# -----------------------------
# Helpers
# -----------------------------

def uploadedfile_to_df(uploaded_file) -> pd.DataFrame | None:
    """Read a Streamlit UploadedFile into a text-only DataFrame."""
    if uploaded_file is None:
        return None
    uploaded_file.seek(0)
    return read_guest_frame(io.StringIO(uploaded_file.read().decode("utf-8")))


def validate_columns(df: pd.DataFrame, required: list[str], file_label: str) -> bool:
    """Check required columns and show an error if any are missing."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        st.error(f"Error in {file_label}: missing columns: {', '.join(missing)}")
        return False
    return True

# -----------------------------
# Sidebar options
# -----------------------------

st.sidebar.header("Allocation Options")
event_id = st.sidebar.text_input("Event id", value="event")
num_tables = st.sidebar.number_input(
    "Number of tables", min_value=1, max_value=500, value=DEFAULT_NUM_TABLES,
    help="Raised automatically when the guests need more tables.",
)
seats_per_table = st.sidebar.number_input(
    "Seats per table", min_value=1, max_value=100, value=DEFAULT_SEATS_PER_TABLE,
)
seed = st.sidebar.number_input(
    "Shuffle seed (0 = random)", min_value=0, value=0,
    help="Use the same non-zero seed to get the same seating again.",
)

# -----------------------------
# Main UI and preview
# -----------------------------

st.title("Banquet Table Allocation")

_guests_file = st.file_uploader("Guests CSV", type="csv")
guests_df = uploadedfile_to_df(_guests_file)
guests_valid = False
if guests_df is not None:
    st.subheader("Guests preview")
    st.dataframe(guests_df, use_container_width=True)
    guests_valid = validate_columns(guests_df, ["id"], "guests.csv")

run_clicked = st.button("Allocate tables", disabled=not guests_valid, key="allocate_button")

if run_clicked and guests_valid:
    try:
        guests = frame_to_guests(guests_df)
        # A file without event ids belongs to the chosen event
        if EVENT_COLUMN not in guests_df.columns:
            for g in guests:
                g.event_id = event_id
        store = InMemoryGuestStore(guests)

        permute = None
        if seed:
            rng = random.Random(int(seed))

            def permute(members):
                rng.shuffle(members)
                return members

        summary = allocate_tables(store, event_id, int(num_tables), int(seats_per_table), permute=permute)

        cols = st.columns(4)
        cols[0].metric("Seated", summary.assigned_count)
        cols[1].metric("Tables used", summary.num_tables_used,
                       delta="auto-increased" if summary.tables_auto_adjusted else None)
        cols[2].metric("Skipped VIP", summary.skipped_vip_count)
        cols[3].metric("Without RSVP", summary.skipped_no_rsvp_count)

        seated = store.list_guests_by_event(event_id)
        result_df = guests_to_frame(seated)
        st.subheader("Assignments")
        st.dataframe(result_df[["id", "name", "table_number"]], use_container_width=True)

        grouped_df = pd.DataFrame(
            [{"table": t, "guests": ", ".join(names)} for t, names in table_rosters(seated).items()]
        )
        st.subheader("Guests per table")
        st.dataframe(grouped_df, use_container_width=True)

        st.download_button(
            "Download guests with table numbers",
            result_df.to_csv(index=False).encode("utf-8"),
            file_name="guests_seated.csv",
        )
    except (AllocationError, ValueError) as e:
        st.error(f"Allocation failed: {e}")
        st.stop()
