"""Relational guest store backed by SQLAlchemy."""
from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional

from sqlalchemy import Boolean, Integer, String, Text, create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from .models import Guest, TableNumberUpdate

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class GuestRow(Base):
    __tablename__ = "guests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    event_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    is_vip: Mapped[bool] = mapped_column(Boolean, default=False)
    additional_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    table_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class SqlGuestStore:
    """Guest rows in a SQL database. A batch runs in a single transaction."""

    def __init__(self, engine: Engine | str) -> None:
        self.engine = create_engine(engine) if isinstance(engine, str) else engine

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def add_guests(self, guests: Iterable[Guest]) -> None:
        with Session(self.engine) as session, session.begin():
            for g in guests:
                raw = g.attributes
                session.add(
                    GuestRow(
                        id=g.id,
                        event_id=g.event_id,
                        name=g.name,
                        is_vip=bool(g.is_vip),
                        additional_data=raw if isinstance(raw, str) or raw is None else json.dumps(raw),
                        table_number=g.table_number,
                    )
                )

    def list_guests_by_event(self, event_id: str) -> List[Guest]:
        with Session(self.engine) as session:
            rows = session.scalars(
                select(GuestRow).where(GuestRow.event_id == event_id).order_by(GuestRow.id)
            ).all()
            return [
                Guest(
                    id=r.id,
                    name=r.name or "",
                    event_id=r.event_id,
                    is_vip=bool(r.is_vip),
                    attributes=r.additional_data,
                    table_number=r.table_number,
                )
                for r in rows
            ]

    def batch_set_table_numbers(self, event_id: str, updates: Iterable[TableNumberUpdate]) -> None:
        updates = list(updates)
        with Session(self.engine) as session, session.begin():
            for u in updates:
                result = session.execute(
                    update(GuestRow)
                    .where(GuestRow.id == u.guest_id, GuestRow.event_id == event_id)
                    .values(table_number=u.table_number)
                )
                if result.rowcount != 1:
                    # leaving the block with an exception rolls the batch back
                    raise LookupError(f"Unknown guest {u.guest_id} for event {event_id}")
        logger.debug("Committed %d table numbers for event %s", len(updates), event_id)
