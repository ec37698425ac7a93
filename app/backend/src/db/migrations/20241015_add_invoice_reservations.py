"""Introduce the invoice reservation association table."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    inspect,
    select,
    text,
)
from sqlalchemy.engine import Connection

from .. import get_engine


def _ensure_reservation_table(connection: Connection) -> Table:
    """Create the invoice reservation table when it is missing."""

    inspector = inspect(connection)
    metadata = MetaData()
    if "invoice_reservations" in inspector.get_table_names():
        metadata.reflect(bind=connection, only=["invoice_reservations"])
        return metadata.tables["invoice_reservations"]

    # Reflect invoices so the foreign key resolves.
    metadata.reflect(bind=connection, only=["invoices"])

    reservations = Table(
        "invoice_reservations",
        metadata,
        Column(
            "invoice_id",
            Integer,
            ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        Column("reservation_id", Integer, nullable=False),
        PrimaryKeyConstraint("invoice_id", "reservation_id"),
    )
    reservations.create(bind=connection, checkfirst=True)
    return reservations


def _ensure_unique_invoice_numbers(connection: Connection) -> None:
    """Back the duplicate check with a storage-level uniqueness guarantee."""

    # Blank legacy numbers become NULL so they do not collide under the index.
    connection.execute(
        text(
            "UPDATE invoices SET invoice_number = NULL "
            "WHERE TRIM(invoice_number) = ''"
        )
    )
    connection.execute(
        text(
            "CREATE UNIQUE INDEX IF NOT EXISTS ix_invoices_invoice_number "
            "ON invoices (invoice_number)"
        )
    )


def _backfill_reservations(connection: Connection, reservations: Table) -> None:
    """Link invoices created before the table existed to their legacy reservation."""

    metadata = MetaData()
    metadata.reflect(bind=connection, only=["invoices"])
    invoices = metadata.tables["invoices"]

    rows = connection.execute(
        select(invoices.c.id, invoices.c.reservation_id).where(
            invoices.c.reservation_id.is_not(None)
        )
    ).fetchall()

    for row in rows:
        exists = connection.execute(
            select(reservations.c.invoice_id).where(
                (reservations.c.invoice_id == row.id)
                & (reservations.c.reservation_id == row.reservation_id)
            )
        ).first()
        if exists:
            continue

        connection.execute(
            reservations.insert().values(
                invoice_id=row.id, reservation_id=row.reservation_id
            )
        )


def upgrade() -> None:
    """Apply the migration."""

    engine = get_engine()
    with engine.begin() as connection:
        reservations = _ensure_reservation_table(connection)
        _ensure_unique_invoice_numbers(connection)
        _backfill_reservations(connection, reservations)


__all__ = ["upgrade"]

if __name__ == "__main__":
    upgrade()
