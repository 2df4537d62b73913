"""DB-level exclusion constraint for overlapping PAID bookings.

Second layer behind the room row lock taken by the booking coordinator:
even if application code is bypassed, two PAID bookings for the same room
cannot cover overlapping [check_in, check_out) ranges.

Revision ID: 002_no_paid_overlap
Revises: 001_initial_schema
Create Date: 2026-10-18
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_paid_overlap"
down_revision = "001_initial_schema"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_paid_overlap.sql"


def upgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_paid_overlap")
    # btree_gist is kept: other indexes may depend on it.
