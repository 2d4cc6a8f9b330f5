"""
hostel_complaints/database/schema.py
────────────────────────────────────
Table definitions for the complaint store.

Tables:
  students       : student accounts (regno + password)
  technician     : technician accounts, same shape as students
  complaintdata  : one row per maintenance complaint
  sessions       : server-side login sessions

Safe to run init_db() any number of times; existing tables are left alone.
"""

import enum
import logging

from sqlalchemy import (
    Column, DateTime, Integer, MetaData, String, Table, Text,
)

logger = logging.getLogger(__name__)

metadata = MetaData()


class ComplaintStatus(str, enum.Enum):
    UNSOLVED = "Unsolved"
    SOLVED   = "Solved"


students = Table(
    "students", metadata,
    Column("id",       Integer, primary_key=True, autoincrement=True),
    Column("regno",    String(64),  nullable=False, unique=True),
    Column("password", String(255), nullable=False),
)

technician = Table(
    "technician", metadata,
    Column("id",       Integer, primary_key=True, autoincrement=True),
    Column("regno",    String(64),  nullable=False, unique=True),
    Column("password", String(255), nullable=False),
)

complaintdata = Table(
    "complaintdata", metadata,
    Column("id",          Integer, primary_key=True, autoincrement=True),
    Column("regno",       String(64), nullable=False, index=True),
    Column("email",       String(255), nullable=False, default=""),
    Column("hostel",      String(255), nullable=False, default=""),
    Column("floorno",     String(32),  nullable=False, default=""),
    Column("roomno",      String(32),  nullable=False, default=""),
    Column("phoneno",     String(32),  nullable=False, default=""),
    Column("description", Text,        nullable=False, default=""),
    Column("created_at",  DateTime,    nullable=False),
    Column("status",      String(16),  nullable=False,
           default=ComplaintStatus.UNSOLVED.value,
           server_default=ComplaintStatus.UNSOLVED.value),
)

sessions = Table(
    "sessions", metadata,
    Column("id",         String(64), primary_key=True),
    Column("data",       Text,       nullable=False, default="{}"),
    Column("expires_at", DateTime,   nullable=False, index=True),
)

ACCOUNT_TABLES = {
    "students":   students,
    "technician": technician,
}


def account_table(name: str) -> Table:
    try:
        return ACCOUNT_TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown account table {name!r}")


def init_db(engine):
    """Create any missing table."""
    metadata.create_all(engine)
    logger.info("[DB] tables ready: %s", ", ".join(sorted(metadata.tables)))
