"""
hostel_complaints/database/db_utils.py
──────────────────────────────────────
Engine setup, per-request connections, and every query the app runs.

Public API:
    make_engine(url, pool_size, max_overflow)   → Engine
    get_conn()                                  → Connection (request scoped)
    close_conn(exc)                             → None (teardown hook)

    find_account(conn, table_name, regno)       → dict | None
    create_account(conn, table_name, regno, pw) → int
    insert_complaint(conn, regno, fields)       → int
    list_student_complaints(conn, regno)        → list[dict]
    list_all_complaints(conn)                   → list[dict]
    mark_solved(conn, complaint_id, owner)      → int (rows matched)
    delete_complaint(conn, complaint_id, owner) → int (rows deleted)
    purge_expired_sessions(conn, now)           → int

Every function runs exactly one statement. Writes commit immediately; there
are no multi-statement transactions. SQLAlchemy errors are not caught here,
the caller decides what the client sees.
"""

import logging
from datetime import datetime

from flask import current_app, g
from sqlalchemy import case, create_engine, delete, func, insert, select, update
from werkzeug.security import generate_password_hash

from .schema import ComplaintStatus, account_table, complaintdata, sessions, students

logger = logging.getLogger(__name__)

ENGINE_KEY = "complaints_engine"

COMPLAINT_FIELDS = ("email", "hostel", "floorno", "roomno", "phoneno", "description")

_LISTING_COLUMNS = (
    complaintdata.c.id,
    complaintdata.c.email,
    complaintdata.c.hostel,
    complaintdata.c.floorno,
    complaintdata.c.roomno,
    complaintdata.c.phoneno,
    complaintdata.c.description,
    complaintdata.c.created_at,
    complaintdata.c.status,
)


# ── ENGINE & CONNECTIONS ───────────────────────────────────────────────────

def make_engine(url: str, pool_size: int = 5, max_overflow: int = 10):
    """
    SQLite files get the default pool with cross-thread use allowed (the dev
    server is threaded). Server databases get a bounded QueuePool that
    pings connections before handing them out.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


def get_conn():
    """Pooled connection for the current request, checked out on first use."""
    if "db_conn" not in g:
        g.db_conn = current_app.extensions[ENGINE_KEY].connect()
    return g.db_conn


def close_conn(exception=None):
    conn = g.pop("db_conn", None)
    if conn is not None:
        conn.close()


def _owned_by(regno: str):
    return func.upper(complaintdata.c.regno) == regno.upper()


# ── ACCOUNTS ───────────────────────────────────────────────────────────────

def find_account(conn, table_name: str, regno: str):
    """Account row whose regno matches case-insensitively, or None."""
    table = account_table(table_name)
    row = conn.execute(
        select(table.c.id, table.c.regno, table.c.password)
        .where(func.upper(table.c.regno) == regno.upper())
    ).mappings().first()
    return dict(row) if row else None


def create_account(conn, table_name: str, regno: str, password: str) -> int:
    """Insert an account with a salted password hash. Returns the new id."""
    table = account_table(table_name)
    result = conn.execute(
        insert(table).values(
            regno=regno.strip().upper(),
            password=generate_password_hash(password),
        )
    )
    conn.commit()
    return result.inserted_primary_key[0]


# ── COMPLAINTS ─────────────────────────────────────────────────────────────

def insert_complaint(conn, regno: str, fields: dict, created_at=None) -> int:
    """
    Store a new complaint owned by regno. Only the known form fields are
    copied; anything else in `fields` (a client supplied regno or status
    included) is dropped.
    """
    values = {name: fields.get(name) or "" for name in COMPLAINT_FIELDS}
    result = conn.execute(
        insert(complaintdata).values(
            regno=regno,
            status=ComplaintStatus.UNSOLVED.value,
            created_at=created_at or datetime.now(),
            **values,
        )
    )
    conn.commit()
    return result.inserted_primary_key[0]


def list_student_complaints(conn, regno: str) -> list:
    """One student's complaints, newest first."""
    rows = conn.execute(
        select(*_LISTING_COLUMNS)
        .where(_owned_by(regno))
        .order_by(complaintdata.c.created_at.desc(), complaintdata.c.id.desc())
    ).mappings().all()
    return [dict(r) for r in rows]


def list_all_complaints(conn) -> list:
    """
    Every complaint joined to its student. Unsolved complaints come first;
    inside each status group the newest is first.
    """
    unsolved_first = case(
        (complaintdata.c.status == ComplaintStatus.UNSOLVED.value, 0),
        else_=1,
    )
    rows = conn.execute(
        select(
            complaintdata.c.id,
            students.c.regno,
            *_LISTING_COLUMNS[1:],
        )
        .select_from(
            complaintdata.join(
                students,
                func.upper(complaintdata.c.regno) == func.upper(students.c.regno),
            )
        )
        .order_by(
            unsolved_first,
            complaintdata.c.created_at.desc(),
            complaintdata.c.id.desc(),
        )
    ).mappings().all()
    return [dict(r) for r in rows]


def mark_solved(conn, complaint_id: int, owner_regno: str = None) -> int:
    """
    Set status to Solved. With owner_regno the row must also belong to that
    student. Returns the number of rows matched, so re-solving a solved
    complaint still counts as a hit.
    """
    stmt = (
        update(complaintdata)
        .where(complaintdata.c.id == complaint_id)
        .values(status=ComplaintStatus.SOLVED.value)
    )
    if owner_regno is not None:
        stmt = stmt.where(_owned_by(owner_regno))

    result = conn.execute(stmt)
    conn.commit()
    return result.rowcount


def delete_complaint(conn, complaint_id: int, owner_regno: str) -> int:
    result = conn.execute(
        delete(complaintdata)
        .where(complaintdata.c.id == complaint_id)
        .where(_owned_by(owner_regno))
    )
    conn.commit()
    return result.rowcount


# ── SESSIONS ───────────────────────────────────────────────────────────────

def purge_expired_sessions(conn, now=None) -> int:
    result = conn.execute(
        delete(sessions).where(sessions.c.expires_at <= (now or datetime.now()))
    )
    conn.commit()
    logger.info("[SESSION] purged %s expired session(s)", result.rowcount)
    return result.rowcount
