"""
Hostel Complaints - test configuration and fixtures

Every test gets its own SQLite file. The student and technician apps are
built on the same file, the way both services share one database in
production.
"""
import os
from datetime import datetime

import pytest
from sqlalchemy import insert, select

os.environ["APP_ENV"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"

from hostel_complaints import create_app
from hostel_complaints.database.db_utils import ENGINE_KEY
from hostel_complaints.database.schema import (
    complaintdata, init_db, students, technician,
)
from werkzeug.security import generate_password_hash

STUDENT_REGNO = "21BCE1001"
STUDENT_PASSWORD = "hostel123"
OTHER_REGNO = "21BCE2002"
OTHER_PASSWORD = "other456"
TECH_REGNO = "TECH01"
TECH_PASSWORD = "fixit789"


def _build(role, database_url):
    return create_app(role, {
        "TESTING": True,
        "DATABASE_URL": database_url,
        "SECRET_KEY": "test-secret-key-for-testing-only",
    })


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'complaints.db'}"


@pytest.fixture
def student_app(database_url):
    app = _build("student", database_url)
    init_db(app.extensions[ENGINE_KEY])
    yield app
    app.extensions[ENGINE_KEY].dispose()


@pytest.fixture
def technician_app(student_app, database_url):
    app = _build("technician", database_url)
    yield app
    app.extensions[ENGINE_KEY].dispose()


@pytest.fixture
def engine(student_app):
    return student_app.extensions[ENGINE_KEY]


@pytest.fixture
def accounts(engine):
    """One plaintext legacy student, one hashed student, one technician."""
    with engine.begin() as conn:
        conn.execute(insert(students), [
            {"regno": STUDENT_REGNO, "password": STUDENT_PASSWORD},
            {"regno": OTHER_REGNO, "password": generate_password_hash(OTHER_PASSWORD)},
        ])
        conn.execute(insert(technician), [
            {"regno": TECH_REGNO, "password": TECH_PASSWORD},
        ])


@pytest.fixture
def add_complaint(engine):
    """Insert a complaint row directly, with an explicit timestamp."""
    def _add(regno, created_at, status="Unsolved", **fields):
        values = {
            "regno": regno,
            "email": f"{regno.lower()}@hostel.test",
            "hostel": "Block A",
            "floorno": "2",
            "roomno": "204",
            "phoneno": "9876543210",
            "description": "Tap leaking",
            "created_at": created_at,
            "status": status,
        }
        values.update(fields)
        with engine.begin() as conn:
            result = conn.execute(insert(complaintdata).values(**values))
        return result.inserted_primary_key[0]
    return _add


@pytest.fixture
def fetch_complaint(engine):
    def _fetch(complaint_id):
        with engine.connect() as conn:
            row = conn.execute(
                select(complaintdata).where(complaintdata.c.id == complaint_id)
            ).mappings().first()
        return dict(row) if row else None
    return _fetch


def login(client, regno, password):
    return client.post("/Login", data={"username": regno, "password": password})


@pytest.fixture
def student_client(student_app, accounts):
    client = student_app.test_client()
    response = login(client, STUDENT_REGNO.lower(), STUDENT_PASSWORD)
    assert response.status_code == 302
    return client


@pytest.fixture
def technician_client(technician_app, accounts):
    client = technician_app.test_client()
    response = login(client, TECH_REGNO, TECH_PASSWORD)
    assert response.status_code == 302
    return client


@pytest.fixture
def t():
    """Readable timestamps for ordering tests."""
    def _t(minute):
        return datetime(2026, 10, 5, 15, minute, 5)
    return _t
