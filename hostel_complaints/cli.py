"""
hostel_complaints/cli.py
────────────────────────
Operator commands, registered on every app:

    flask --app hostel_complaints init-db
    flask --app hostel_complaints add-account student 21BCE1234 secret
    flask --app hostel_complaints purge-sessions
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from .database.db_utils import ENGINE_KEY, create_account, purge_expired_sessions
from .database.schema import init_db
from .roles import ROLES, get_role


def _engine():
    return current_app.extensions[ENGINE_KEY]


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create any missing table."""
    init_db(_engine())
    click.echo("[INIT] Database is up to date.")


@click.command("add-account")
@click.argument("role", type=click.Choice(sorted(ROLES)))
@click.argument("regno")
@click.argument("password")
@with_appcontext
def add_account_command(role, regno, password):
    """Create a student or technician account."""
    table = get_role(role).account_table
    with _engine().connect() as conn:
        try:
            account_id = create_account(conn, table, regno, password)
        except IntegrityError:
            raise click.ClickException(f"{role} {regno.strip().upper()} already exists.")
    click.echo(f"[SUCCESS] Created {role} {regno.strip().upper()} (id {account_id})")


@click.command("purge-sessions")
@with_appcontext
def purge_sessions_command():
    """Delete expired login sessions."""
    with _engine().connect() as conn:
        removed = purge_expired_sessions(conn)
    click.echo(f"[CLEANUP] Removed {removed} expired session(s).")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(add_account_command)
    app.cli.add_command(purge_sessions_command)
