"""
hostel_complaints/web/dashboard.py
Flask application for hostel maintenance complaints.

One set of routes serves both roles. create_app(role) picks the role:
  - student    : submit complaints, list / delete / solve own complaints
  - technician : list every complaint, solve any complaint
Routes a role has no capability for answer 403.
"""

import logging
import os
from datetime import timedelta

from flask import (
    Blueprint, Flask, abort, g, jsonify,
    redirect, render_template, request, session, url_for,
)
from sqlalchemy.exc import SQLAlchemyError

from ..cli import register_commands
from ..config import configure_logging, load_settings, masked_url
from ..database.db_utils import (
    ENGINE_KEY,
    close_conn,
    delete_complaint,
    find_account,
    get_conn,
    insert_complaint,
    list_all_complaints,
    list_student_complaints,
    make_engine,
    mark_solved,
)
from ..roles import Capability, get_role
from ..utils.formatting import format_date
from .auth import (
    ROLE_KEY, current_role, current_user, login_required,
    requires, start_session, verify_password,
)
from .sessions import DatabaseSessionInterface

logger = logging.getLogger(__name__)

bp = Blueprint("complaints", __name__)

NO_STORE = "no-store, no-cache, must-revalidate, private"
NOT_FOUND_OR_UNAUTHORIZED = "Complaint not found or unauthorized."


def _text(body, status=200):
    return body, status, {"Content-Type": "text/plain; charset=utf-8"}


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  AUTH                                                                   ║
# ╚══════════════════════════════════════════════════════════════════════════╝

@bp.route("/")
def home():
    if current_user():
        return redirect(url_for(current_role().landing))
    return render_template("login.html")


@bp.route("/Login", methods=["POST"])
def login():
    regno    = request.form.get("username", "").strip().upper()
    password = request.form.get("password", "")
    role     = current_role()

    try:
        account = find_account(get_conn(), role.account_table, regno)
    except SQLAlchemyError:
        logger.exception("[AUTH] login lookup failed for %s", regno)
        return _text("An error occurred during login.", 500)

    if account is None:
        logger.info("[AUTH] unknown %s %s", role.name, regno)
        return _text("User not found")

    if not verify_password(account["password"], password):
        logger.info("[AUTH] wrong password for %s %s", role.name, regno)
        return _text("Incorrect Password")

    start_session(account)
    logger.info("[AUTH] %s %s logged in", role.name, account["regno"])
    return redirect(url_for(role.landing))


@bp.route("/logout")
def logout():
    session.destroy()
    response = redirect(url_for("complaints.home"))
    response.headers["Clear-Site-Data"] = '"cache", "cookies", "storage"'
    response.headers["Cache-Control"]   = NO_STORE
    return response


@bp.route("/api/user/regno")
@login_required
def user_regno():
    return jsonify({"regno": g.user["regno"]})


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  STUDENT PAGES                                                          ║
# ╚══════════════════════════════════════════════════════════════════════════╝

@bp.route("/mainpage")
@login_required
@requires(Capability.SUBMIT)
def mainpage():
    return render_template("mainpage.html")


@bp.route("/submitComplaint")
@login_required
@requires(Capability.SUBMIT)
def submit_form():
    return render_template("complaint_form.html")


@bp.route("/submit", methods=["POST"])
@login_required
@requires(Capability.SUBMIT)
def submit_complaint():
    regno = g.user["regno"]
    try:
        complaint_id = insert_complaint(get_conn(), regno, request.form)
    except SQLAlchemyError:
        logger.exception("[COMPLAINT] insert failed for %s", regno)
        return _text("An error occurred while submitting the complaint.", 500)

    logger.info("[COMPLAINT] #%s submitted by %s", complaint_id, regno)
    return render_template("submitted.html")


@bp.route("/studentComplaints/<regno>")
@login_required
@requires(Capability.VIEW_OWN)
def student_complaints(regno):
    own = g.user["regno"]
    if regno.upper() != own.upper():
        return _text("You can only view your own complaints.", 403)

    try:
        complaints = list_student_complaints(get_conn(), own)
    except SQLAlchemyError:
        logger.exception("[COMPLAINT] listing failed for %s", own)
        return _text("An error occurred while retrieving data.", 500)

    return _render_history(complaints)


@bp.route("/complaints/<int:complaint_id>", methods=["DELETE"])
@login_required
@requires(Capability.DELETE)
def remove_complaint(complaint_id):
    regno = g.user["regno"]
    try:
        deleted = delete_complaint(get_conn(), complaint_id, regno)
    except SQLAlchemyError:
        logger.exception("[COMPLAINT] delete #%s failed", complaint_id)
        return jsonify({"error": "An error occurred while deleting the complaint."}), 500

    if not deleted:
        return jsonify({"message": NOT_FOUND_OR_UNAUTHORIZED}), 404

    logger.info("[COMPLAINT] #%s deleted by %s", complaint_id, regno)
    return jsonify({"message": "Complaint deleted successfully."}), 200


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  TECHNICIAN PAGES                                                       ║
# ╚══════════════════════════════════════════════════════════════════════════╝

@bp.route("/complaints/students")
@login_required
@requires(Capability.LIST_ALL)
def all_complaints():
    try:
        complaints = list_all_complaints(get_conn())
    except SQLAlchemyError:
        logger.exception("[COMPLAINT] full listing failed")
        return _text("An error occurred while retrieving data.", 500)

    return _render_history(complaints)


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  SHARED                                                                 ║
# ╚══════════════════════════════════════════════════════════════════════════╝

@bp.route("/markAsSolved/<int:complaint_id>", methods=["POST"])
@login_required
def solve_complaint(complaint_id):
    role  = current_role()
    regno = g.user["regno"]

    if role.can(Capability.SOLVE_ANY):
        owner, back = None, url_for("complaints.all_complaints")
    elif role.can(Capability.SOLVE_OWN):
        owner, back = regno, url_for("complaints.student_complaints", regno=regno)
    else:
        abort(403)

    try:
        matched = mark_solved(get_conn(), complaint_id, owner)
    except SQLAlchemyError:
        logger.exception("[COMPLAINT] solve #%s failed", complaint_id)
        return _text("An error occurred while updating the complaint status.", 500)

    if not matched:
        return _text(NOT_FOUND_OR_UNAUTHORIZED, 404)

    logger.info("[COMPLAINT] #%s marked solved by %s %s", complaint_id, role.name, regno)
    return redirect(back)


def _render_history(complaints):
    message = None if complaints else current_role().empty_message
    return render_template(
        "complaints_history.html",
        complaints = complaints,
        message    = message,
    )


# ╔══════════════════════════════════════════════════════════════════════════╗
# ║  APP FACTORY                                                            ║
# ╚══════════════════════════════════════════════════════════════════════════╝

def nocache(response):
    response.headers["Cache-Control"] = NO_STORE
    response.headers["Pragma"]        = "no-cache"
    response.headers["Expires"]       = "0"
    return response


def create_app(role=None, overrides=None):
    """
    Build the Flask app for one role. `overrides` replaces loaded settings
    (tests pass DATABASE_URL and SECRET_KEY this way).
    """
    role = get_role(role or os.environ.get("APP_ROLE", "student"))

    app = Flask(__name__, template_folder="templates")
    app.config.update(load_settings(role.name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    app.permanent_session_lifetime = timedelta(
        minutes=app.config["SESSION_LIFETIME_MINUTES"]
    )
    app.extensions[ROLE_KEY]   = role
    app.extensions[ENGINE_KEY] = make_engine(
        app.config["DATABASE_URL"],
        pool_size=app.config["DB_POOL_SIZE"],
        max_overflow=app.config["DB_MAX_OVERFLOW"],
    )
    app.session_interface = DatabaseSessionInterface()

    app.teardown_appcontext(close_conn)
    app.after_request(nocache)
    app.add_template_filter(format_date, "format_date")

    @app.context_processor
    def inject_identity():
        return {"user": current_user(), "role": current_role(),
                "Capability": Capability}

    app.register_blueprint(bp)

    register_commands(app)

    logger.info(
        "[APP] %s service configured (port %s, database %s)",
        role.name, app.config["PORT"], masked_url(app.config["DATABASE_URL"]),
    )
    return app
