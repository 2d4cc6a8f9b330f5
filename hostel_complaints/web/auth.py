"""
hostel_complaints/web/auth.py
─────────────────────────────
Login gate, capability checks and password verification.
"""

import hmac
import logging
import string
from functools import wraps

from flask import abort, current_app, g, redirect, session, url_for
from werkzeug.security import check_password_hash

logger = logging.getLogger(__name__)

ROLE_KEY = "complaints_role"

# Prefixes werkzeug.security writes in front of a salted hash.
HASH_METHODS = ("pbkdf2:", "scrypt:")


def current_role():
    return current_app.extensions[ROLE_KEY]


def current_user():
    """Identity dict for the logged-in account of this role, else None."""
    user = session.get("user")
    if not user or user.get("role") != current_role().name:
        return None
    return user


def login_required(view):
    """Redirect to the login page unless a matching session exists."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        if user is None:
            return redirect(url_for("complaints.home"))
        g.user = user
        return view(*args, **kwargs)
    return wrapped


def requires(capability):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_role().can(capability):
                abort(403)
            return view(*args, **kwargs)
        return wrapped
    return decorator


def is_password_hash(stored: str) -> bool:
    """True for a werkzeug `method$salt$hexdigest` value."""
    parts = stored.split("$")
    if len(parts) != 3 or not all(parts):
        return False
    method, _salt, digest = parts
    return method.startswith(HASH_METHODS) and all(c in string.hexdigits for c in digest)


def verify_password(stored: str, supplied: str) -> bool:
    """
    Hashed values go through werkzeug. Anything else is a legacy plaintext
    row and is compared in constant time.
    """
    stored   = stored or ""
    supplied = supplied or ""
    if is_password_hash(stored):
        return check_password_hash(stored, supplied)
    return hmac.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def start_session(account: dict):
    """Replace whatever session the client had with a fresh authenticated one."""
    session.clear()
    session.regenerate()
    session["user"] = {
        "id":    account["id"],
        "regno": account["regno"],
        "role":  current_role().name,
    }
