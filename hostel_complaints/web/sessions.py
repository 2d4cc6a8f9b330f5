"""
hostel_complaints/web/sessions.py
─────────────────────────────────
Server-side sessions stored in the `sessions` table.

The browser only ever holds an opaque random id, signed with the app secret.
The session body lives in the database and expires after a fixed window of
inactivity: every request that touches a live session moves the expiry
forward and re-sends the cookie.
"""

import json
import logging
import secrets
from datetime import datetime, timedelta

from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from sqlalchemy import delete, insert, select, update
from werkzeug.datastructures import CallbackDict

from ..database.db_utils import ENGINE_KEY, purge_expired_sessions
from ..database.schema import sessions

logger = logging.getLogger(__name__)


class ServerSession(CallbackDict, SessionMixin):

    def __init__(self, initial=None, sid=None, new=False):
        def on_update(self):
            self.modified = True

        super().__init__(initial, on_update)
        self.sid           = sid
        self.new           = new
        self.modified      = False
        self.destroyed     = False
        self.stale_sids    = []

    def regenerate(self):
        """Drop the current id; a fresh one is issued when the response is saved."""
        if self.sid:
            self.stale_sids.append(self.sid)
        self.sid      = None
        self.modified = True

    def destroy(self):
        self.clear()
        self.destroyed = True


class DatabaseSessionInterface(SessionInterface):
    salt = "complaints-session"

    def _signer(self, app):
        return Signer(app.secret_key, salt=self.salt)

    def _lifetime(self, app) -> timedelta:
        return timedelta(minutes=app.config["SESSION_LIFETIME_MINUTES"])

    def _engine(self, app):
        return app.extensions[ENGINE_KEY]

    def open_session(self, app, request):
        signed = request.cookies.get(self.get_cookie_name(app))
        if not signed:
            return ServerSession(new=True)

        try:
            sid = self._signer(app).unsign(signed).decode("utf-8")
        except BadSignature:
            logger.warning("[SESSION] rejected cookie with a bad signature")
            return ServerSession(new=True)

        with self._engine(app).connect() as conn:
            row = conn.execute(
                select(sessions.c.data, sessions.c.expires_at)
                .where(sessions.c.id == sid)
            ).first()

            if row is None:
                return ServerSession(new=True)

            if row.expires_at <= datetime.now():
                conn.execute(delete(sessions).where(sessions.c.id == sid))
                conn.commit()
                logger.info("[SESSION] expired session discarded")
                return ServerSession(new=True)

        return ServerSession(json.loads(row.data), sid=sid)

    def save_session(self, app, session, response):
        name     = self.get_cookie_name(app)
        domain   = self.get_cookie_domain(app)
        path     = self.get_cookie_path(app)
        secure   = self.get_cookie_secure(app)
        httponly = self.get_cookie_httponly(app)
        samesite = self.get_cookie_samesite(app)

        def drop_cookie():
            response.delete_cookie(
                name, domain=domain, path=path, secure=secure,
                httponly=httponly, samesite=samesite,
            )

        stale = list(session.stale_sids)
        if session.sid and (session.destroyed or not session):
            stale.append(session.sid)

        with self._engine(app).connect() as conn:
            if stale:
                conn.execute(delete(sessions).where(sessions.c.id.in_(stale)))
                conn.commit()

            if session.destroyed or not session:
                if session.destroyed or stale:
                    drop_cookie()
                return

            lifetime   = self._lifetime(app)
            expires_at = datetime.now() + lifetime
            data       = json.dumps(dict(session))

            if session.sid:
                # A row deleted mid-request (logout, purge) stays deleted.
                updated = conn.execute(
                    update(sessions)
                    .where(sessions.c.id == session.sid)
                    .values(data=data, expires_at=expires_at)
                ).rowcount
                conn.commit()
                if not updated:
                    logger.info("[SESSION] session ended during the request")
                    drop_cookie()
                    return
            else:
                session.sid = secrets.token_urlsafe(32)
                conn.execute(
                    insert(sessions).values(
                        id=session.sid, data=data, expires_at=expires_at
                    )
                )
                conn.commit()
                purge_expired_sessions(conn)

        response.set_cookie(
            name,
            self._signer(app).sign(session.sid).decode("utf-8"),
            max_age=int(lifetime.total_seconds()),
            domain=domain,
            path=path,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
