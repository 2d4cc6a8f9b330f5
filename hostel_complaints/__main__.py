"""
Run one role of the complaint service.

    python -m hostel_complaints student                 # dev server on PORT / 3000
    python -m hostel_complaints technician              # dev server on PORT / 5000
    python -m hostel_complaints student init-db         # any flask command
"""

import logging
import sys

from flask.cli import FlaskGroup

from . import create_app
from .roles import ROLES

logger = logging.getLogger("hostel_complaints")


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv or argv[0] not in ROLES:
        print("===== Hostel Complaints =====")
        print(f"Usage: python -m hostel_complaints {{{'|'.join(sorted(ROLES))}}} [command]")
        return 2

    role, rest = argv[0], argv[1:]

    if rest:
        cli = FlaskGroup(create_app=lambda: create_app(role))
        return cli.main(args=rest, prog_name=f"hostel_complaints {role}")

    app = create_app(role)
    debug = app.config["DEBUG"]
    # the interactive debugger is only ever served on loopback
    host = "127.0.0.1" if debug else app.config["HOST"]

    logger.info("[APP] Starting %s service on %s:%s", role, host, app.config["PORT"])
    app.run(host=host, port=app.config["PORT"], debug=debug)
    return 0


if __name__ == "__main__":
    sys.exit(main())
