#!/usr/bin/env python3
"""
Roulette Strategy Simulator - Entry Point
Apply migrations and seeds, then start the Flask + SocketIO server.
The listener is only bound once the database is ready.
"""

import logging
import signal
import sys

from config import HOST, PORT, DEBUG, DB_FILE, LOG_LEVEL

from app import create_app, init_db, get_db, socketio

logger = logging.getLogger('run')


def _shutdown(app):
    def handler(signum, _frame):
        logger.info(f"[Shutdown] Received {signal.Signals(signum).name}, closing database and exiting...")
        get_db(app).close()
        sys.exit(0)
    return handler


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    app = create_app()
    try:
        init_db(app)
    except Exception:
        logger.exception("Migration/Seed error")
        return 1

    signal.signal(signal.SIGTERM, _shutdown(app))
    signal.signal(signal.SIGINT, _shutdown(app))

    print("=" * 60)
    print("  Roulette Strategy Simulator backend")
    print("=" * 60)
    print(f"  Server:    http://localhost:{PORT}")
    print(f"  Database:  {DB_FILE}")
    print(f"  Debug:     {DEBUG}")
    print("=" * 60)
    print()

    socketio.run(app, host=HOST, port=PORT, debug=DEBUG, use_reloader=False,
                 allow_unsafe_werkzeug=True)
    return 0


if __name__ == '__main__':
    sys.exit(main())
