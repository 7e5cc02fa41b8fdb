# run.py
"""
Development launcher for the POS API.
Pins the database location, creates missing tables, then serves the app.
"""
import os
import sys

from carparts.app_factory import create_app
from carparts.db.auto_init import auto_init
from carparts.logger import get_logger

logger = get_logger("run")


def get_app_base_dir():
    """
    Program root:
    - source checkout: directory holding run.py
    - frozen build: directory holding the executable
    """
    if getattr(sys, "frozen", False):
        return os.path.dirname(sys.executable)
    return os.path.abspath(os.path.dirname(__file__))


def configure_database():
    """Default to carparts.db next to run.py unless DATABASE_URL is set."""
    if os.getenv("DATABASE_URL"):
        return
    db_path = os.path.join(get_app_base_dir(), "carparts.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    logger.info("Using database: %s", db_path)


def main():
    configure_database()
    auto_init()

    app = create_app()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "1") == "1"

    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
