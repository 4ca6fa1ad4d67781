"""
Register a user from the command line. Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD
Example:
  python -m app.scripts.create_user alice secret1
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal, init_db
from app.schemas.auth import ResultStatus
from app.services.accounts import register

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Register a Gatehouse user.")
    parser.add_argument("username", help="Username (3-32 chars of letters, digits, . _ -)")
    parser.add_argument("password", help="Password (6-72 chars)")
    args = parser.parse_args(argv)

    settings = get_settings()
    if settings.DB_AUTO_CREATE:
        init_db()

    db = SessionLocal()
    try:
        result = register(db, args.username, args.password, settings)
    finally:
        db.close()

    if result.status != ResultStatus.CREATED:
        logger.error("Registration rejected: %s", result.body.message)
        return 1
    logger.info(result.body.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
