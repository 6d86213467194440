"""
CLI entrypoint for the role bootstrap. Creates missing canonical roles and,
when no account exists yet, the initial administrator:

  python -m app.scripts.bootstrap

Safe to run repeatedly; the API also runs it on startup when
BOOTSTRAP_ON_STARTUP is true.
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.bootstrap import run_bootstrap
from app.services.credential_store import CredentialStore
from app.services.errors import AuthServiceError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    db = SessionLocal()
    try:
        run_bootstrap(CredentialStore(db), settings)
        logger.info("Bootstrap completed")
        return 0
    except AuthServiceError as e:
        logger.error("Bootstrap failed: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
