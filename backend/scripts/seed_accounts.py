"""
Seed the accounts table with the demo player.

Idempotent: an existing account with the same username is left alone.
The password comes from SEED_PASSWORD so no credential lives in the repo.
"""

import logging
import os

from account_ledger.core.config import get_settings
from account_ledger.core.database import Database
from account_ledger.core.errors import DuplicateEmailError, DuplicateUsernameError
from account_ledger.core.log_config import configure_logging
from account_ledger.services.accounts import AccountService

logger = logging.getLogger("seed_accounts")

DEFAULT_ACCOUNTS = [
    ("artem", "artem@example.com"),
]


def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    password = os.environ.get("SEED_PASSWORD")
    if not password:
        raise RuntimeError("SEED_PASSWORD environment variable is not set.")

    database = Database(settings.DATABASE_URL, settings.DB_LOCK_TIMEOUT_SECONDS).open()
    try:
        if settings.is_dev_like:
            database.create_schema()
        with database.session() as db:
            service = AccountService(db, settings)
            for username, email in DEFAULT_ACCOUNTS:
                try:
                    account = service.register(username, email, password)
                except (DuplicateUsernameError, DuplicateEmailError):
                    logger.info(f"Account {username} already present, skipping")
                    continue
                logger.info("Seeded account", extra={"account_id": str(account.id)})
    finally:
        database.close()


if __name__ == "__main__":
    main()
