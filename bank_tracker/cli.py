"""Command line administration for the configured backend"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from bank_tracker.config import Settings, settings as default_settings
from bank_tracker.domain.exceptions import DomainException
from bank_tracker.domain.models import Identity
from bank_tracker.infrastructure.auth import CredentialStore
from bank_tracker.infrastructure.database.session import create_session_factory
from bank_tracker.infrastructure.gateways.remote import RemoteGateway

logger = logging.getLogger(__name__)


def add_user(settings: Settings, email: str, password: str) -> Identity:
    """Create a user able to sign in on the configured backend"""
    if settings.storage_backend == "local":
        return CredentialStore(settings.local_credentials_path).add_user(email, password)
    return RemoteGateway(create_session_factory(settings.database_url)).register_user(email, password)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    settings = settings or default_settings
    parser = argparse.ArgumentParser(prog="bank-tracker", description="Bank Tracker administration")
    commands = parser.add_subparsers(dest="command", required=True)

    add = commands.add_parser("add-user", help="Create a user that can sign in")
    add.add_argument("--email", required=True)
    add.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args(argv)

    if args.command == "add-user":
        password = args.password or getpass.getpass("Password: ")
        try:
            identity = add_user(settings, args.email, password)
        except DomainException as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        logger.info("User created", extra={"user_id": identity.user_id, "backend": settings.storage_backend})
        print(f"Created user {identity.email} ({identity.user_id}) on the {settings.storage_backend} backend")
    return 0


if __name__ == "__main__":
    sys.exit(main())
