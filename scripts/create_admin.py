#!/usr/bin/env python3
"""
Create Admin Account

Signup only accepts founders and investors, so admin accounts are created
here, directly against the configured database (DATABASE_URL).

Usage:
    python scripts/create_admin.py --email ops@example.com
    python scripts/create_admin.py --email ops@example.com --password 's3cret-pass'

Without --password the password is prompted for.
"""

import os
import sys
import argparse
import getpass
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from venturematch.core.database import create_tables, get_session_factory  # noqa: E402
from venturematch.users.auth import AuthService  # noqa: E402

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def create_admin(email: str, password: str) -> int:
    """Create the admin account and return its user id."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    create_tables()
    session = get_session_factory()()
    try:
        return AuthService(session).create_admin(email, password).id
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--password", help="Admin password (prompted when omitted)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    password = args.password or getpass.getpass("Password: ")
    try:
        user_id = create_admin(args.email, password)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Created admin {args.email.strip().lower()} (id={user_id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
