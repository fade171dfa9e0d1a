#!/usr/bin/env python3
"""
Create an administrator account, or reset the password of an existing one.

The database is migrated first, so this also works on a fresh
installation.  The database location comes from ``DATABASE_URL``.

Usage:
    python create_admin.py --email admin@plenpilot.no --name "Admin" --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import sys

from plenpilot_api.app.core.db import get_connection, init_db
from plenpilot_api.app.core.security import ROLE_ADMIN
from plenpilot_api.app.schemas.user import UserCreate, UserUpdate
from plenpilot_api.app.services.user_service import UserService


def main():
    ap = argparse.ArgumentParser(description="Create or reset a PlenPilot administrator.")
    ap.add_argument("--email", required=True, help="Administrator email")
    ap.add_argument("--name", default="Administrator", help="Display name for a new account")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must be at least 6 characters.", file=sys.stderr)
        sys.exit(1)

    init_db()
    conn = get_connection()
    try:
        row = conn.execute("SELECT id FROM users WHERE email = ?", (args.email,)).fetchone()
    finally:
        conn.close()

    if row:
        asyncio.run(
            UserService.update_user(
                row["id"], UserUpdate(password=new_password, role=ROLE_ADMIN, disabled=False)
            )
        )
        print(f"[+] Password reset for administrator: {args.email}")
    else:
        asyncio.run(
            UserService.create_user(
                UserCreate(email=args.email, name=args.name, password=new_password, role=ROLE_ADMIN)
            )
        )
        print(f"[+] Administrator created: {args.email}")


if __name__ == "__main__":
    main()
