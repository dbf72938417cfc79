# scripts/create_admin.py
from __future__ import annotations

import argparse
import getpass
import sys

from sqlalchemy.orm import Session

from blockcms.db.session import SessionLocal
from blockcms.schemas.forms import check_password_policy
from blockcms.services.auth_service import create_admin, get_admin_by_email
from blockcms.services.passwords import hash_password


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin user (or reset its password).")
    parser.add_argument("email")
    parser.add_argument("--name", default=None, help="Full name")
    parser.add_argument("--password", default=None, help="Prompted when omitted")
    parser.add_argument("--reset", action="store_true", help="Update the password if the admin exists")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")
    try:
        check_password_policy(password)
    except ValueError as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 2

    db: Session = SessionLocal()
    try:
        existing = get_admin_by_email(db, args.email)
        if existing:
            if not args.reset:
                print(f"[SKIP] Admin already exists: {existing.email} (use --reset to change the password)")
                return 1
            existing.hashed_password = hash_password(password)
            existing.is_active = True
            db.commit()
            print(f"[OK] Password updated for {existing.email}")
            return 0

        user = create_admin(db, email=args.email, password=password, full_name=args.name)
        db.commit()
        print(f"[OK] Created admin {user.email} (id={user.id})")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
