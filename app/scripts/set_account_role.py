from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running this file directly: `python app/scripts/set_account_role.py`
if __package__ in (None, ""):
    repo_root = Path(__file__).resolve().parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sqlalchemy import select

from app.db.session import SessionLocal
from app.models import ROLE_ADMIN, ROLE_USER, Account


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Set an account's role, creating a local account for dev if asked.")
    parser.add_argument("--external-id", required=True, help="Auth provider user id (token subject)")
    parser.add_argument("--role", choices=[ROLE_USER, ROLE_ADMIN], default=ROLE_ADMIN, help="Role to assign")
    parser.add_argument("--email", default="", help="Email; required with --create when the account does not exist")
    parser.add_argument("--create", action="store_true", help="Create the account if it does not exist")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    external_id = args.external_id.strip()
    email = args.email.strip().lower()

    with SessionLocal() as db:
        account = db.execute(select(Account).where(Account.external_id == external_id)).scalars().first()
        created = False
        if not account:
            if not args.create:
                print(f"Error: account not found: {external_id}", file=sys.stderr)
                return 2
            if not email:
                print("Error: --email is required to create an account", file=sys.stderr)
                return 2
            account = Account(external_id=external_id, email=email, role=args.role)
            db.add(account)
            created = True
        else:
            account.role = args.role
            if email:
                account.email = email

        db.commit()

    print(
        {
            "ok": True,
            "created": created,
            "external_id": external_id,
            "email": account.email,
            "role": args.role,
        }
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
