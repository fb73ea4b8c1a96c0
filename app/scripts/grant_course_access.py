#!/usr/bin/env python3
"""
Grant full course access to accounts that paid outside the checkout flow.

Usage:
    # Inline external ids:
    uv run python app/scripts/grant_course_access.py --course physics-exam-crash-course \\
        --external-ids user_2abc user_2def --payment-method WhatsApp

    # From a CSV file (header row required, amount optional):
    uv run python app/scripts/grant_course_access.py --course physics-exam-crash-course --csv paid.csv

    # Dry-run (print what would happen):
    uv run python app/scripts/grant_course_access.py --course physics-exam-crash-course --csv paid.csv --dry-run

CSV format:
    external_id,amount
    user_2abc,49900
    user_2def,
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path
from typing import NamedTuple

if __package__ in (None, ""):
    repo_root = Path(__file__).resolve().parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sqlalchemy import select

from app.core.errors import ApiError
from app.db.session import SessionLocal
from app.models import Account, Course
from app.services.catalog_service import get_published_course_by_id_or_slug
from app.services.ledger import grant_full_access


class GrantRow(NamedTuple):
    external_id: str
    amount: int | None


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Grant full course access (enrollment + SUCCESS purchase) to existing accounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--course", required=True, help="Course id or slug")

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--csv", type=Path, metavar="FILE", help="CSV file with columns: external_id[,amount]")
    source.add_argument("--external-ids", nargs="+", metavar="ID", help="Space-separated auth provider user ids")

    parser.add_argument("--payment-method", default="WhatsApp", help="Recorded payment method (default: WhatsApp)")
    parser.add_argument("--amount", type=int, default=None, help="Amount in minor units; defaults to the course price")
    parser.add_argument("--dry-run", action="store_true", help="Print what would happen without writing to DB")
    return parser.parse_args()


def load_csv(path: Path) -> list[GrantRow]:
    if not path.exists():
        print(f"Error: CSV file not found: {path}", file=sys.stderr)
        sys.exit(1)

    rows: list[GrantRow] = []
    with path.open(newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or "external_id" not in [h.strip().lower() for h in reader.fieldnames]:
            print("Error: CSV must have an 'external_id' column", file=sys.stderr)
            sys.exit(1)

        for i, raw in enumerate(reader, start=2):
            row = {k.strip().lower(): (v or "").strip() for k, v in raw.items() if k}
            external_id = row.get("external_id", "")
            if not external_id:
                print(f"  [skip] line {i}: empty external_id", file=sys.stderr)
                continue
            amount_text = row.get("amount", "")
            try:
                amount = int(amount_text) if amount_text else None
            except ValueError:
                print(f"  [skip] line {i}: invalid amount {amount_text!r}", file=sys.stderr)
                continue
            rows.append(GrantRow(external_id=external_id, amount=amount))
    return rows


def main() -> int:
    args = parse_args()

    if args.csv:
        rows = load_csv(args.csv)
    else:
        rows = [GrantRow(external_id=eid.strip(), amount=None) for eid in args.external_ids if eid.strip()]

    if not rows:
        print("No accounts to process.", file=sys.stderr)
        return 1

    with SessionLocal() as db:
        try:
            course: Course = get_published_course_by_id_or_slug(db, args.course.strip())
        except ApiError as exc:
            print(f"Error: {exc.message}: {args.course}", file=sys.stderr)
            return 2

        print(f"Course: {course.title} ({course.slug}), price {course.price_minor} {course.currency}")
        print(f"Processing {len(rows)} account(s){' [DRY RUN]' if args.dry_run else ''}...\n")

        granted = existing = missing = 0
        for row in rows:
            account = db.execute(select(Account).where(Account.external_id == row.external_id)).scalars().first()
            if account is None:
                print(f"  [missing]  {row.external_id}")
                missing += 1
                continue

            amount = row.amount if row.amount is not None else args.amount
            if args.dry_run:
                print(f"  [would grant] {row.external_id} <{account.email}> amount={amount if amount is not None else course.price_minor}")
                continue

            purchase, created = grant_full_access(
                db,
                account,
                course.id,
                payment_method=args.payment_method,
                amount=amount,
            )
            if created:
                print(f"  [granted]  {row.external_id} <{account.email}> order={purchase.order_ref}")
                granted += 1
            else:
                print(f"  [exists]   {row.external_id} <{account.email}>")
                existing += 1

    print(f"\nDone. granted={granted} already_had_access={existing} missing={missing}")
    return 0 if missing == 0 else 3


if __name__ == "__main__":
    raise SystemExit(main())
