#!/usr/bin/env python3
"""Resolve course purchases that stopped half-way.

A purchase reserves its enrollment as ``pending`` before any balance moves
and flips it to ``active`` as the last step. A ``pending`` row older than
the cutoff therefore belongs to a purchase that failed or crashed:

- if a matching course debit exists, the student paid: activate it;
- otherwise no money moved: delete the reservation.

Safety:
- Defaults to DRY RUN (no writes).
- Requires --apply to perform updates and deletes.

Usage:
  python scripts/reconcile_purchases.py --db-url "$DATABASE_URL"
  python scripts/reconcile_purchases.py --db-url "$DATABASE_URL" --older-than 30 --apply
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Sequence

import psycopg


@dataclass(frozen=True)
class PendingPurchase:
    enrollment_id: str
    student_id: str
    course_id: str
    paid: bool

    @property
    def action(self) -> str:
        return "activate" if self.paid else "release"


def _ensure_db_url(url: str | None) -> str:
    if not url:
        raise SystemExit("Missing database url (--db-url or DATABASE_URL)")
    if "sslmode=" in url or "localhost" in url or "127.0.0.1" in url:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}sslmode=require"


def _fetch_pending(conn: psycopg.Connection, older_than_minutes: int) -> list[PendingPurchase]:
    with conn.cursor() as cur:
        cur.execute(
            """
            SELECT e.id,
                   e.student_id,
                   e.course_id,
                   EXISTS (
                       SELECT 1
                       FROM app.transactions AS t
                       WHERE t.user_id = e.student_id
                         AND t.related_id = e.course_id
                         AND t.type = 'debit'
                         AND t.category = 'course'
                   ) AS paid
            FROM app.enrollments AS e
            WHERE e.status = 'pending'
              AND e.created_at < now() - make_interval(mins => %s)
            ORDER BY e.created_at
            """,
            (older_than_minutes,),
        )
        rows: Sequence[tuple] = cur.fetchall()
    return [
        PendingPurchase(enrollment_id=row[0], student_id=row[1], course_id=row[2], paid=bool(row[3]))
        for row in rows
    ]


def _apply(conn: psycopg.Connection, pending: list[PendingPurchase]) -> None:
    with conn.cursor() as cur:
        for item in pending:
            if item.paid:
                cur.execute(
                    "UPDATE app.enrollments SET status = 'active', updated_at = now() "
                    "WHERE id = %s AND status = 'pending'",
                    (item.enrollment_id,),
                )
            else:
                cur.execute(
                    "DELETE FROM app.enrollments WHERE id = %s AND status = 'pending'",
                    (item.enrollment_id,),
                )
    conn.commit()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DATABASE_URL"),
        help="Postgres connection url (default: DATABASE_URL)",
    )
    parser.add_argument(
        "--older-than",
        type=int,
        default=15,
        help="Only consider reservations older than this many minutes (default: 15)",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Activate or release the reservations (default is dry-run)",
    )
    args = parser.parse_args()

    with psycopg.connect(_ensure_db_url(args.db_url)) as conn:
        pending = _fetch_pending(conn, args.older_than)
        if not pending:
            print("No stale pending enrollments.")
            return 0

        print("Stale pending enrollments:")
        for item in pending:
            print(
                f"- {item.enrollment_id} student={item.student_id} "
                f"course={item.course_id} -> {item.action}"
            )

        if not args.apply:
            print("\nDry-run only. Re-run with --apply to reconcile.")
            return 0

        _apply(conn, pending)
        print(f"\nReconciled {len(pending)} enrollments.")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
