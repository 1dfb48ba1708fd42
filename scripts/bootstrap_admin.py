#!/usr/bin/env python3
"""Emit deterministic SQL that grants trust flags to an existing Bokkal user."""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, user_id: str | None, email: str | None, admin: bool, verified: bool) -> str:
    if user_id:
        target_where = f"id = {_quote_sql(user_id)}::uuid"
    elif email:
        target_where = f"id = (select id from auth.users where email = {_quote_sql(email)})"
    else:
        raise ValueError("either user_id or email is required")

    assignments = [f"is_admin = {'true' if admin else 'false'}"]
    if verified:
        assignments.append("is_verified = true")

    return f"""-- Bokkal trust-flag bootstrap SQL
-- Run this in the Supabase SQL editor (or equivalent privileged Postgres session).

update public.users
set {", ".join(assignments)}
where {target_where};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to promote a Bokkal user to admin.")
    identity_group = parser.add_mutually_exclusive_group(required=True)
    identity_group.add_argument("--user-id", help="public.users id (UUID, same as auth.users id)")
    identity_group.add_argument("--email", help="Supabase auth.users email")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Clear the admin flag instead of setting it",
    )
    parser.add_argument(
        "--verified",
        action="store_true",
        help="Also mark the user as verified so their submissions are auto-approved",
    )
    args = parser.parse_args()

    print(
        render_sql(
            user_id=args.user_id,
            email=args.email,
            admin=not args.revoke,
            verified=args.verified,
        )
    )


if __name__ == "__main__":
    main()
