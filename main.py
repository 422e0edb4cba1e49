#!/usr/bin/env python3
"""
StockPilot -- operator commands for the inventory database.

The HTTP API only ever creates MEMBER accounts. Admins are provisioned here.

Usage:
  python main.py seed
  python main.py create-user alice@example.org --password 'secret12' --name Alice
  python main.py create-user ops@example.org --password 'secret12' --role ADMIN
  python main.py set-role alice@example.org ADMIN
  python main.py list-users
  python main.py --db-url sqlite:///other.db seed

Environment variables:
  DATABASE_URL   SQLAlchemy URL shared with the API (default: sqlite:///stockpilot.db)
  BCRYPT_ROUNDS  Cost factor for new password hashes (default: 10)
  SECRET_KEY / DEBUG  Same rules as the API; see core/config.py.
"""

import argparse
import sys
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.models import ROLES, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings
from inventory.seed import DEMO_EMAIL, DEMO_PASSWORD, seed_demo
from inventory.store import InventoryStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stockpilot", description="StockPilot operator commands.")
    parser.add_argument("--db-url", help="Override DATABASE_URL for this command.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Create the demo admin and demo items (idempotent).")

    create = sub.add_parser("create-user", help="Create a user account.")
    create.add_argument("email")
    create.add_argument("--password", required=True)
    create.add_argument("--name", default=None)
    create.add_argument("--role", choices=ROLES, default="MEMBER")

    set_role = sub.add_parser("set-role", help="Change an existing user's role.")
    set_role.add_argument("email")
    set_role.add_argument("role", choices=ROLES)

    sub.add_parser("list-users", help="Print every account with its role.")
    return parser


def _cmd_seed(user_store: UserStore, inventory: InventoryStore, rounds: int) -> int:
    admin, item_ids = seed_demo(user_store, inventory, rounds)
    print(f"  Seeded demo admin {DEMO_EMAIL} / {DEMO_PASSWORD} (id={admin.id}) with {len(item_ids)} items.")
    return 0


def _cmd_create_user(user_store: UserStore, args: argparse.Namespace, rounds: int) -> int:
    if len(args.password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 1
    user = User(email=args.email, name=args.name, role=args.role, hashed_password=hash_password(args.password, rounds))
    try:
        user_id = user_store.create_user(user)
    except IntegrityError:
        print(f"  [!] A user with email '{args.email}' already exists.")
        return 1
    print(f"  Created {args.role} {args.email} (id={user_id}).")
    return 0


def _cmd_set_role(user_store: UserStore, args: argparse.Namespace) -> int:
    user = user_store.get_by_email(args.email)
    if user is None:
        print(f"  [!] No user with email '{args.email}'.")
        return 1
    user_store.set_role(user.id, args.role)
    print(f"  {args.email}: {user.role} -> {args.role}")
    return 0


def _cmd_list_users(user_store: UserStore) -> int:
    for user in user_store.list_users():
        print(f"  {user.id:>5}  {user.role:<7} {user.email}  {user.name or ''}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"  [!] Invalid configuration: {exc}")
        return 2

    db_url = args.db_url or settings.database_url
    rounds = settings.bcrypt_rounds
    user_store = UserStore(db_url)
    inventory = InventoryStore(db_url) if args.command == "seed" else None
    try:
        if args.command == "seed":
            return _cmd_seed(user_store, inventory, rounds)
        if args.command == "create-user":
            return _cmd_create_user(user_store, args, rounds)
        if args.command == "set-role":
            return _cmd_set_role(user_store, args)
        return _cmd_list_users(user_store)
    finally:
        user_store.close()
        if inventory is not None:
            inventory.close()


if __name__ == "__main__":
    sys.exit(main())
