#!/usr/bin/env python3
"""
SecDash -- security-monitoring dashboard backend.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py create-user alice alice@example.com --role admin
  python main.py hash-password

Environment variables (see core/config.py for the full list):
  SECRET_KEY      Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL    SQLAlchemy URL for persistent stores. Empty = in-memory.
  SEED_DEMO_DATA  Create admin/admin123 and viewer/viewer123 on startup.
"""

import argparse
import getpass
import sys

from auth.models import Role, UserCandidate
from core.config import get_settings
from core.errors import ConflictError


def _read_password(confirm: bool = True) -> str:
    """Prompt for a password without echoing it. Exits on mismatch or empty input."""
    password = getpass.getpass("  Password: ")
    if not password:
        print("  [!] Password must not be empty.")
        sys.exit(1)
    if confirm and getpass.getpass("  Confirm:  ") != password:
        print("  [!] Passwords do not match.")
        sys.exit(1)
    return password


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


def _create_user(args: argparse.Namespace) -> None:
    settings = get_settings()
    if not settings.database_url:
        print("  [!] DATABASE_URL is not set. A user created in the in-memory store would be lost on exit.")
        sys.exit(1)

    from auth.store import SqlUserStore

    candidate = UserCandidate(
        username=args.username,
        email=args.email,
        password=_read_password(),
        role=Role(args.role),
        first_name=args.first_name,
        last_name=args.last_name,
    )
    store = SqlUserStore(settings.database_url)
    try:
        user = store.create_user(candidate)
    except ConflictError as exc:
        print(f"  [!] {exc.message}")
        sys.exit(1)
    except ValueError as exc:
        print(f"  [!] {exc}")
        sys.exit(1)
    finally:
        store.close()
    print(f"  Created {user.role.value} '{user.username}' ({user.id}).")


def _hash_password(args: argparse.Namespace) -> None:
    from auth.passwords import hash_password

    try:
        print(hash_password(_read_password()))
    except ValueError as exc:
        print(f"  [!] {exc}")
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="secdash",
        description="Security-monitoring dashboard backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  DEBUG=true SEED_DEMO_DATA=true python main.py serve
  DATABASE_URL=sqlite:///secdash.db python main.py create-user alice alice@example.com --role admin
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API server with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Create an account in the DATABASE_URL store")
    create.add_argument("username")
    create.add_argument("email")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.viewer.value,
        help="Account role (default: viewer)",
    )
    create.add_argument("--first-name", default=None)
    create.add_argument("--last-name", default=None)
    create.set_defaults(func=_create_user)

    hasher = sub.add_parser("hash-password", help="Print a bcrypt digest for a password read from the terminal")
    hasher.set_defaults(func=_hash_password)

    args = parser.parse_args()
    if not getattr(args, "func", None):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
