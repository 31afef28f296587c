#!/usr/bin/env python3
"""
Delete a user by email so the address can be registered again. Their saved games go with them (FK cascade).
Usage: python scripts/delete_user.py <email>
Reads only DATABASE_URL from the environment or .env; no signing secret is needed.
"""
import sys
import os

# Allow running from repo root or scripts/
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from dotenv import load_dotenv

from backend.api.database import create_db_engine, create_session_factory
from backend.api.users import CredentialStore
from backend.config import normalize_database_url


def database_url_from_env() -> str | None:
    load_dotenv()
    url = os.environ.get("DATABASE_URL")
    return normalize_database_url(url) if url else None


def delete_user(database_url: str, email: str) -> dict | None:
    engine = create_db_engine(database_url)
    db = create_session_factory(engine)()
    try:
        return CredentialStore(db).delete_by_email(email)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/delete_user.py <email>", file=sys.stderr)
        sys.exit(1)
    email = sys.argv[1].strip()
    if not email:
        print("Error: provide an email.", file=sys.stderr)
        sys.exit(1)

    database_url = database_url_from_env()
    if not database_url:
        print("Error: DATABASE_URL is not set.", file=sys.stderr)
        sys.exit(1)

    try:
        deleted = delete_user(database_url, email)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if deleted is None:
        print(f"No user found with email: {email!r}")
        return
    print(f"Deleted user {deleted['name']!r} ({deleted['email']}) and their saved games.")


if __name__ == "__main__":
    main()
