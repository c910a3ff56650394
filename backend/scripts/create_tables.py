"""
create_tables.py — Create the database schema without starting the server.

WHAT THIS SCRIPT DOES:
  1. Connects to Postgres using a synchronous psycopg2 connection (simpler
     for a one-off script than the async engine used by the server).
  2. Creates the users, conversations and messages tables if they don't
     exist yet.
  3. Inserts the built-in "default" conversation if it is missing.
  4. Optionally (--demo-user NAME) creates a local account with password
     "changeme" for trying the UI.

HOW TO RUN:
  cd backend
  source .venv/bin/activate
  python scripts/create_tables.py [--demo-user alice]

NOTES:
  - Idempotent: safe to run repeatedly; existing rows are left alone.
  - The server's lifespan does steps 2–3 too; this script is for
    provisioning a database ahead of a deploy.
  - The DATABASE_URL is read from backend/.env via python-dotenv.
"""

import argparse
import os
import sys

# ------------------------------------------------------------------ #
# Path setup: must happen before any local imports
# ------------------------------------------------------------------ #
_SCRIPT_DIR  = os.path.dirname(os.path.abspath(__file__))
_BACKEND_DIR = os.path.dirname(_SCRIPT_DIR)
sys.path.insert(0, _BACKEND_DIR)

from dotenv import load_dotenv
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

load_dotenv(os.path.join(_BACKEND_DIR, ".env"))

# psycopg2 needs a plain "postgresql://" URL (not asyncpg)
_raw_url = os.environ["DATABASE_URL"]
SYNC_DATABASE_URL = _raw_url.replace("postgresql+asyncpg://", "postgresql+psycopg2://")

# Local imports after sys.path and .env are configured
from aichat.core.database import Base                  # noqa: E402
from aichat.models.tables import (                     # noqa: E402
    DEFAULT_CONVERSATION_ID,
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    User,
)
from aichat.services.auth import hash_password         # noqa: E402

DEMO_PASSWORD = "changeme"


def create_schema(url: str, demo_user: str | None = None) -> None:
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    with Session(engine) as session:
        if session.get(Conversation, DEFAULT_CONVERSATION_ID) is None:
            session.add(Conversation(id=DEFAULT_CONVERSATION_ID, title=DEFAULT_CONVERSATION_TITLE))
            print("Inserted the default conversation")

        if demo_user:
            existing = session.execute(
                select(User).where(User.username == demo_user)
            ).scalar_one_or_none()
            if existing is None:
                session.add(User(username=demo_user, password_hash=hash_password(DEMO_PASSWORD)))
                print(f"Created demo user '{demo_user}' (password: {DEMO_PASSWORD})")
            else:
                print(f"Demo user '{demo_user}' already exists: skipped")

        session.commit()

    engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[1])
    parser.add_argument("--demo-user", help="also create a local account with this username")
    args = parser.parse_args()
    create_schema(SYNC_DATABASE_URL, demo_user=args.demo_user)


if __name__ == "__main__":
    main()
