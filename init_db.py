"""
Database initialization script.
Creates all tables and optionally seeds users, since identity is taken
from a request header rather than a sign-up flow.

Run this as: python init_db.py --user alice:Alice:alice@example.com
"""

import argparse
import logging

from community_feed.core.config import settings
from community_feed.db.init_db import create_all_tables
from community_feed.db.session import SessionLocal
from community_feed.modules.user_management.schemas.user import UserCreate
from community_feed.modules.user_management.services.user import create_user

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

def parse_user(value: str) -> UserCreate:
    """Parse id:name:email"""
    parts = value.split(":")
    if len(parts) != 3 or not all(parts):
        raise argparse.ArgumentTypeError(f"Expected id:name:email, got {value!r}")
    user_id, name, email = parts
    return UserCreate(id=user_id, name=name, email=email)

def main():
    parser = argparse.ArgumentParser(description="Create tables and seed users")
    parser.add_argument("--user", action="append", type=parse_user, default=[], help="Seed user as id:name:email")
    args = parser.parse_args()

    logger.info(f"Initializing database at: {settings.DATABASE_URL}")
    if not create_all_tables():
        raise SystemExit(1)

    db = SessionLocal()
    try:
        for user_in in args.user:
            user = create_user(db, user_in)
            logger.info(f"Seeded user {user.id} ({user.email})")
    finally:
        db.close()

if __name__ == "__main__":
    main()
