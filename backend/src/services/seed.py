"""Seed a demo corpus of users, follows and notes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import func, select

from ..models.note import Visibility
from .config import AppConfig, get_config
from .database import DatabaseService, users as user_table
from .note_store import NoteStore
from .users import UserService

logger = logging.getLogger(__name__)

DEMO_EPOCH = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

DEMO_USERS = [
    {"username": "local-dev", "name": "Local Developer"},
    {"username": "alice", "name": "Alice"},
    {"username": "bob", "name": "Bob"},
    {"username": "carol", "name": "Carol"},
    {"username": "dave", "host": "remote.example", "name": "Dave (remote)"},
]

# (follower, followee)
DEMO_FOLLOWS = [
    ("alice", "bob"),
    ("carol", "bob"),
    ("local-dev", "alice"),
    ("bob", "carol"),
]

DEMO_NOTES = [
    {"author": "alice", "text": "Shipping the 1.2 release notes today", "score": 12},
    {"author": "bob", "text": "Release checklist: tag, build, announce", "score": 3},
    {"author": "carol", "text": "Anyone tried the new search syntax? from:bob works", "score": 5,
     "visibility": Visibility.HOME},
    {"author": "alice", "text": "@bob the 100% coverage_report is in", "mentions": ["bob"]},
    {"author": "dave", "text": "Greetings from a remote server", "score": 1},
    {"author": "carol", "text": "Followers-only musings about release timing",
     "visibility": Visibility.FOLLOWERS},
    {"author": "local-dev", "text": "Testing search from the local dev account"},
]


def seed_demo_data(db_service: DatabaseService | None = None) -> int:
    """Insert the demo corpus unless users already exist.

    Returns the number of notes created.
    """
    db_service = db_service or DatabaseService()
    users = UserService(db_service)
    notes = NoteStore(db_service)

    with db_service.connect() as conn:
        existing = conn.execute(select(func.count()).select_from(user_table)).scalar_one()
    if existing:
        logger.info("Demo data already present; skipping seed", extra={"user_count": existing})
        return 0

    by_name = {}
    for index, spec in enumerate(DEMO_USERS):
        user = users.create_user(
            spec["username"],
            host=spec.get("host"),
            name=spec.get("name"),
            user_id=spec["username"] if spec["username"] == "local-dev" else None,
            created_at=DEMO_EPOCH - timedelta(days=30 - index),
        )
        by_name[user.username] = user

    for follower, followee in DEMO_FOLLOWS:
        users.follow(by_name[follower].id, by_name[followee].id)

    created = 0
    for index, spec in enumerate(DEMO_NOTES):
        notes.create_note(
            by_name[spec["author"]].id,
            spec["text"],
            visibility=spec.get("visibility", Visibility.PUBLIC),
            mentions=[by_name[name].id for name in spec.get("mentions", [])],
            score=spec.get("score", 0),
            created_at=DEMO_EPOCH + timedelta(hours=index * 5),
        )
        created += 1

    logger.info(f"Seeded {created} demo notes for {len(by_name)} users")
    return created


def init_and_seed(config: AppConfig | None = None) -> None:
    """
    Initialize the database schema and optionally seed demo data.

    Called on application startup.
    """
    config = config or get_config()
    db_service = DatabaseService(config.database_path)
    db_path = db_service.initialize()
    logger.info(f"Database initialized at: {db_path}")

    if config.seed_demo_data:
        seed_demo_data(db_service)


__all__ = ["seed_demo_data", "init_and_seed", "DEMO_USERS", "DEMO_NOTES"]
