#!/usr/bin/env python
"""Seed development database with fixture data.

Creates three users (alice, bob, carol; password "password123") and one
group containing alice and bob, for poking at the API locally.

Constraints:
- Refuses to run in staging or prod (SWITCHBOARD_ENV check)
- Idempotent: fixed ids, existing rows are left alone
- Never runs automatically (manual invocation only)

Usage:
    DATABASE_URL=... python scripts/seed_dev.py
"""

import os
import sys
from uuid import UUID

FIXTURE_PASSWORD = "password123"
FIXTURE_USERS = [
    (UUID("00000000-0000-4000-8000-00000000a11c"), "Alice", "alice@example.com"),
    (UUID("00000000-0000-4000-8000-000000000b0b"), "Bob", "bob@example.com"),
    (UUID("00000000-0000-4000-8000-00000000ca01"), "Carol", "carol@example.com"),
]
FIXTURE_GROUP_ID = UUID("00000000-0000-4000-8000-0000000a0001")
FIXTURE_GROUP_NAME = "Dev Group"


def main():
    # 1. Environment check (hard fail in staging/prod)
    switchboard_env = os.getenv("SWITCHBOARD_ENV", "local")
    if switchboard_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in SWITCHBOARD_ENV={switchboard_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from switchboard.auth.passwords import hash_password
    from switchboard.db.engine import create_db_engine
    from switchboard.db.models import Group, GroupMember, User
    from switchboard.db.session import create_session_factory, transaction

    session_factory = create_session_factory(create_db_engine(database_url))
    created = []

    # 3. Idempotent seeding
    with session_factory() as db, transaction(db):
        for user_id, name, email in FIXTURE_USERS:
            if db.get(User, user_id) is None:
                db.add(
                    User(
                        id=user_id,
                        name=name,
                        email=email,
                        password_hash=hash_password(FIXTURE_PASSWORD),
                    )
                )
                created.append(f"user {email}")
        db.flush()

        if db.get(Group, FIXTURE_GROUP_ID) is None:
            db.add(Group(id=FIXTURE_GROUP_ID, name=FIXTURE_GROUP_NAME))
            db.flush()
            for user_id, _, _ in FIXTURE_USERS[:2]:
                db.add(GroupMember(group_id=FIXTURE_GROUP_ID, user_id=user_id))
            created.append(f"group {FIXTURE_GROUP_NAME}")

    # 4. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"SWITCHBOARD_ENV: {switchboard_env}")
    print()
    if created:
        for item in created:
            print(f"✓ Created: {item}")
    else:
        print("• Exists: all fixtures already present")


if __name__ == "__main__":
    main()
