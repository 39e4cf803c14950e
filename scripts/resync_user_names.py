"""
Rewrite the stored name snapshots (attendance records, salary advances) with
each user's current full name. Same effect as POST /users/{id}/resync-names,
for every user at once.

Usage:
  python scripts/resync_user_names.py
  python scripts/resync_user_names.py --user-id 12
"""
import argparse
import sys
from pathlib import Path

# Add project root so risingsun is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy.orm import Session
from risingsun.core.exceptions import InfrastructureError
from risingsun.db import session as db_session
from risingsun.models.user import User
from risingsun.services.session_store import SqlSessionStore


def main():
    parser = argparse.ArgumentParser(description="Resync denormalized user names")
    parser.add_argument("--user-id", type=int, default=None, help="Only this user")
    args = parser.parse_args()

    db: Session = db_session.SessionLocal()
    try:
        query = db.query(User)
        if args.user_id is not None:
            query = query.filter(User.id == args.user_id)
        users = query.order_by(User.id).all()
        if not users:
            print("No matching users.")
            return 1

        store = SqlSessionStore(db)
        print(f"Resyncing names for {len(users)} users...")
        failed = 0
        for user in users:
            try:
                counts = store.resync_user_names(user.id, user.full_name)
            except InfrastructureError as e:
                failed += 1
                print(f"  Skip user {user.id} ({user.email}): {e.message}")
                continue
            if any(counts.values()):
                print(f"  {user.id} {user.full_name}: {counts}")
        print("Done." if not failed else f"Done with {failed} failures.")
        return 1 if failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
