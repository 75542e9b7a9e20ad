#!/usr/bin/env python3
"""Set a user's role (ADMIN, MODERATOR or MEMBER). Idempotent.

Usage:
  python scripts/set_role.py --email someone@example.com --role MODERATOR
"""

import sys
import os
import argparse
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.alumnet.constants import ROLES
from app.alumnet.models import User


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--role", required=True, choices=ROLES, type=str.upper)
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///alumnet.db").strip()
    engine = create_engine(db_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)
    s: Session = sm()
    try:
        user = s.query(User).filter(User.email == args.email.strip().lower()).one_or_none()
        if not user:
            print(f"User not found: {args.email}")
            sys.exit(1)
        if user.role == args.role:
            print(f"User already has role {args.role}: {user.email}")
            return
        user.role = args.role
        s.commit()
        print(f"Role {args.role} set for {user.email}")
    finally:
        s.close()
        engine.dispose()


if __name__ == "__main__":
    main()
