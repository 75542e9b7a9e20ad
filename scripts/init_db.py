import sys
from pathlib import Path
import os
from datetime import datetime, timedelta

from werkzeug.security import generate_password_hash
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from contextlib import contextmanager

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.alumnet.constants import ADMIN_MATRIC_PREFIX, EVENT_OPEN, ROLE_ADMIN, ROLE_MEMBER, ROLE_MODERATOR
from app.alumnet.models import AlumniProfile, Base, Event, User


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def create_tables(database_url: str) -> None:
    """Create missing tables directly (local/dev only; production uses alembic)."""
    engine = create_engine(database_url, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()


def seed_only(*, database_url: str | None = None, with_samples: bool = False) -> None:
    """
    Seed the admin user (and optionally demo staff, a member and events) in an
    idempotent way. Does NOT overwrite an existing user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@alumnet.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///alumnet.db").strip()

    with _session_scope(db_url) as s:
        def ensure_user(email: str, name: str, role: str, password: str) -> User:
            u = s.query(User).filter(User.email == email).one_or_none()
            if not u:
                u = User(
                    email=email,
                    name=name,
                    password_hash=generate_password_hash(password),
                    role=role,
                    is_verified=True,
                )
                s.add(u)
            elif u.role != role:
                u.role = role
            return u

        def ensure_profile(user: User, matric_no: str, department: str, year: int) -> AlumniProfile:
            p = user.alumni
            if p is None:
                p = AlumniProfile(user=user, matric_no=matric_no, department=department, graduation_year=year)
                s.add(p)
            return p

        admin = ensure_user(admin_email, "Administrator", ROLE_ADMIN, admin_password)
        ensure_profile(admin, f"{ADMIN_MATRIC_PREFIX}SEED", "Administration", datetime.utcnow().year)

        if with_samples:
            moderator = ensure_user("moderator@alumnet.local", "Demo Moderator", ROLE_MODERATOR, admin_password)
            ensure_profile(moderator, "MOD-0001", "Computer Science", 2015)
            member = ensure_user("member@alumnet.local", "Demo Member", ROLE_MEMBER, admin_password)
            ensure_profile(member, "CSC-2018-001", "Computer Science", 2018)

            start = datetime.utcnow().replace(hour=18, minute=0, second=0, microsecond=0)
            samples = [
                ("Annual Homecoming", "Lagos", start + timedelta(days=14), 200),
                ("Career Mentorship Evening", "Abuja", start + timedelta(days=21), 40),
                ("Tech Alumni Meetup", "Lagos", start + timedelta(days=35), None),
            ]
            s.flush()
            for title, city, start_at, capacity in samples:
                exists = s.query(Event).filter(Event.title == title).one_or_none()
                if not exists:
                    s.add(
                        Event(
                            title=title,
                            city=city,
                            location=f"{city} campus hall",
                            start_at=start_at,
                            end_at=start_at + timedelta(hours=3),
                            capacity=capacity,
                            status=EVENT_OPEN,
                            created_by_id=admin.id,
                        )
                    )

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///alumnet.db").strip()
    if "--create-tables" in sys.argv:
        create_tables(db_url)
    seed_only(database_url=db_url, with_samples="--samples" in sys.argv)


if __name__ == "__main__":
    main()
