"""Seed admin users from settings."""
import logging

from sqlalchemy.orm import Session
from dashboard.config import settings
from dashboard.models.user import User
from dashboard.services.auth import hash_password

logger = logging.getLogger(__name__)


def seed_database(db: Session, admins: list[dict] = None) -> int:
    """Create missing admin accounts; existing usernames are left alone."""
    created = 0
    for admin_data in settings.seed_admins_list if admins is None else admins:
        username = (admin_data.get("username") or "").strip()
        password = admin_data.get("password")
        if not username or not password:
            logger.warning("[SEED] Skipping admin entry with missing username or password")
            continue
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            continue
        db.add(User(
            username=username,
            password_hash=hash_password(password),
            is_admin=True,
            can_edit_categories=True,
        ))
        db.commit()
        created += 1
        logger.info("[SEED] Created admin user: %s", username)
    return created
