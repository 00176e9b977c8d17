from __future__ import annotations

import logging

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models.user import Role, User

logger = logging.getLogger("dental_clinic.users")


def normalize_email(email: str) -> str:
    return str(email).strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == normalize_email(email)))


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    role: Role,
    full_name: str = "",
    must_change_password: bool = True,
) -> User:
    """Add a staff account; new accounts change their temporary password on first login."""
    user = User(
        email=normalize_email(email),
        full_name=full_name.strip(),
        role=role,
        is_active=True,
        must_change_password=must_change_password,
        hashed_password=hash_password(password),
    )
    db.add(user)
    db.flush()
    return user


def seed_initial_admin(db: Session, *, email: str, password: str) -> User | None:
    if db.scalar(select(exists().where(User.id.is_not(None)))):
        return None
    admin = create_user(db, email=email, password=password, role=Role.admin, full_name="Administrador")
    db.commit()
    return admin


def set_password(db: Session, *, user: User, new_password: str) -> None:
    user.hashed_password = hash_password(new_password)
    user.must_change_password = False
    db.add(user)


def deactivate(db: Session, *, user: User, actor: User) -> None:
    if user.id == actor.id:
        raise ValueError("Cannot deactivate your own account")
    user.is_active = False
    db.add(user)
    logger.info("User %s deactivated by %s", user.email, actor.email)
