"""Repository for user persistence and retrieval."""
from __future__ import annotations

import logging
from typing import NoReturn

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import User

LOGGER = logging.getLogger(__name__)

UNIQUE_FIELDS = ("username", "email")


class UserNotFoundError(Exception):
    """No row matched the given identifier."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class UserConflictError(Exception):
    """A unique key (username or email) is already owned by another row."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} already exists")
        self.field = field


def conflicting_field(exc: IntegrityError) -> str | None:
    """Name the unique column an IntegrityError collided on, if any.

    MySQL reports ``Duplicate entry 'x' for key 'users.uq_users_email'`` and
    SQLite ``UNIQUE constraint failed: users.email``; only the key part is
    inspected so the duplicated value itself cannot mislead the match.
    """
    message = str(exc.orig)
    if "Duplicate entry" in message and "for key" in message:
        message = message.rsplit("for key", 1)[1]
    elif "UNIQUE constraint failed" in message:
        message = message.split("UNIQUE constraint failed", 1)[1]
    else:
        return None
    for field in UNIQUE_FIELDS:
        if field in message:
            return field
    return None


class UserRepository:
    def create_user(self, db: Session, username: str, email: str, password: str) -> User:
        user = User(username=username, email=email, password=password)
        try:
            db.add(user)
            db.commit()
        except SQLAlchemyError as exc:
            self._fail(db, exc, "insert")
        db.refresh(user)
        return user

    def get_by_id(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email).first()

    def get_by_username(self, db: Session, username: str) -> User | None:
        return db.query(User).filter(User.username == username).first()

    def list_users(self, db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def update_profile(self, db: Session, user_id: int, username: str, email: str) -> User:
        statement = update(User).where(User.id == user_id).values(username=username, email=email)
        self._execute(db, statement, user_id, "profile update")
        user = db.get(User, user_id, populate_existing=True)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def update_password(self, db: Session, user_id: int, password: str) -> None:
        statement = update(User).where(User.id == user_id).values(password=password)
        self._execute(db, statement, user_id, "password update")

    def delete_user(self, db: Session, user_id: int) -> None:
        self._execute(db, delete(User).where(User.id == user_id), user_id, "delete")

    def _execute(self, db: Session, statement, user_id: int, action: str) -> None:
        try:
            result = db.execute(statement, execution_options={"synchronize_session": False})
            db.commit()
        except SQLAlchemyError as exc:
            self._fail(db, exc, f"{action} for user={user_id}")
        if result.rowcount == 0:
            raise UserNotFoundError(user_id)

    def _fail(self, db: Session, exc: SQLAlchemyError, action: str) -> NoReturn:
        db.rollback()
        if isinstance(exc, IntegrityError):
            field = conflicting_field(exc)
            if field is not None:
                LOGGER.info("DB %s rejected by unique constraint on %s", action, field)
                raise UserConflictError(field) from exc
        LOGGER.error("DB %s failed: %s", action, exc)
        raise exc
