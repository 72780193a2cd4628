"""User account service: validation of business rules and outcome mapping."""
from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.repositories.user_repository import UserConflictError, UserNotFoundError, UserRepository
from app.schemas.user import (
    MessageResponse,
    PasswordUpdate,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserMessageEnvelope,
    UserOut,
    UserUpdate,
)

LOGGER = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"
CREATE_CONFLICTS = {
    "email": "User with this email already exists",
    "username": "User with this username already exists",
}
UPDATE_CONFLICTS = {
    "email": "Email already taken by another user",
    "username": "Username already taken by another user",
}


def _not_found(cause: Exception | None = None) -> NoReturn:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND) from cause


def _conflict(detail: str, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from cause


def _internal(action: str, cause: Exception) -> NoReturn:
    LOGGER.error("Failed to %s: %s", action, cause)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {cause}",
    ) from cause


class UserService:
    def __init__(self, user_repository: UserRepository) -> None:
        self.user_repository = user_repository

    def create_user(self, db: Session, payload: UserCreate) -> UserMessageEnvelope:
        try:
            if self.user_repository.get_by_email(db, payload.email):
                _conflict(CREATE_CONFLICTS["email"])
            if self.user_repository.get_by_username(db, payload.username):
                _conflict(CREATE_CONFLICTS["username"])
            user = self.user_repository.create_user(db, payload.username, payload.email, payload.password)
        except UserConflictError as exc:
            _conflict(CREATE_CONFLICTS[exc.field], exc)
        except SQLAlchemyError as exc:
            _internal("create user", exc)
        LOGGER.info("Created user id=%s username=%s", user.id, user.username)
        return UserMessageEnvelope(message="User created successfully", user=UserOut.model_validate(user))

    def get_user(self, db: Session, user_id: int) -> UserEnvelope:
        try:
            user = self.user_repository.get_by_id(db, user_id)
        except SQLAlchemyError as exc:
            _internal("get user", exc)
        if user is None:
            _not_found()
        return UserEnvelope(user=UserOut.model_validate(user))

    def list_users(self, db: Session) -> UserListEnvelope:
        try:
            users = self.user_repository.list_users(db)
        except SQLAlchemyError as exc:
            _internal("get users", exc)
        return UserListEnvelope(users=[UserOut.model_validate(user) for user in users])

    def update_user(self, db: Session, user_id: int, payload: UserUpdate) -> UserMessageEnvelope:
        try:
            existing = self.user_repository.get_by_id(db, user_id)
            if existing is None:
                _not_found()

            # Own row is exempt; only another owner of the new value conflicts
            if payload.email != existing.email:
                owner = self.user_repository.get_by_email(db, payload.email)
                if owner is not None and owner.id != user_id:
                    _conflict(UPDATE_CONFLICTS["email"])
            if payload.username != existing.username:
                owner = self.user_repository.get_by_username(db, payload.username)
                if owner is not None and owner.id != user_id:
                    _conflict(UPDATE_CONFLICTS["username"])

            user = self.user_repository.update_profile(db, user_id, payload.username, payload.email)
        except UserNotFoundError as exc:
            _not_found(exc)
        except UserConflictError as exc:
            _conflict(UPDATE_CONFLICTS[exc.field], exc)
        except SQLAlchemyError as exc:
            _internal("update user", exc)
        LOGGER.info("Updated user id=%s", user_id)
        return UserMessageEnvelope(message="User updated successfully", user=UserOut.model_validate(user))

    def update_password(self, db: Session, user_id: int, payload: PasswordUpdate) -> MessageResponse:
        try:
            if self.user_repository.get_by_id(db, user_id) is None:
                _not_found()
            self.user_repository.update_password(db, user_id, payload.password)
        except UserNotFoundError as exc:
            _not_found(exc)
        except SQLAlchemyError as exc:
            _internal("update password", exc)
        LOGGER.info("Updated password for user id=%s", user_id)
        return MessageResponse(message="Password updated successfully")

    def delete_user(self, db: Session, user_id: int) -> MessageResponse:
        try:
            self.user_repository.delete_user(db, user_id)
        except UserNotFoundError as exc:
            _not_found(exc)
        except SQLAlchemyError as exc:
            _internal("delete user", exc)
        LOGGER.info("Deleted user id=%s", user_id)
        return MessageResponse(message="User deleted successfully")
