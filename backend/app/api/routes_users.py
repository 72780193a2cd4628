"""User account CRUD routes."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.user import (
    MessageResponse,
    PasswordUpdate,
    UserCreate,
    UserEnvelope,
    UserListEnvelope,
    UserMessageEnvelope,
    UserUpdate,
)
from app.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])

MIN_USER_ID = -(2**31)
MAX_USER_ID = 2**31 - 1


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def user_id_path(user_id: Annotated[str, Path(pattern=r"^-?\d+$", max_length=11)]) -> int:
    """Parse the path id as a plain decimal that fits the INT id column."""
    value = int(user_id)
    if not MIN_USER_ID <= value <= MAX_USER_ID:
        raise RequestValidationError(
            [
                {
                    "type": "int_out_of_range",
                    "loc": ("path", "user_id"),
                    "msg": f"user id must be between {MIN_USER_ID} and {MAX_USER_ID}",
                    "input": user_id,
                }
            ]
        )
    return value


@router.post("/", response_model=UserMessageEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserMessageEnvelope:
    return user_service.create_user(db, payload)


@router.get("/", response_model=UserListEnvelope)
def list_users(
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserListEnvelope:
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: int = Depends(user_id_path),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    return user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserMessageEnvelope)
def update_user(
    payload: UserUpdate,
    user_id: int = Depends(user_id_path),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserMessageEnvelope:
    return user_service.update_user(db, user_id, payload)


@router.patch("/{user_id}/password", response_model=MessageResponse)
def update_password(
    payload: PasswordUpdate,
    user_id: int = Depends(user_id_path),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    return user_service.update_password(db, user_id, payload)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int = Depends(user_id_path),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    return user_service.delete_user(db, user_id)
