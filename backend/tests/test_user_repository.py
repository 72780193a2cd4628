"""Tests for the user repository against an in-memory database."""
from __future__ import annotations

from datetime import timezone

import pytest

from app.repositories.user_repository import UserConflictError, UserNotFoundError


def test_create_user_assigns_id_and_timestamps(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    assert user.id > 0
    assert user.created_at.tzinfo == timezone.utc
    assert user.updated_at.tzinfo == timezone.utc


def test_point_lookups_return_none_when_absent(db_session, repo) -> None:
    assert repo.get_by_id(db_session, 999) is None
    assert repo.get_by_email(db_session, "ghost@example.com") is None
    assert repo.get_by_username(db_session, "ghost") is None


def test_point_lookups_find_created_user(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    assert repo.get_by_email(db_session, "alice@example.com").id == user.id
    assert repo.get_by_username(db_session, "alice").id == user.id


@pytest.mark.parametrize(
    "username, email, field",
    [
        ("alice", "other@example.com", "username"),
        ("bob", "alice@example.com", "email"),
    ],
)
def test_duplicate_insert_maps_to_conflict(db_session, repo, username, email, field) -> None:
    repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    with pytest.raises(UserConflictError) as excinfo:
        repo.create_user(db_session, username, email, "secret1")
    assert excinfo.value.field == field
    assert len(repo.list_users(db_session)) == 1


def test_update_profile_refreshes_updated_at_only(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    created_at, updated_at = user.created_at, user.updated_at

    updated = repo.update_profile(db_session, user.id, "alice2", "alice2@example.com")

    assert updated.username == "alice2"
    assert updated.email == "alice2@example.com"
    assert updated.created_at == created_at
    assert updated.updated_at > updated_at


def test_update_profile_conflict_leaves_row_untouched(db_session, repo) -> None:
    repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    bob = repo.create_user(db_session, "bob", "bob@example.com", "secret1")

    with pytest.raises(UserConflictError) as excinfo:
        repo.update_profile(db_session, bob.id, "alice", "bob@example.com")

    assert excinfo.value.field == "username"
    assert repo.get_by_username(db_session, "bob").id == bob.id


def test_update_missing_user_raises_not_found(db_session, repo) -> None:
    with pytest.raises(UserNotFoundError):
        repo.update_profile(db_session, 42, "x", "x@example.com")
    with pytest.raises(UserNotFoundError):
        repo.update_password(db_session, 42, "secret1")


def test_update_password_stores_new_value(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    repo.update_password(db_session, user.id, "secret2")
    db_session.expire_all()
    assert repo.get_by_id(db_session, user.id).password == "secret2"


def test_delete_reports_not_found_on_zero_rows(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    repo.delete_user(db_session, user.id)
    with pytest.raises(UserNotFoundError):
        repo.delete_user(db_session, user.id)
    with pytest.raises(UserNotFoundError):
        repo.delete_user(db_session, 12345)


def test_list_users_newest_first(db_session, repo) -> None:
    assert repo.list_users(db_session) == []
    first = repo.create_user(db_session, "first", "first@example.com", "secret1")
    second = repo.create_user(db_session, "second", "second@example.com", "secret1")
    assert [u.id for u in repo.list_users(db_session)] == [second.id, first.id]


def test_update_password_refreshes_updated_at_only(db_session, repo) -> None:
    user = repo.create_user(db_session, "alice", "alice@example.com", "secret1")
    created_at, updated_at = user.created_at, user.updated_at

    repo.update_password(db_session, user.id, "secret2")
    db_session.expire_all()
    reloaded = repo.get_by_id(db_session, user.id)

    assert reloaded.created_at == created_at
    assert reloaded.updated_at > updated_at
