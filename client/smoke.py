"""Walk a running backend through the full user lifecycle.

Usage: ``python client/smoke.py [base_url]``. Exits non-zero on the first
unexpected response.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Callable, Dict

import requests

from api_client import UsersAPIClient, get_client


def _show(step: str, payload: Dict[str, Any]) -> None:
    print(step)
    print(json.dumps(payload, indent=2, default=str))
    print()


def _expect_status(call: Callable[[], Dict[str, Any]], status_code: int) -> Dict[str, Any]:
    try:
        call()
    except requests.HTTPError as exc:
        if exc.response is not None and exc.response.status_code == status_code:
            return exc.response.json()
        raise
    raise AssertionError(f"expected HTTP {status_code}")


def run_smoke(client: UsersAPIClient) -> int:
    _show("1. Health", client.health())

    created = client.create_user("john_doe", "john@example.com", "password123")
    _show("2. Create user", created)
    user_id = created["user"]["id"]

    _show("3. List users", client.list_users())
    _show(f"4. Get user {user_id}", client.get_user(user_id))
    _show(
        f"5. Update user {user_id}",
        client.update_user(user_id, "john_updated", "john_updated@example.com"),
    )
    _show(f"6. Update password for user {user_id}", client.update_password(user_id, "newpassword123"))
    _show(f"7. Get updated user {user_id}", client.get_user(user_id))
    _show(f"8. Delete user {user_id}", client.delete_user(user_id))
    _show("9. Verify user is deleted", _expect_status(lambda: client.get_user(user_id), 404))
    return user_id


def main(argv: list[str]) -> int:
    client = get_client(argv[1] if len(argv) > 1 else None)
    try:
        run_smoke(client)
    except (requests.RequestException, AssertionError) as exc:
        print(f"Smoke test failed: {exc}", file=sys.stderr)
        return 1
    print("Smoke test complete")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
