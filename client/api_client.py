"""HTTP client for the user accounts backend."""
from __future__ import annotations

from typing import Any, Dict

import requests

from config import BACKEND_BASE_URL, REQUEST_TIMEOUT


class UsersAPIClient:
    def __init__(self, base_url: str = BACKEND_BASE_URL, timeout: float = REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    # -------------------- Health --------------------
    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    # -------------------- Users --------------------
    def create_user(self, username: str, email: str, password: str) -> Dict[str, Any]:
        payload = {"username": username, "email": email, "password": password}
        return self._request("POST", "/api/users/", json=payload)

    def list_users(self) -> Dict[str, Any]:
        return self._request("GET", "/api/users/")

    def get_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/users/{user_id}")

    def update_user(self, user_id: int, username: str, email: str) -> Dict[str, Any]:
        payload = {"username": username, "email": email}
        return self._request("PUT", f"/api/users/{user_id}", json=payload)

    def update_password(self, user_id: int, password: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/users/{user_id}/password", json={"password": password})

    def delete_user(self, user_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/users/{user_id}")

    # -------------------- Internal helpers --------------------
    def _request(self, method: str, path: str, json: Dict[str, Any] | None = None) -> Dict[str, Any]:
        res = self.session.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        try:
            res.raise_for_status()
        except requests.HTTPError as exc:
            detail = f"{method} {path} -> {res.status_code} {res.reason}; body={res.text}"
            raise requests.HTTPError(detail, response=res) from exc
        return res.json() if res.text else {}


def get_client(base_url: str | None = None) -> UsersAPIClient:
    return UsersAPIClient(base_url=base_url or BACKEND_BASE_URL)
