"""Test helpers for authentication and common test operations.

Provides:
- AuthedUser: a user row plus a live bearer token
- Header generation for test requests
- Registration through the public API
"""

from dataclasses import dataclass
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

DEFAULT_PASSWORD = "correct-horse-battery"


@dataclass
class AuthedUser:
    """A user created for a test, with a token that authenticates as them."""

    id: UUID
    name: str
    email: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return auth_headers(self.token)


def auth_headers(token: str) -> dict[str, str]:
    """Generate authorization headers for a bearer token."""
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str = "user") -> str:
    """Return an email address no other test row uses."""
    return f"{prefix}-{uuid4().hex[:12]}@example.com"


def register_via_api(
    client: TestClient,
    name: str = "API User",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    device_name: str = "pytest",
) -> AuthedUser:
    """Register through POST /register and return the issued identity."""
    response = client.post(
        "/register",
        json={
            "name": name,
            "email": email or unique_email(),
            "password": password,
            "device_name": device_name,
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return AuthedUser(
        id=UUID(data["user"]["id"]),
        name=data["user"]["name"],
        email=data["user"]["email"],
        token=data["token"],
    )
