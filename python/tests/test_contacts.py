"""Integration tests for the allowed-contacts registry.

Tests cover:
- Add / list / remove
- Duplicate and self-contacts rejected
- The allow-list gates direct messages once non-empty
"""

from uuid import uuid4

from fastapi.testclient import TestClient


class TestAddContact:
    """Tests for POST /allowed-contacts."""

    def test_add_and_list(self, client: TestClient, make_user):
        alice, bob = make_user("Alice"), make_user("Bob")

        response = client.post(
            "/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["contact_id"] == str(bob.id)
        assert data["contact"]["name"] == "Bob"

        listed = client.get("/allowed-contacts", headers=alice.headers).json()["data"]
        assert [c["contact_id"] for c in listed] == [str(bob.id)]

    def test_list_is_per_owner(self, client: TestClient, make_user):
        """The allow-list is directed: Bob's list stays empty."""
        alice, bob = make_user("Alice"), make_user("Bob")
        client.post("/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers)

        assert client.get("/allowed-contacts", headers=bob.headers).json()["data"] == []

    def test_duplicate_is_conflict(self, client: TestClient, make_user):
        alice, bob = make_user("Alice"), make_user("Bob")
        body = {"contact_id": str(bob.id)}
        client.post("/allowed-contacts", json=body, headers=alice.headers)

        response = client.post("/allowed-contacts", json=body, headers=alice.headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "E_CONTACT_EXISTS"

    def test_self_is_rejected(self, client: TestClient, make_user):
        alice = make_user("Alice")

        response = client.post(
            "/allowed-contacts", json={"contact_id": str(alice.id)}, headers=alice.headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"

    def test_unknown_user(self, client: TestClient, make_user):
        alice = make_user("Alice")

        response = client.post(
            "/allowed-contacts", json={"contact_id": str(uuid4())}, headers=alice.headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_USER_NOT_FOUND"


class TestRemoveContact:
    """Tests for DELETE /allowed-contacts/{contact_id}."""

    def test_remove(self, client: TestClient, make_user):
        alice, bob = make_user("Alice"), make_user("Bob")
        client.post("/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers)

        response = client.delete(f"/allowed-contacts/{bob.id}", headers=alice.headers)

        assert response.status_code == 204
        assert client.get("/allowed-contacts", headers=alice.headers).json()["data"] == []

    def test_remove_absent_is_404(self, client: TestClient, make_user):
        alice, bob = make_user("Alice"), make_user("Bob")

        response = client.delete(f"/allowed-contacts/{bob.id}", headers=alice.headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_CONTACT_NOT_FOUND"


class TestContactGate:
    """The allow-list restricts who the owner may message directly."""

    def _send(self, client, sender, receiver):
        return client.post(
            "/messages",
            json={"content": "hi", "receiver_id": str(receiver.id)},
            headers=sender.headers,
        )

    def test_empty_list_allows_anyone(self, client: TestClient, make_user):
        alice, bob = make_user("Alice"), make_user("Bob")
        assert self._send(client, alice, bob).status_code == 201

    def test_non_empty_list_restricts(self, client: TestClient, make_user):
        alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
        client.post("/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers)

        assert self._send(client, alice, bob).status_code == 201
        blocked = self._send(client, alice, carol)
        assert blocked.status_code == 403
        assert blocked.json()["error"]["code"] == "E_CONTACT_NOT_ALLOWED"

    def test_only_sender_list_matters(self, client: TestClient, make_user):
        """Carol has no list, so she may message Alice even though Alice restricts hers."""
        alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
        client.post("/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers)

        assert self._send(client, carol, alice).status_code == 201

    def test_removing_last_contact_reopens(self, client: TestClient, make_user):
        alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
        client.post("/allowed-contacts", json={"contact_id": str(bob.id)}, headers=alice.headers)
        client.delete(f"/allowed-contacts/{bob.id}", headers=alice.headers)

        assert self._send(client, alice, carol).status_code == 201
