import pytest

from tests.conftest import PASSWORD, bearer, login, register


@pytest.fixture
def other(client):
    resp = register(client, username="bob", email="bob@example.com")
    return resp.get_json()["data"]


class TestUpdate:
    def test_update_username_and_email(self, client, tokens):
        resp = client.put(
            f"/api/user/update/{tokens['userId']}",
            json={"username": "alicia", "email": "alicia@example.com"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert (data["username"], data["email"]) == ("alicia", "alicia@example.com")

    def test_keeping_own_username_is_not_a_conflict(self, client, tokens):
        resp = client.put(
            f"/api/user/update/{tokens['userId']}",
            json={"username": "alice"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 200

    def test_username_taken_by_other_user(self, client, tokens, other):
        resp = client.put(
            f"/api/user/update/{tokens['userId']}",
            json={"username": "bob"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "CONFLICT"

    def test_email_taken_by_other_user(self, client, tokens, other):
        resp = client.put(
            f"/api/user/update/{tokens['userId']}",
            json={"email": "bob@example.com"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 400

    def test_password_change(self, client, tokens):
        resp = client.put(
            f"/api/user/update/{tokens['userId']}",
            json={"password": "brand-new-password"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 200
        assert login(client, password=PASSWORD).status_code == 400
        assert login(client, password="brand-new-password").status_code == 200

    def test_other_user_forbidden(self, client, tokens, other):
        resp = client.put(
            f"/api/user/update/{other['userId']}",
            json={"username": "mallory"},
            headers=bearer(tokens["accessToken"]),
        )
        assert resp.status_code == 403

    def test_requires_token(self, client, tokens):
        resp = client.put(f"/api/user/update/{tokens['userId']}", json={"username": "x" * 5})
        assert resp.status_code == 401


class TestDelete:
    def test_delete_removes_user_and_sessions(self, client, tokens):
        headers = bearer(tokens["accessToken"])
        resp = client.delete(f"/api/user/delete/{tokens['userId']}", headers=headers)
        assert resp.status_code == 200

        assert login(client).status_code == 404
        assert client.get("/api/user/me", headers=headers).status_code == 401

    def test_other_user_forbidden(self, client, tokens, other):
        resp = client.delete(f"/api/user/delete/{other['userId']}", headers=bearer(tokens["accessToken"]))
        assert resp.status_code == 403

    def test_token_of_deleted_user(self, client, tokens):
        from models import storage
        from models.user import User

        storage.delete_by_id(User, tokens["userId"])
        resp = client.delete(
            f"/api/user/delete/{tokens['userId']}", headers=bearer(tokens["accessToken"])
        )
        assert resp.status_code == 404


class TestProgress:
    def url(self, user_id):
        return f"/api/user/update-progress/{user_id}"

    def test_gain_250_from_scratch(self, client, tokens):
        resp = client.post(
            self.url(tokens["userId"]), json={"xpGained": 250}, headers=bearer(tokens["accessToken"])
        )
        assert resp.status_code == 200
        assert resp.get_json()["user"] == {
            "username": "alice",
            "level": 2,
            "experience": 50,
            "requiredXp": 200,
        }

    def test_progress_is_persisted(self, client, tokens):
        headers = bearer(tokens["accessToken"])
        client.post(self.url(tokens["userId"]), json={"xpGained": 150}, headers=headers)
        client.post(self.url(tokens["userId"]), json={"xpGained": 60}, headers=headers)
        data = client.get("/api/user/me", headers=headers).get_json()["data"]
        assert (data["level"], data["experience"]) == (2, 10)

    @pytest.mark.parametrize("body", [{}, {"xpGained": -1}, {"xpGained": "lots"}, {"xpGained": 1.5}])
    def test_invalid_gain(self, client, tokens, body):
        resp = client.post(self.url(tokens["userId"]), json=body, headers=bearer(tokens["accessToken"]))
        assert resp.status_code == 400

    def test_other_user_forbidden(self, client, tokens, other):
        resp = client.post(
            self.url(other["userId"]), json={"xpGained": 10}, headers=bearer(tokens["accessToken"])
        )
        assert resp.status_code == 403

    @pytest.mark.parametrize("gain", [10**400, 1_000_000_001])
    def test_huge_gain_rejected_before_storage(self, client, tokens, gain):
        headers = bearer(tokens["accessToken"])
        resp = client.post(self.url(tokens["userId"]), json={"xpGained": gain}, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "VALIDATION_ERROR"
        data = client.get("/api/user/me", headers=headers).get_json()["data"]
        assert (data["level"], data["experience"]) == (0, 0)
