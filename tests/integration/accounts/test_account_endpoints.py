"""
Integration tests for the /accounts endpoints.

Tests run through FastAPI TestClient against an in-memory database.
"""

from typing import Any, Dict

from fastapi.testclient import TestClient


class TestAccountRegistration:
    """POST /accounts"""

    def test_register_returns_created_account(self, test_client: TestClient, ana_body: Dict[str, Any]) -> None:
        response = test_client.post("/accounts", json=ana_body)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Account created successfully"
        assert body["data"]["id"] > 0
        assert body["data"]["name"] == "Ana"
        assert body["data"]["email"] == "ana@x.com"
        assert body["data"]["password"] == ""

    def test_duplicate_email(self, test_client: TestClient, registered_account: Dict[str, Any], ana_body: Dict[str, Any]) -> None:
        response = test_client.post("/accounts", json=ana_body)

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "conflict"
        assert body["details"] == {"field": "email"}

    def test_invalid_email(self, test_client: TestClient) -> None:
        response = test_client.post("/accounts", json={"name": "Ana", "email": "ana", "password": "secret1"})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"
        assert response.json()["message"] == "Email format is not valid"

    def test_short_password(self, test_client: TestClient) -> None:
        response = test_client.post("/accounts", json={"name": "Ana", "email": "ana@x.com", "password": "123"})
        assert response.status_code == 400

    def test_wrongly_typed_body_is_invalid_input(self, test_client: TestClient) -> None:
        """Shape errors use the same envelope as rule violations."""
        response = test_client.post("/accounts", json={"name": ["Ana"], "email": "ana@x.com", "password": "secret1"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_input"
        assert body["details"]["errors"]

    def test_missing_body(self, test_client: TestClient) -> None:
        response = test_client.post("/accounts")
        assert response.status_code == 400


class TestAccountReads:
    """GET /accounts and /accounts/{id}"""

    def test_list_accounts(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        response = test_client.get("/accounts")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [a["email"] for a in data] == ["ana@x.com"]
        assert data[0]["password"] == ""

    def test_get_account(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        response = test_client.get(f"/accounts/{registered_account['id']}")

        assert response.status_code == 200
        assert response.json()["data"] == registered_account

    def test_get_unknown_account(self, test_client: TestClient) -> None:
        response = test_client.get("/accounts/999")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_non_numeric_id(self, test_client: TestClient) -> None:
        assert test_client.get("/accounts/abc").status_code == 400


class TestAccountLogin:
    """POST /accounts/login"""

    def test_login_success(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        response = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "secret1"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == registered_account["id"]
        assert response.json()["data"]["password"] == ""

    def test_login_wrong_password(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        response = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_login_unknown_email_looks_the_same(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        wrong_password = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "nope"})
        unknown_email = test_client.post("/accounts/login", json={"email": "zoe@x.com", "password": "nope"})

        assert unknown_email.status_code == 401
        assert unknown_email.json() == wrong_password.json()


class TestAccountUpdate:
    """PUT /accounts/{id} and /accounts/{id}/password"""

    def test_update_profile_keeps_password(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        account_id = registered_account["id"]
        response = test_client.put(f"/accounts/{account_id}", json={"name": "Ana Maria", "email": "ana@x.com"})

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ana Maria"

        login = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "secret1"})
        assert login.status_code == 200

    def test_update_to_taken_email(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        test_client.post("/accounts", json={"name": "Bob", "email": "bob@x.com", "password": "secret2"})

        response = test_client.put(
            f"/accounts/{registered_account['id']}",
            json={"name": "Ana", "email": "bob@x.com"},
        )
        assert response.status_code == 409

    def test_update_unknown_account(self, test_client: TestClient) -> None:
        response = test_client.put("/accounts/999", json={"name": "Ana", "email": "ana@x.com"})
        assert response.status_code == 404

    def test_change_password(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        account_id = registered_account["id"]
        response = test_client.put(
            f"/accounts/{account_id}/password",
            json={"current_password": "secret1", "new_password": "secret2"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Password changed successfully", "data": None}

        old = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "secret1"})
        new = test_client.post("/accounts/login", json={"email": "ana@x.com", "password": "secret2"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_change_password_wrong_current(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        response = test_client.put(
            f"/accounts/{registered_account['id']}/password",
            json={"current_password": "wrong1", "new_password": "secret2"},
        )
        assert response.status_code == 401


class TestAccountDeletion:
    """DELETE /accounts/{id}"""

    def test_delete_account(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        account_id = registered_account["id"]

        response = test_client.delete(f"/accounts/{account_id}")
        assert response.status_code == 200
        assert response.json()["message"] == "Account deleted successfully"
        assert test_client.get(f"/accounts/{account_id}").status_code == 404

    def test_delete_author_with_reports(self, test_client: TestClient, registered_account: Dict[str, Any]) -> None:
        account_id = registered_account["id"]
        test_client.post("/reports", json={
            "route_id": 5,
            "category_id": 1,
            "author_id": account_id,
            "title": "Bus late",
            "description": "30 min",
        })

        response = test_client.delete(f"/accounts/{account_id}")
        assert response.status_code == 409
        assert response.json()["details"] == {"policy": "restrict"}

    def test_delete_unknown_account(self, test_client: TestClient) -> None:
        assert test_client.delete("/accounts/999").status_code == 404
