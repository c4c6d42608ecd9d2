"""HTTP tests for the participant and message endpoints."""
import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig, PresenceSettings, StoreSettings
from app.main import create_app


def _register(client, name):
    response = client.post("/participants", json={"name": name})
    assert response.status_code == 201
    return response


def _send(client, sender, to="Todos", text="oi", type_="message"):
    return client.post(
        "/messages",
        json={"to": to, "text": text, "type": type_},
        headers={"User": sender},
    )


class TestHealth:

    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestParticipantEndpoints:

    def test_register_returns_201(self, api_client):
        response = _register(api_client, "Maria")
        assert response.json()["name"] == "Maria"
        assert isinstance(response.json()["lastStatus"], int)

    def test_duplicate_name_returns_409(self, api_client):
        _register(api_client, "Maria")

        response = api_client.post("/participants", json={"name": "MARIA"})

        assert response.status_code == 409
        assert "message" in response.json()

    @pytest.mark.parametrize("body", [{"name": "ab"}, {"name": "x" * 21}, {}, {"nome": "Maria"}])
    def test_invalid_registration_returns_422(self, api_client, body):
        response = api_client.post("/participants", json=body)

        assert response.status_code == 422
        errors = response.json()
        assert isinstance(errors, list)
        assert all(isinstance(error, str) for error in errors)
        assert errors[0].startswith("name")

    def test_name_that_sanitizes_too_short_returns_422(self, api_client):
        response = api_client.post("/participants", json={"name": "<b>ab</b>"})
        assert response.status_code == 422

    def test_list_participants(self, api_client):
        _register(api_client, "Alice")
        _register(api_client, "Bruno")

        response = api_client.get("/participants")

        assert response.status_code == 200
        assert sorted(p["name"] for p in response.json()) == ["Alice", "Bruno"]

    def test_status_ping(self, api_client):
        _register(api_client, "Maria")
        response = api_client.post("/status", headers={"User": "Maria"})
        assert response.status_code == 200

    def test_status_ping_unknown_returns_404(self, api_client):
        response = api_client.post("/status", headers={"User": "Ghost"})
        assert response.status_code == 404

    def test_status_ping_without_header_returns_404(self, api_client):
        assert api_client.post("/status").status_code == 404

    def test_encoded_name_works_as_its_own_header(self, api_client):
        response = _register(api_client, "&lt;b&gt;Ana")
        assert response.json()["name"] == "Ana"

        headers = {"User": "&lt;b&gt;Ana"}
        assert api_client.post("/status", headers=headers).status_code == 200
        assert _send(api_client, "&lt;b&gt;Ana").status_code == 201


class TestMessageEndpoints:

    def test_send_returns_201_with_id(self, api_client):
        _register(api_client, "Maria")

        response = _send(api_client, "Maria")

        assert response.status_code == 201
        assert response.json()["id"]

    def test_send_from_unregistered_returns_422(self, api_client):
        assert _send(api_client, "Ghost").status_code == 422

    def test_send_without_header_returns_422(self, api_client):
        response = api_client.post(
            "/messages", json={"to": "Todos", "text": "oi", "type": "message"}
        )
        assert response.status_code == 422

    def test_send_invalid_type_returns_422(self, api_client):
        _register(api_client, "Maria")

        response = _send(api_client, "Maria", type_="status")

        assert response.status_code == 422
        assert response.json()[0].startswith("type")

    def test_sender_comes_from_header(self, api_client):
        _register(api_client, "Maria")
        _register(api_client, "Pedro")
        api_client.post(
            "/messages",
            json={"from": "Pedro", "to": "Todos", "text": "quem sou eu", "type": "message"},
            headers={"User": "Maria"},
        )

        listing = api_client.get("/messages", headers={"User": "Maria"}).json()

        assert listing[-1]["from"] == "Maria"

    def test_list_shape(self, api_client):
        _register(api_client, "Maria")
        _send(api_client, "Maria", text="olá")

        response = api_client.get("/messages", headers={"User": "Maria"})

        assert response.status_code == 200
        last = response.json()[-1]
        assert set(last) == {"id", "from", "to", "text", "type", "time"}
        assert last["text"] == "olá"
        assert last["type"] == "message"

    def test_list_for_unregistered_returns_422(self, api_client):
        response = api_client.get("/messages", headers={"User": "Ghost"})
        assert response.status_code == 422

    def test_list_limit(self, api_client):
        _register(api_client, "Maria")
        for text in ("m1", "m2", "m3", "m4"):
            _send(api_client, "Maria", text=text)

        response = api_client.get("/messages?limit=2", headers={"User": "Maria"})

        assert [m["text"] for m in response.json()] == ["m3", "m4"]

    def test_list_zero_limit_returns_everything(self, api_client):
        _register(api_client, "Maria")
        _send(api_client, "Maria")

        response = api_client.get("/messages?limit=0", headers={"User": "Maria"})

        assert len(response.json()) == 2

    def test_list_non_integer_limit_returns_422(self, api_client):
        _register(api_client, "Maria")

        response = api_client.get("/messages?limit=abc", headers={"User": "Maria"})

        assert response.status_code == 422
        assert response.json()[0].startswith("limit")

    def test_list_oversized_limit_returns_422(self, api_client):
        _register(api_client, "Maria")

        response = api_client.get(
            "/messages?limit=99999999999999999999", headers={"User": "Maria"}
        )

        assert response.status_code == 422
        assert response.json()[0].startswith("limit")

    def test_list_largest_limit_returns_everything(self, api_client):
        _register(api_client, "Maria")
        _send(api_client, "Maria")

        response = api_client.get(
            f"/messages?limit={2**63 - 1}", headers={"User": "Maria"}
        )

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_private_message_visibility(self, api_client):
        for name in ("Alice", "Bruno", "Carla"):
            _register(api_client, name)
        _send(api_client, "Alice", to="Bruno", text="segredo", type_="private_message")

        def texts(user):
            return [m["text"] for m in api_client.get("/messages", headers={"User": user}).json()]

        assert "segredo" in texts("Alice")
        assert "segredo" in texts("Bruno")
        assert "segredo" not in texts("Carla")

    def test_header_identity_is_sanitized(self, api_client):
        _register(api_client, "Maria")
        assert _send(api_client, "<b>Maria</b>").status_code == 201


class TestEditAndDelete:

    @pytest.fixture
    def message_id(self, api_client):
        _register(api_client, "Alice")
        _register(api_client, "Bruno")
        return _send(api_client, "Alice", text="original").json()["id"]

    def test_round_trip_edit(self, api_client, message_id):
        response = api_client.put(
            f"/messages/{message_id}",
            json={"to": "Bruno", "text": "editada", "type": "private_message"},
            headers={"User": "Alice"},
        )

        assert response.status_code == 200
        listing = api_client.get("/messages", headers={"User": "Bruno"}).json()
        edited = [m for m in listing if m["id"] == message_id]
        assert len(edited) == 1
        assert edited[0]["text"] == "editada"
        assert edited[0]["from"] == "Alice"
        assert edited[0]["type"] == "private_message"

    def test_edit_by_non_owner_returns_401(self, api_client, message_id):
        response = api_client.put(
            f"/messages/{message_id}",
            json={"to": "Todos", "text": "hackeado", "type": "message"},
            headers={"User": "Bruno"},
        )
        assert response.status_code == 401

    def test_edit_unknown_returns_404(self, api_client, message_id):
        response = api_client.put(
            "/messages/missing",
            json={"to": "Todos", "text": "oi", "type": "message"},
            headers={"User": "Alice"},
        )
        assert response.status_code == 404

    def test_edit_invalid_body_returns_422(self, api_client, message_id):
        response = api_client.put(
            f"/messages/{message_id}",
            json={"to": "Todos", "text": "", "type": "message"},
            headers={"User": "Alice"},
        )
        assert response.status_code == 422

    def test_delete_by_non_owner_returns_401(self, api_client, message_id):
        response = api_client.delete(f"/messages/{message_id}", headers={"User": "Bruno"})
        assert response.status_code == 401

    def test_delete_by_owner(self, api_client, message_id):
        response = api_client.delete(f"/messages/{message_id}", headers={"User": "Alice"})
        assert response.status_code == 200

        listing = api_client.get("/messages", headers={"User": "Alice"}).json()
        assert message_id not in [m["id"] for m in listing]

        again = api_client.delete(f"/messages/{message_id}", headers={"User": "Alice"})
        assert again.status_code == 404


class TestInternalErrors:

    def test_store_failure_is_opaque_500(self):
        config = AppConfig(
            store=StoreSettings(path=":memory:"),
            presence=PresenceSettings(reaper_enabled=False),
        )
        app = create_app(config)
        with TestClient(app, raise_server_exceptions=False) as client:
            def broken_list():
                raise RuntimeError("disk on fire at /var/lib/secret")

            app.state.registry.list = broken_list
            response = client.get("/participants")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "secret" not in response.text
