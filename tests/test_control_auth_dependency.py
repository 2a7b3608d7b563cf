# tests/test_control_auth_dependency.py
from http import HTTPStatus

from inyourface.api.dependencies import control_auth as auth_module


class DummySettingsProd:
    APP_ENV = "prod"
    CONTROL_API_KEY = "supersecret"


class DummySettingsProdUnconfigured:
    APP_ENV = "prod"
    CONTROL_API_KEY = None


class DummySettingsLocalWithKey:
    APP_ENV = "local"
    CONTROL_API_KEY = "localkey"


def test_control_endpoint_401_when_key_missing_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/alert/dismiss")
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert "invalid or missing" in resp.json()["detail"].lower()


def test_control_endpoint_401_when_key_wrong_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/agenda/refresh", headers={"X-Control-Api-Key": "wrong-key"})
    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_control_endpoint_200_when_key_correct_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/alert/dismiss", headers={"X-Control-Api-Key": "supersecret"})
    assert resp.status_code == HTTPStatus.OK


def test_control_endpoint_500_when_prod_has_no_key(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProdUnconfigured())

    resp = client.post("/alert/dismiss")
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR


def test_local_env_enforces_key_only_when_configured(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsLocalWithKey())

    assert client.post("/alert/dismiss").status_code == HTTPStatus.UNAUTHORIZED
    assert (
        client.post("/alert/dismiss", headers={"X-Control-Api-Key": "localkey"}).status_code
        == HTTPStatus.OK
    )


def test_read_endpoints_are_open(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    assert client.get("/agenda").status_code == HTTPStatus.OK
    assert client.get("/alert").status_code == HTTPStatus.OK


class DummySettingsTestNoKey:
    APP_ENV = "test"
    CONTROL_API_KEY = None


def test_open_environment_without_key_needs_no_header(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsTestNoKey())

    resp = client.post("/alert/dismiss", headers={"X-Control-Api-Key": "anything"})
    assert resp.status_code == HTTPStatus.OK
    assert client.post("/alert/dismiss").status_code == HTTPStatus.OK
