from __future__ import annotations

import pytest

from ussd_menu.api.app import create_app
from ussd_menu.config.settings import Settings, get_settings


@pytest.fixture()
def gateway_args() -> dict[str, str]:
    return {
        "phoneNumber": "+2547123456789",
        "serviceCode": "111",
        "sessionId": "sfdsfdsafdsf",
        "text": "",
    }


class DictSessionStore:
    """Backend de sessão em dict, nas convenções callback e async."""

    def __init__(self) -> None:
        self.sessions: dict[str, dict] = {}

    def callback_config(self) -> dict:
        def start(session_id, cb):
            self.sessions.setdefault(session_id, {})
            cb()

        def end(session_id, cb):
            self.sessions.pop(session_id, None)
            cb()

        def get(session_id, key, cb):
            cb(None, self.sessions[session_id].get(key))

        def set_(session_id, key, value, cb):
            self.sessions[session_id][key] = value
            cb()

        return {"start": start, "end": end, "get": get, "set": set_}

    def async_config(self) -> dict:
        async def start(session_id):
            self.sessions.setdefault(session_id, {})

        async def end(session_id):
            self.sessions.pop(session_id, None)

        async def get(session_id, key):
            return self.sessions[session_id].get(key)

        async def set_(session_id, key, value):
            self.sessions[session_id][key] = value

        return {"start": start, "end": end, "get": get, "set": set_}


@pytest.fixture()
def dict_store() -> DictSessionStore:
    return DictSessionStore()


@pytest.fixture()
def client_factory(monkeypatch: pytest.MonkeyPatch):
    from fastapi.testclient import TestClient

    get_settings.cache_clear()
    clients = []

    def build(menu_factory, **settings_overrides):
        settings = Settings(**settings_overrides)
        app = create_app(menu_factory, settings=settings)
        test_client = TestClient(app)
        clients.append(test_client)
        return test_client

    yield build

    for test_client in clients:
        test_client.close()
    get_settings.cache_clear()
