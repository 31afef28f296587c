import pytest
import requests

from backend.api.chat import ChatRelay, format_reply
from backend.api.errors import UpstreamError, ValidationError
from backend.api.main import get_chat_relay
from conftest import auth_header, register

WEBHOOK = "https://hooks.example.test/webhook/chat"


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=""):
        self.status_code = status_code
        self._json = json_data
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._json is None:
            raise ValueError("not json")
        return self._json


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


@pytest.mark.parametrize(
    "data, expected",
    [
        ([{"output": "Hola viajero"}], "Hola viajero"),
        ({"output": "Una puerta"}, "Una puerta"),
        ("texto plano", "texto plano"),
        ({"other": 1}, '{"other": 1}'),
        ([], "[]"),
    ],
)
def test_format_reply(data, expected):
    assert format_reply(data) == expected


def test_send_posts_message_and_user_id():
    session = FakeSession(FakeResponse(json_data=[{"output": "ok"}]))
    relay = ChatRelay(WEBHOOK, timeout=5, session=session)
    assert relay.send("hola", "user-1") == "ok"
    assert session.calls == [{"url": WEBHOOK, "json": {"message": "hola", "userId": "user-1"}, "timeout": 5}]


def test_send_accepts_plain_text_reply():
    relay = ChatRelay(WEBHOOK, session=FakeSession(FakeResponse(text="just words")))
    assert relay.send("hola", "user-1") == "just words"


def test_send_rejects_blank_message():
    session = FakeSession(FakeResponse(json_data={"output": "x"}))
    with pytest.raises(ValidationError):
        ChatRelay(WEBHOOK, session=session).send("   ", "user-1")
    assert session.calls == []


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(FakeResponse(status_code=500, json_data={"output": "x"})),
        FakeSession(FakeResponse(text="")),
    ],
)
def test_upstream_failures(session):
    with pytest.raises(UpstreamError):
        ChatRelay(WEBHOOK, session=session).send("hola", "user-1")


def test_chat_route_forwards_authenticated_user(app, client):
    session = FakeSession(FakeResponse(json_data={"output": "Bienvenido"}))
    app.dependency_overrides[get_chat_relay] = lambda: ChatRelay(WEBHOOK, session=session)
    try:
        user = register(client)
        res = client.post("/chat", json={"message": "hola"}, headers=auth_header(user["token"]))
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 200
    assert res.json() == {"reply": "Bienvenido"}
    assert session.calls[0]["json"] == {"message": "hola", "userId": user["id"]}


def test_chat_route_maps_upstream_failure(app, client):
    session = FakeSession(error=requests.ConnectionError("down"))
    app.dependency_overrides[get_chat_relay] = lambda: ChatRelay(WEBHOOK, session=session)
    try:
        token = register(client)["token"]
        res = client.post("/chat", json={"message": "hola"}, headers=auth_header(token))
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 502
    assert res.json()["error"] == "UpstreamError"


def test_chat_route_without_webhook_configured(client):
    token = register(client)["token"]
    res = client.post("/chat", json={"message": "hola"}, headers=auth_header(token))
    assert res.status_code == 503
    assert res.json()["error"] == "ChatUnavailable"


def test_chat_route_requires_auth(client):
    assert client.post("/chat", json={"message": "hola"}).status_code == 401
