import asyncio
import logging

import pytest

from user_crud_api.app.core.middleware import RequestLoggingMiddleware, StatusRecorder

ACCESS_LOGGER = "user_crud_api.access"


def access_records(caplog):
    return [record for record in caplog.records if record.name == ACCESS_LOGGER]


def test_logs_method_path_and_status(client, caplog):
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        client.get("/users/abc", headers={"User-Agent": "pytest-agent"})

    records = access_records(caplog)
    assert len(records) == 1
    record = records[0]
    assert record.method == "GET"
    assert record.uri == "/users/abc"
    assert record.status_code == 400
    assert record.user_agent == "pytest-agent"
    assert record.duration_ms >= 0


def test_logs_query_string_and_success_status(client, caplog):
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        resp = client.post("/users?source=test", json={"name": "Ann", "age": 30, "sex": "F"})

    assert resp.status_code == 201
    record = access_records(caplog)[-1]
    assert record.uri == "/users?source=test"
    assert record.status_code == 201


def test_does_not_change_response(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json"


def test_status_recorder_keeps_first_status():
    sent = []

    async def send(message):
        sent.append(message)

    recorder = StatusRecorder(send)

    async def run():
        await recorder({"type": "http.response.start", "status": 404, "headers": []})
        await recorder({"type": "http.response.body", "body": b""})
        await recorder({"type": "http.response.start", "status": 500, "headers": []})

    asyncio.run(run())
    assert recorder.status_code == 404
    assert len(sent) == 3


def test_unhandled_exception_is_logged_as_500(caplog):
    async def failing_app(scope, receive, send):
        raise RuntimeError("boom")

    middleware = RequestLoggingMiddleware(failing_app)
    scope = {"type": "http", "method": "GET", "path": "/x", "headers": [], "client": ("1.2.3.4", 5)}

    async def receive():
        return {"type": "http.request"}

    async def send(message):
        pass

    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        with pytest.raises(RuntimeError):
            asyncio.run(middleware(scope, receive, send))

    record = access_records(caplog)[-1]
    assert record.status_code == 500
    assert record.remote_addr == "1.2.3.4:5"


def test_non_http_scopes_pass_through(caplog):
    seen = []

    async def app(scope, receive, send):
        seen.append(scope["type"])

    middleware = RequestLoggingMiddleware(app)
    with caplog.at_level(logging.INFO, logger=ACCESS_LOGGER):
        asyncio.run(middleware({"type": "lifespan"}, None, None))

    assert seen == ["lifespan"]
    assert access_records(caplog) == []
