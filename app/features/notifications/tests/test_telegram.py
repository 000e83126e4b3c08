"""Tests for the Telegram notifier (HTTP mocked with httpx.MockTransport)."""

import json
from datetime import datetime

import httpx
import pytest

from app.core.config import Settings
from app.features.notifications.telegram import TelegramNotifier


def make_settings(**overrides) -> Settings:
    values = {
        "telegram_bot_token": "123:test-token",
        "telegram_boss_chat_id": "-100",
        "telegram_employee_chat_id": "-200",
        "telegram_api_base": "https://telegram.test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class Recorder:
    """Collects sendMessage payloads and answers with a fixed response."""

    def __init__(self, status_code: int = 200, body: dict | None = None) -> None:
        self.status_code = status_code
        self.body = body if body is not None else {"ok": True, "result": {}}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.mark.asyncio
async def test_send_message_posts_html_payload():
    recorder = Recorder()
    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(recorder))

    sent = await notifier.send_message("-100", "<b>hi</b>")
    await notifier.close()

    assert sent is True
    assert recorder.requests[0].url.path == "/bot123:test-token/sendMessage"
    assert recorder.payloads[0] == {"chat_id": "-100", "text": "<b>hi</b>", "parse_mode": "HTML"}


@pytest.mark.asyncio
async def test_send_message_disabled_without_token():
    recorder = Recorder()
    notifier = TelegramNotifier(
        make_settings(telegram_bot_token=""), transport=httpx.MockTransport(recorder)
    )

    assert await notifier.send_message("-100", "hi") is False
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_send_message_rejected_by_api():
    recorder = Recorder(body={"ok": False, "description": "chat not found"})
    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(recorder))

    assert await notifier.send_message("-100", "hi") is False
    await notifier.close()


@pytest.mark.asyncio
async def test_send_message_http_error_is_swallowed():
    recorder = Recorder(status_code=502, body={"ok": False})
    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(recorder))

    assert await notifier.send_message("-100", "hi") is False
    await notifier.close()


@pytest.mark.asyncio
async def test_send_message_transport_error_is_swallowed():
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(fail))

    assert await notifier.send_message("-100", "hi") is False
    await notifier.close()


@pytest.mark.asyncio
async def test_broadcast_sends_to_both_groups():
    recorder = Recorder()
    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(recorder))

    result = await notifier.broadcast("boss text", "employee text")
    await notifier.close()

    assert result == {"boss": True, "employee": True}
    sent = {p["chat_id"]: p["text"] for p in recorder.payloads}
    assert sent == {"-100": "boss text", "-200": "employee text"}


@pytest.mark.asyncio
async def test_broadcast_skips_missing_employee_chat():
    recorder = Recorder()
    notifier = TelegramNotifier(
        make_settings(telegram_employee_chat_id=""), transport=httpx.MockTransport(recorder)
    )

    result = await notifier.broadcast("boss text", "employee text")
    await notifier.close()

    assert result == {"boss": True, "employee": False}
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_notify_login_goes_to_boss_only():
    recorder = Recorder()
    notifier = TelegramNotifier(make_settings(), transport=httpx.MockTransport(recorder))

    result = await notifier.notify_login(
        name="Alice", username="alice", role="employee", at=datetime(2024, 1, 15, 9, 0)
    )
    await notifier.close()

    assert result == {"boss": True}
    assert recorder.payloads[0]["chat_id"] == "-100"
