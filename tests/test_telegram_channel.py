"""Tests for the Telegram Bot API channel, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from psychodiag.channel.base import Button, ChannelError
from psychodiag.channel.telegram import TelegramChannel, keyboard_markup

BASE_URL = "https://api.telegram.test/botTOKEN/"


def make_channel(handler) -> tuple[TelegramChannel, list[httpx.Request]]:
    calls: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request)

    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(recording))
    return TelegramChannel("TOKEN", client=client), calls


def ok(result=True):
    return lambda _request: httpx.Response(200, json={"ok": True, "result": result})


def test_send_message_with_keyboard():
    channel, calls = make_channel(ok({"message_id": 77}))
    keyboard = [[Button("Yes", "mood-test-abcdef01-0-0")]]

    message_id = channel.send_message(7, "<b>Hi</b>", html=True, keyboard=keyboard)

    assert message_id == 77
    assert calls[0].url.path == "/botTOKEN/sendMessage"
    assert json.loads(calls[0].content) == {
        "chat_id": 7,
        "text": "<b>Hi</b>",
        "parse_mode": "HTML",
        "reply_markup": {
            "inline_keyboard": [[{"text": "Yes", "callback_data": "mood-test-abcdef01-0-0"}]]
        },
    }


def test_plain_message_has_no_parse_mode():
    channel, calls = make_channel(ok({"message_id": 1}))
    channel.send_message(7, "plain")
    assert json.loads(calls[0].content) == {"chat_id": 7, "text": "plain"}


def test_edit_delete_and_answer_methods():
    channel, calls = make_channel(ok())
    channel.edit_keyboard(7, 77, [])
    channel.delete_message(7, 77)
    channel.answer_callback("cb1")
    channel.set_commands([("start", "Run")])

    assert [c.url.path.rsplit("/", 1)[-1] for c in calls] == [
        "editMessageReplyMarkup",
        "deleteMessage",
        "answerCallbackQuery",
        "setMyCommands",
    ]
    assert json.loads(calls[0].content)["reply_markup"] == {"inline_keyboard": []}
    assert json.loads(calls[3].content) == {"commands": [{"command": "start", "description": "Run"}]}


def test_api_rejection_raises_channel_error():
    channel, _ = make_channel(
        lambda _r: httpx.Response(400, json={"ok": False, "description": "message to delete not found"})
    )
    with pytest.raises(ChannelError, match="not found"):
        channel.delete_message(7, 77)


def test_transport_error_raises_channel_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    channel, _ = make_channel(boom)
    with pytest.raises(ChannelError):
        channel.send_message(7, "hi")


def test_keyboard_markup_rows():
    markup = keyboard_markup([[Button("a", "1")], [Button("b", "2"), Button("c", "3")]])
    assert [len(row) for row in markup["inline_keyboard"]] == [1, 2]


def test_close_shuts_http_client():
    channel, _calls = make_channel(ok())
    channel.close()

    assert channel.client.is_closed
