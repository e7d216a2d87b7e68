"""ChatApiClient のテスト（サーバー応答の異常系）"""

import asyncio
from unittest.mock import Mock

import pytest
import requests

from src.chat_client.api_client import ApiRequestError, ChatApiClient
from src.chat_client.models import SendStatus
from src.chat_client.notifications import NotificationCenter
from src.chat_client.pipeline import ChatPipeline


def make_response(status_code=200, json_data=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Error"
    response.text = ""
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


def make_client(*responses) -> ChatApiClient:
    session = Mock(spec=requests.Session)
    session.request.side_effect = list(responses)
    return ChatApiClient(base_url="http://chat.test", session=session)


class TestChatApiClient:
    """ChatApiClientのレスポンス処理"""

    def test_create_session(self) -> None:
        client = make_client(
            make_response(json_data={"id": "s1", "title": "Hello", "createdAt": "2024-01-01"})
        )

        session = client.create_session("Hello")

        assert session.id == "s1"
        args, kwargs = client.session.request.call_args
        assert args == ("POST", "http://chat.test/api/chat-sessions")
        assert kwargs["json"] == {"title": "Hello"}

    def test_error_body_message(self) -> None:
        client = make_client(make_response(404, json_data={"error": "Chat session not found"}))

        with pytest.raises(ApiRequestError) as exc_info:
            client.get_session("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Chat session not found"

    def test_non_json_body(self) -> None:
        client = make_client(make_response(json_error=ValueError("Expecting value")))

        with pytest.raises(ApiRequestError, match="Invalid response from server"):
            client.list_sessions()

    @pytest.mark.parametrize(
        "body",
        [
            [{"id": 1, "role": "user", "content": "hi"}],
            [{"id": 1, "chatSessionId": "s1", "role": "robot", "content": "hi"}],
            {"messages": []},
            ["not a message"],
        ],
    )
    def test_malformed_messages(self, body) -> None:
        client = make_client(make_response(json_data=body))

        with pytest.raises(ApiRequestError, match="Invalid response from server"):
            client.list_messages("s1")

    def test_timeout(self) -> None:
        client = make_client(requests.exceptions.Timeout("slow"))

        with pytest.raises(ApiRequestError) as exc_info:
            client.list_sessions()

        assert exc_info.value.status_code == 504


class TestPipelineWithBrokenServer:
    """壊れた応答でも送信結果は値として返り、通知が出る"""

    def test_invalid_session_body_fails_send(self) -> None:
        notifier = NotificationCenter()
        client = make_client(make_response(json_error=ValueError("Expecting value")))
        pipeline = ChatPipeline(client, notifier=notifier)

        result = asyncio.run(pipeline.send("hello"))

        assert result.status is SendStatus.FAILED
        assert pipeline.view.entries == []
        notifications = notifier.drain()
        assert notifications[0].message == "Failed to create chat: Invalid response from server"
        assert not pipeline.is_sending()

    def test_invalid_saved_messages_roll_back(self) -> None:
        notifier = NotificationCenter()
        client = make_client(
            make_response(json_data={"id": "s1", "title": "hello", "createdAt": "2024-01-01"}),
            make_response(json_data={"message": "Hi there"}),
            make_response(json_data=[{"unexpected": True}]),
        )
        pipeline = ChatPipeline(client, notifier=notifier)

        result = asyncio.run(pipeline.send("hello"))

        assert result.status is SendStatus.FAILED
        assert result.error == "Invalid response from server"
        assert pipeline.view.entries == []
        assert not pipeline.view.has_pending()
        assert notifier.drain()[0].variant == "destructive"
