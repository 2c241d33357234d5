"""
Tests for the REST client.

Requests are answered by httpx.MockTransport, so these tests check the
request each method builds and how envelopes are unwrapped.
"""

import json

import httpx
import pytest
from asgiref.sync import async_to_sync

from client.api import APIError, ChatAPIClient

BASE_URL = "http://testserver/api"


def _success(data, status=200):
    return httpx.Response(
        status,
        json={
            "success": True,
            "statusCode": status,
            "message": "Data retrieved successfully",
            "data": data,
            "timestamp": "2024-01-01T12:00:00Z",
            "requestId": "req-1",
        },
    )


def _failure(status, error, message, details=None):
    return httpx.Response(
        status,
        json={
            "success": False,
            "statusCode": status,
            "error": error,
            "message": message,
            "details": details,
            "timestamp": "2024-01-01T12:00:00Z",
            "requestId": "req-2",
        },
    )


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, request):
        request.read()
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def last(self):
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def _call(recorder, method, *args, **kwargs):
    async def scenario():
        async with ChatAPIClient(BASE_URL, transport=httpx.MockTransport(recorder)) as api:
            return await getattr(api, method)(*args, **kwargs)

    return async_to_sync(scenario)()


class TestEnvelopes:
    def test_returns_data(self):
        recorder = Recorder(_success([{"id": 1}]))

        assert _call(recorder, "get_conversations", "tech-store") == [{"id": 1}]
        assert recorder.last.url.path == "/api/conversations/business/tech-store"

    def test_error_envelope_raises(self):
        recorder = Recorder(
            _failure(400, "VALIDATION_ERROR", "Validation failed", {"content": ["Too long."]})
        )

        with pytest.raises(APIError) as exc_info:
            _call(recorder, "get_conversation", 7)

        error = exc_info.value
        assert error.status_code == 400
        assert error.error == "VALIDATION_ERROR"
        assert error.message == "Validation failed"
        assert error.details == {"content": ["Too long."]}
        assert error.request_id == "req-2"

    def test_non_json_response_raises(self):
        recorder = Recorder(httpx.Response(502, text="Bad gateway"))

        with pytest.raises(APIError) as exc_info:
            _call(recorder, "health")

        assert exc_info.value.status_code == 502
        assert exc_info.value.error == "INVALID_RESPONSE"

    def test_transport_failure_is_network_error(self):
        recorder = Recorder(httpx.ConnectError("connection refused"))

        with pytest.raises(APIError) as exc_info:
            _call(recorder, "health")

        assert exc_info.value.status_code == 0
        assert exc_info.value.error == "NETWORK_ERROR"


class TestRequests:
    def test_search_is_sent_as_query(self):
        recorder = Recorder(_success([]))

        _call(recorder, "get_conversations", "tech-store", search="john")

        assert recorder.last.url.params["search"] == "john"

    def test_get_messages_paginates(self):
        recorder = Recorder(_success({"messages": []}))

        _call(recorder, "get_messages", 3, limit=20, offset=40)

        assert recorder.last.url.path == "/api/conversations/3/messages"
        assert recorder.last.url.params["limit"] == "20"
        assert recorder.last.url.params["offset"] == "40"

    def test_send_message_omits_unset_fields(self):
        recorder = Recorder(_success({"id": 9}, status=201))

        result = _call(
            recorder,
            "send_message",
            3,
            sender_type="business",
            sender_name="Agent",
            content="On its way",
        )

        assert result == {"id": 9}
        assert recorder.last.method == "POST"
        assert recorder.last_json() == {
            "senderType": "business",
            "senderName": "Agent",
            "content": "On its way",
        }

    def test_create_conversation(self):
        recorder = Recorder(_success({"id": 4}, status=201))

        _call(recorder, "create_conversation", "tech-store", "Dana", "+15550100")

        assert recorder.last.url.path == "/api/conversations"
        assert recorder.last_json() == {
            "businessId": "tech-store",
            "customerName": "Dana",
            "customerPhone": "+15550100",
        }

    @pytest.mark.parametrize(
        ("method", "args", "path", "body"),
        [
            (
                "update_conversation_status",
                (3, "resolved"),
                "/api/conversations/3/status",
                {"status": "resolved"},
            ),
            ("update_message_status", (8, "read"), "/api/messages/8/status", {"status": "read"}),
            (
                "update_business_status",
                ("acme", "busy"),
                "/api/business/acme/status",
                {"status": "busy"},
            ),
        ],
    )
    def test_status_updates_use_patch(self, method, args, path, body):
        recorder = Recorder(_success({}))

        _call(recorder, method, *args)

        assert recorder.last.method == "PATCH"
        assert recorder.last.url.path == path
        assert recorder.last_json() == body

    def test_update_business_sends_only_given_fields(self):
        recorder = Recorder(_success({}))

        _call(recorder, "update_business", "acme", logo_url="/new.png")

        assert recorder.last_json() == {"logoUrl": "/new.png"}

    def test_upload_file_is_multipart(self):
        recorder = Recorder(_success({"filename": "1_ab.png"}, status=201))

        _call(
            recorder,
            "upload_file",
            "photo.png",
            b"\x89PNG",
            "image/png",
            conversation_id=3,
            sender_type="customer",
            sender_name="Alice",
        )

        request = recorder.last
        assert request.url.path == "/api/upload"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'filename="photo.png"' in request.content
        assert b'name="conversationId"' in request.content

    @pytest.mark.parametrize(
        ("method", "args", "http_method", "path"),
        [
            ("get_business_stats", ("acme",), "GET", "/api/business/acme/stats"),
            ("get_business_profile", ("acme",), "GET", "/api/business/acme/profile"),
            ("mark_conversation_read", (3,), "POST", "/api/conversations/3/read"),
            ("get_upload_info", ("1_ab.pdf",), "GET", "/api/upload/1_ab.pdf"),
            ("delete_upload", ("1_ab.pdf",), "DELETE", "/api/upload/1_ab.pdf"),
        ],
    )
    def test_simple_routes(self, method, args, http_method, path):
        recorder = Recorder(_success({}))

        _call(recorder, method, *args)

        assert recorder.last.method == http_method
        assert recorder.last.url.path == path
