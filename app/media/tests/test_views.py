"""
Tests for the upload API.

These tests verify:
- POST /api/upload stores allowed files and rejects everything else
- Uploads with conversationId post an image or file message
- File info, deletion and serving under /uploads/
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from chat.models import Message, MessageType
from chat.realtime import Room
from chat.services import RealtimeEvent
from chat.tests.factories import BusinessFactory, ConversationFactory
from chat.tests.helpers import published_events
from media.tests.conftest import zip_bytes

UPLOAD_URL = "/api/upload"


@pytest.fixture
def conversation(db):
    return ConversationFactory(business=BusinessFactory(id="acme"), customer_name="Alice")


def _stored_files(upload_dir):
    return sorted(path.name for path in upload_dir.iterdir())


class TestUpload:
    def test_stores_pdf(self, api_client, upload_dir, sample_pdf):
        response = api_client.post(UPLOAD_URL, {"file": sample_pdf}, format="multipart")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "File uploaded successfully"
        data = body["data"]
        assert data["originalName"] == "invoice.pdf"
        assert data["mimetype"] == "application/pdf"
        assert data["isImage"] is False
        assert data["url"] == f"/uploads/{data['filename']}"
        assert "message" not in data
        assert _stored_files(upload_dir) == [data["filename"]]

    def test_rejects_disallowed_type(self, api_client, upload_dir, sample_zip):
        response = api_client.post(UPLOAD_URL, {"file": sample_zip}, format="multipart")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "INVALID_FILE_TYPE"
        assert _stored_files(upload_dir) == []

    @pytest.mark.parametrize(
        ("name", "content_type"),
        [("archive.zip", "text/plain"), ("report.pdf", "application/octet-stream")],
    )
    def test_rejects_archive_under_allowed_label(self, api_client, upload_dir, name, content_type):
        upload = SimpleUploadedFile(name, zip_bytes(), content_type=content_type)

        response = api_client.post(UPLOAD_URL, {"file": upload}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_FILE_TYPE"
        assert _stored_files(upload_dir) == []

    def test_rejects_oversized_file(self, api_client, settings, upload_dir):
        settings.UPLOAD_MAX_SIZE = 16
        upload = SimpleUploadedFile("notes.txt", b"x" * 32, content_type="text/plain")

        response = api_client.post(UPLOAD_URL, {"file": upload}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "FILE_TOO_LARGE"
        assert _stored_files(upload_dir) == []

    def test_rejects_empty_file(self, api_client, empty_file):
        response = api_client.post(UPLOAD_URL, {"file": empty_file}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "EMPTY_FILE"

    def test_rejects_disguised_image(self, api_client, upload_dir, fake_png):
        response = api_client.post(UPLOAD_URL, {"file": fake_png}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_IMAGE"
        assert _stored_files(upload_dir) == []

    def test_requires_a_file(self, api_client):
        response = api_client.post(UPLOAD_URL, {}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestUploadIntoConversation:
    def test_image_becomes_image_message(self, api_client, conversation, sample_png):
        with patch.object(Room, "publish", autospec=True) as publish:
            response = api_client.post(
                UPLOAD_URL,
                {
                    "file": sample_png,
                    "conversationId": str(conversation.id),
                    "senderType": "customer",
                    "senderName": "Alice",
                },
                format="multipart",
            )

        assert response.status_code == 201, response.json()
        data = response.json()["data"]
        message = data["message"]
        assert message["messageType"] == MessageType.IMAGE
        assert message["fileUrl"] == data["url"]
        assert message["fileName"] == "photo.png"
        assert message["content"] is None
        assert Message.objects.get(pk=message["id"]).conversation_id == conversation.id

        events = [event for _, event, _, _ in published_events(publish)]
        assert RealtimeEvent.NEW_MESSAGE in events

    def test_document_becomes_file_message(self, api_client, conversation, sample_pdf):
        response = api_client.post(
            UPLOAD_URL,
            {
                "file": sample_pdf,
                "conversationId": str(conversation.id),
                "senderType": "business",
                "senderId": "Agent",
            },
            format="multipart",
        )

        assert response.status_code == 201, response.json()
        message = response.json()["data"]["message"]
        assert message["messageType"] == MessageType.FILE
        assert message["senderName"] == "Agent"

    def test_missing_conversation_removes_stored_file(
        self, api_client, db, upload_dir, sample_pdf
    ):
        response = api_client.post(
            UPLOAD_URL,
            {
                "file": sample_pdf,
                "conversationId": "9999",
                "senderType": "customer",
                "senderName": "Alice",
            },
            format="multipart",
        )

        assert response.status_code == 404
        assert _stored_files(upload_dir) == []
        assert not Message.objects.exists()

    def test_sender_required_with_conversation(self, api_client, conversation, sample_pdf):
        response = api_client.post(
            UPLOAD_URL,
            {"file": sample_pdf, "conversationId": str(conversation.id)},
            format="multipart",
        )

        assert response.status_code == 400
        details = response.json()["details"]
        assert "senderType" in details
        assert "senderName" in details


class TestUploadDetail:
    def _upload(self, api_client, upload):
        response = api_client.post(UPLOAD_URL, {"file": upload}, format="multipart")
        assert response.status_code == 201
        return response.json()["data"]["filename"]

    def test_info(self, api_client, sample_text):
        filename = self._upload(api_client, sample_text)

        response = api_client.get(f"{UPLOAD_URL}/{filename}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["filename"] == filename
        assert data["mimetype"] == "text/plain"
        assert data["sizeFormatted"].endswith("Bytes")

    def test_info_missing_file(self, api_client):
        response = api_client.get(f"{UPLOAD_URL}/1700000000000_abcdef.pdf")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_info_rejects_malformed_name(self, api_client):
        response = api_client.get(f"{UPLOAD_URL}/settings.py")

        assert response.status_code == 400

    def test_delete(self, api_client, upload_dir, sample_text):
        filename = self._upload(api_client, sample_text)

        response = api_client.delete(f"{UPLOAD_URL}/{filename}")

        assert response.status_code == 200
        assert response.json()["data"] == {"filename": filename, "deleted": True}
        assert _stored_files(upload_dir) == []
        assert api_client.delete(f"{UPLOAD_URL}/{filename}").status_code == 404


class TestServeUpload:
    def test_serves_stored_file(self, client, upload_dir):
        (upload_dir / "1700000000000_abcdef.txt").write_bytes(b"hello")

        response = client.get("/uploads/1700000000000_abcdef.txt")

        assert response.status_code == 200
        assert b"".join(response.streaming_content) == b"hello"

    @pytest.mark.parametrize("name", ["1700000000000_abcdef.txt", "notes.txt"])
    def test_unknown_files_are_404(self, client, name):
        assert client.get(f"/uploads/{name}").status_code == 404
