"""
API views for attachment uploads.

Provides:
- UploadView: Store a file, optionally posting it into a conversation
- UploadDetailView: File info and deletion
- serve_upload: Serve stored files at /uploads/<filename>
"""

from __future__ import annotations

from asgiref.sync import async_to_sync
from django.http import Http404
from django.views.static import serve
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.views import APIView

from chat.constants import MESSAGE_CONFIG
from chat.models import MessageType
from chat.serializers import message_payload
from chat.services import MessageService
from chat.store import MessageDraft
from chat.validators import parse_conversation_id
from core.exceptions import FileUploadError, ValidationError
from core.responses import SuccessMessage, envelope_response
from media.constants import upload_root
from media.serializers import UploadSerializer
from media.storage import UploadStorage
from media.validators import UploadValidator, validate_stored_filename


class UploadView(APIView):
    """
    Handle attachment uploads.

    POST /api/upload
        Upload a file. With conversationId, senderType and senderName (or
        senderId) the file is also sent into the conversation as an image or
        file message.

    Request:
        Content-Type: multipart/form-data
        - file (required): The file to upload
        - conversationId (optional): Conversation to post the file into
        - senderType, senderName|senderId: Required with conversationId

    Response:
        201 Created: File stored (and message sent)
        400 Bad Request: Invalid type, too large, empty, bad form
        404 Not Found: Conversation does not exist
    """

    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        operation_id="upload_file",
        summary="Upload attachment",
        description=(
            "Stores the file under a generated name. Accepted types: JPEG, PNG, "
            "GIF, PDF, plain text, CSV and Word documents, up to the configured "
            "size limit."
        ),
        request=UploadSerializer,
        responses={
            201: OpenApiResponse(description="File uploaded successfully"),
            400: OpenApiResponse(description="Invalid file or form"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Upload"],
    )
    def post(self, request):
        serializer = UploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        uploaded = data["file"]

        conversation_id = None
        if data["conversationId"]:
            conversation_id = parse_conversation_id(data["conversationId"])

        result = UploadValidator().validate(uploaded, uploaded.name, uploaded.content_type)
        if not result.is_valid:
            raise FileUploadError(
                result.error,
                error_code=result.error_code,
                details={"mimetype": result.mime_type} if result.mime_type else None,
            )

        storage = UploadStorage()
        stored = storage.save(uploaded, result.mime_type)
        response_data = stored.to_dict()

        if conversation_id is not None:
            draft = MessageDraft(
                conversation_id=conversation_id,
                sender_type=data["senderType"],
                sender_name=data["senderName"],
                message_type=MessageType.IMAGE if stored.is_image else MessageType.FILE,
                file_url=stored.url,
                file_name=stored.original_name[: MESSAGE_CONFIG.MAX_FILE_NAME_LENGTH],
            )
            try:
                message = async_to_sync(MessageService.send_message)(draft)
            except Exception:
                storage.discard(stored.filename)
                raise
            response_data["message"] = message_payload(message)

        return envelope_response(
            request,
            response_data,
            SuccessMessage.FILE_UPLOADED,
            status=status.HTTP_201_CREATED,
        )


class UploadDetailView(APIView):
    """
    Stored file info and deletion.

    GET    /api/upload/{filename}
    DELETE /api/upload/{filename}
    """

    @extend_schema(
        operation_id="get_upload_info",
        summary="Uploaded file info",
        responses={
            200: OpenApiResponse(description="File info"),
            404: OpenApiResponse(description="File not found"),
        },
        tags=["Upload"],
    )
    def get(self, request, filename: str):
        return envelope_response(request, UploadStorage().info(filename))

    @extend_schema(
        operation_id="delete_upload",
        summary="Delete uploaded file",
        responses={
            200: OpenApiResponse(description="File deleted"),
            404: OpenApiResponse(description="File not found"),
        },
        tags=["Upload"],
    )
    def delete(self, request, filename: str):
        UploadStorage().delete(filename)
        return envelope_response(
            request,
            {"filename": filename, "deleted": True},
            SuccessMessage.DELETED,
        )


def serve_upload(request, filename: str):
    """Serve a stored upload; unknown or malformed names are 404s."""
    try:
        validate_stored_filename(filename)
    except ValidationError:
        raise Http404("File not found") from None
    return serve(request, filename, document_root=str(upload_root()))
