"""
API views for chat.

This module provides REST API endpoints for the chat system. Every response
is an envelope (see core.responses); every failure is raised as a
core.exceptions error and rendered by the DRF exception handler.

URL Structure (prefixed with /api/):
    conversations                              POST
    conversations/business/{businessId}        GET  (?search=)
    conversations/{id}                         GET
    conversations/{id}/messages                GET  (?limit=&offset=), POST
    conversations/{id}/status                  PATCH
    conversations/{id}/read                    POST
    messages/{id}/status                       PATCH
    business/{businessId}                      GET, PATCH
    business/{businessId}/status               PATCH
    business/{businessId}/stats                GET
    business/{businessId}/profile              GET

Design Decisions:
    - Path parameters are validated before any store call
    - Request bodies go through input serializers once, at the boundary
    - Store and service coroutines are driven with async_to_sync
"""

from __future__ import annotations

from asgiref.sync import async_to_sync
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.views import APIView

from chat.models import Business
from chat.serializers import (
    BusinessSerializer,
    BusinessStatsSerializer,
    BusinessStatusSerializer,
    BusinessUpdateSerializer,
    ConversationCreateSerializer,
    ConversationSearchSerializer,
    ConversationSerializer,
    ConversationStatusSerializer,
    MessageCreateSerializer,
    MessageListQuerySerializer,
    MessageSerializer,
    MessageStatusSerializer,
)
from chat.services import ConversationService, MessageService
from chat.store import ChatStore
from chat.validators import parse_business_id, parse_conversation_id, parse_message_id
from core.exceptions import NotFoundError
from core.responses import SuccessMessage, envelope_response

ENVELOPE = OpenApiResponse(description="Success envelope")
ERROR_ENVELOPE = OpenApiResponse(description="Error envelope")


# =============================================================================
# Lookup Helpers
# =============================================================================


def _require_business(business_id: str) -> Business:
    business = async_to_sync(ChatStore.get_business)(business_id)
    if business is None:
        raise NotFoundError("Business not found", details={"businessId": business_id})
    return business


def _require_conversation(conversation_id: int):
    conversation = async_to_sync(ChatStore.get_conversation_by_id)(conversation_id)
    if conversation is None:
        raise NotFoundError(
            "Conversation not found",
            details={"conversationId": conversation_id},
        )
    return conversation


# =============================================================================
# Conversation Views
# =============================================================================


class BusinessConversationListView(APIView):
    """
    List a business's conversations, most recent activity first.

    GET /api/conversations/business/{businessId}?search=term
    """

    @extend_schema(
        operation_id="list_business_conversations",
        summary="List conversations for a business",
        tags=["Conversations"],
        parameters=[
            OpenApiParameter(
                name="search",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Case-insensitive customer name filter",
                required=False,
            ),
        ],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, business_id: str):
        business_id = parse_business_id(business_id)
        query = ConversationSearchSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        _require_business(business_id)

        term = query.validated_data["search"].strip()
        if term:
            conversations = async_to_sync(ChatStore.search_conversations)(business_id, term)
        else:
            conversations = async_to_sync(ChatStore.get_conversations)(business_id)

        data = ConversationSerializer(conversations, many=True).data
        return envelope_response(request, data)


class ConversationCreateView(APIView):
    """Start a conversation between a customer and a business."""

    @extend_schema(
        operation_id="create_conversation",
        summary="Start a conversation",
        tags=["Conversations"],
        request=ConversationCreateSerializer,
        responses={201: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def post(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        conversation = async_to_sync(ConversationService.create_conversation)(
            data["businessId"],
            data["customerName"],
            data.get("customerPhone", ""),
        )
        return envelope_response(
            request,
            ConversationSerializer(conversation).data,
            SuccessMessage.CREATED,
            status=status.HTTP_201_CREATED,
        )


class ConversationDetailView(APIView):
    @extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Conversations"],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, conversation_id: str):
        conversation = _require_conversation(parse_conversation_id(conversation_id))
        return envelope_response(request, ConversationSerializer(conversation).data)


class ConversationMessagesView(APIView):
    """
    Message history and sending for one conversation.

    GET  /api/conversations/{id}/messages?limit=50&offset=0
    POST /api/conversations/{id}/messages
    """

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        description=(
            "Returns the most recent `limit` messages (oldest first), skipping "
            "the newest `offset` messages."
        ),
        tags=["Messages"],
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Page size (1-100, default 50)",
                required=False,
            ),
            OpenApiParameter(
                name="offset",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Number of newest messages to skip",
                required=False,
            ),
        ],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, conversation_id: str):
        conversation_id = parse_conversation_id(conversation_id)
        query = MessageListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        limit = query.validated_data["limit"]
        offset = query.validated_data["offset"]

        conversation = _require_conversation(conversation_id)
        messages = async_to_sync(ChatStore.get_messages)(conversation_id, limit, offset)
        total = async_to_sync(ChatStore.count_messages)(conversation_id)

        return envelope_response(
            request,
            {
                "messages": MessageSerializer(messages, many=True).data,
                "conversation": ConversationSerializer(conversation).data,
                "pagination": {"limit": limit, "offset": offset, "total": total},
            },
        )

    @extend_schema(
        operation_id="send_message",
        summary="Send a message",
        description=(
            "Persists the message, publishes `new_message` to the conversation "
            "room and records conversation activity."
        ),
        tags=["Messages"],
        request=MessageCreateSerializer,
        responses={201: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def post(self, request, conversation_id: str):
        conversation_id = parse_conversation_id(conversation_id)
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = async_to_sync(MessageService.send_message)(
            serializer.to_draft(conversation_id)
        )
        return envelope_response(
            request,
            MessageSerializer(message).data,
            SuccessMessage.MESSAGE_SENT,
            status=status.HTTP_201_CREATED,
        )


class ConversationStatusView(APIView):
    @extend_schema(
        operation_id="update_conversation_status",
        summary="Update conversation status",
        tags=["Conversations"],
        request=ConversationStatusSerializer,
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def patch(self, request, conversation_id: str):
        conversation_id = parse_conversation_id(conversation_id)
        serializer = ConversationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conversation = async_to_sync(ConversationService.update_status)(
            conversation_id,
            serializer.validated_data["status"],
        )
        return envelope_response(
            request,
            ConversationSerializer(conversation).data,
            SuccessMessage.UPDATED,
        )


class ConversationReadView(APIView):
    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark customer messages as read",
        tags=["Conversations"],
        request=None,
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def post(self, request, conversation_id: str):
        conversation_id = parse_conversation_id(conversation_id)
        message_ids = async_to_sync(MessageService.mark_conversation_read)(conversation_id)
        return envelope_response(
            request,
            {"conversationId": conversation_id, "messageIds": message_ids},
            SuccessMessage.UPDATED,
        )


# =============================================================================
# Message Views
# =============================================================================


class MessageStatusView(APIView):
    @extend_schema(
        operation_id="update_message_status",
        summary="Advance message delivery status",
        description="Status only moves forward; backward updates leave it unchanged.",
        tags=["Messages"],
        request=MessageStatusSerializer,
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def patch(self, request, message_id: str):
        message_id = parse_message_id(message_id)
        serializer = MessageStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message, changed = async_to_sync(MessageService.update_status)(
            message_id,
            serializer.validated_data["status"],
        )
        data = dict(MessageSerializer(message).data)
        data["changed"] = changed
        return envelope_response(request, data, SuccessMessage.UPDATED)


# =============================================================================
# Business Views
# =============================================================================


class BusinessDetailView(APIView):
    @extend_schema(
        operation_id="get_business",
        summary="Get business",
        tags=["Business"],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, business_id: str):
        business = _require_business(parse_business_id(business_id))
        return envelope_response(request, BusinessSerializer(business).data)

    @extend_schema(
        operation_id="update_business",
        summary="Update business name or logo",
        tags=["Business"],
        request=BusinessUpdateSerializer,
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def patch(self, request, business_id: str):
        business_id = parse_business_id(business_id)
        serializer = BusinessUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        changed = async_to_sync(ChatStore.update_business_info)(
            business_id,
            name=data.get("name"),
            logo_url=data.get("logoUrl"),
        )
        if not changed:
            raise NotFoundError("Business not found", details={"businessId": business_id})

        business = _require_business(business_id)
        return envelope_response(
            request,
            BusinessSerializer(business).data,
            SuccessMessage.UPDATED,
        )


class BusinessStatusView(APIView):
    @extend_schema(
        operation_id="update_business_status",
        summary="Update business status",
        tags=["Business"],
        request=BusinessStatusSerializer,
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def patch(self, request, business_id: str):
        business_id = parse_business_id(business_id)
        serializer = BusinessStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        changed = async_to_sync(ChatStore.update_business_status)(business_id, new_status)
        if not changed:
            raise NotFoundError("Business not found", details={"businessId": business_id})

        return envelope_response(
            request,
            {"businessId": business_id, "status": new_status},
            SuccessMessage.UPDATED,
        )


class BusinessStatsView(APIView):
    @extend_schema(
        operation_id="get_business_stats",
        summary="Aggregate statistics",
        tags=["Business"],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, business_id: str):
        business_id = parse_business_id(business_id)
        _require_business(business_id)
        stats = async_to_sync(ChatStore.get_business_stats)(business_id)
        return envelope_response(request, BusinessStatsSerializer(stats).data)


class BusinessProfileView(APIView):
    @extend_schema(
        operation_id="get_business_profile",
        summary="Business info with statistics",
        tags=["Business"],
        responses={200: ENVELOPE, 400: ERROR_ENVELOPE, 404: ERROR_ENVELOPE},
    )
    def get(self, request, business_id: str):
        business = _require_business(parse_business_id(business_id))
        stats = async_to_sync(ChatStore.get_business_stats)(business.id)
        data = dict(BusinessSerializer(business).data)
        data["stats"] = BusinessStatsSerializer(stats).data
        return envelope_response(request, data)
