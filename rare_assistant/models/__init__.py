"""Pydantic models shared by the client components.

Models:
    - Message, SourceRef: conversation state consumed by the UI
    - ChatRequest: outgoing chat request body
    - ThinkingData, ResponseData, SourceData: event stream payloads
    - UploadedFile: upload sidecar entries
"""

from rare_assistant.models.schemas import (
    ChatRequest,
    Message,
    ResponseData,
    Role,
    SourceData,
    SourceRef,
    SourceType,
    ThinkingData,
    UploadedFile,
    UploadStatus,
)

__all__ = [
    "ChatRequest",
    "Message",
    "ResponseData",
    "Role",
    "SourceData",
    "SourceRef",
    "SourceType",
    "ThinkingData",
    "UploadStatus",
    "UploadedFile",
]
