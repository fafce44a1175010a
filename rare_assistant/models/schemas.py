from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Speaker of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


class SourceType(str, Enum):
    """Origin of a cited source."""

    USER_FILE = "user_file"
    ORPHADATA = "orphadata"
    OTHER = "other"


class SourceRef(BaseModel):
    """A citation attached to an assistant message.

    Attributes:
        source_type: Where the cited material came from.
        source_id: Identifier of the document or record.
        relevance: Similarity score, clamped to [0, 1].
    """

    model_config = ConfigDict(frozen=True)

    source_type: SourceType
    source_id: str
    relevance: float = Field(ge=0.0, le=1.0)


class Message(BaseModel):
    """A single message in the conversation.

    Messages are immutable; the conversation store replaces an assistant
    message with an updated copy each time a reducer applies.

    Attributes:
        id: Identifier unique within the conversation.
        role: Speaker of the message.
        content: Message text. Grows while an assistant reply streams.
        thinking_steps: Reasoning step labels shown before the answer starts.
        sources: Citations in arrival order.
        created_at: Local creation time.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    content: str = ""
    thinking_steps: tuple[str, ...] = ()
    sources: tuple[SourceRef, ...] = ()
    created_at: datetime = Field(default_factory=datetime.now)


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: User's question or symptom description.
    """

    message: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class ThinkingData(BaseModel):
    """Payload of a `thinking` frame."""

    step: str


class ResponseData(BaseModel):
    """Payload of a `response` frame."""

    content: str


class SourceData(BaseModel):
    """Payload of a `source` frame."""

    source_type: str
    source_id: str
    relevance: float


class UploadStatus(str, Enum):
    """Lifecycle of a file handed to the upload sidecar."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadedFile(BaseModel):
    """One entry in the upload sidecar's file list.

    Attributes:
        id: Local identifier of the entry.
        name: Original filename.
        status: Current upload status.
        error: Failure message when status is failed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: UploadStatus
    error: str | None = None
