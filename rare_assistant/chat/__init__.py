"""Streaming chat core.

Responsibilities:
    - SSE framing and decoding of analysis service events
    - Turn state machine with pure reducers
    - Conversation store observed by the UI
    - Session controller owning the event stream of the in-flight turn
"""

from rare_assistant.chat.errors import StreamEstablishFailure
from rare_assistant.chat.events import (
    DomainEvent,
    Done,
    Response,
    SourceFound,
    StreamError,
    Thinking,
    decode,
)
from rare_assistant.chat.session import EventStream, SessionController, close_all_sessions
from rare_assistant.chat.store import ConversationStore
from rare_assistant.chat.turn import (
    FALLBACK_CONTENT,
    Cancelled,
    FailureReason,
    OpenFailed,
    StreamOpened,
    Turn,
    TurnPhase,
    reduce,
)

__all__ = [
    "FALLBACK_CONTENT",
    "Cancelled",
    "ConversationStore",
    "DomainEvent",
    "Done",
    "EventStream",
    "FailureReason",
    "OpenFailed",
    "Response",
    "SessionController",
    "SourceFound",
    "StreamError",
    "StreamEstablishFailure",
    "StreamOpened",
    "Thinking",
    "Turn",
    "TurnPhase",
    "close_all_sessions",
    "decode",
    "reduce",
]
