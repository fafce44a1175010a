"""Turn state machine.

A turn is one user submission and the streamed assistant reply to it:

    Opening -> Streaming -> Completed | Failed | Aborted

`reduce` is the only way a turn or its assistant message changes. It is
pure: given the current turn, the assistant message and one event, it
returns the next turn and message without touching anything else.
Terminal phases absorb every later event.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from rare_assistant.chat.events import (
    DomainEvent,
    Done,
    Response,
    SourceFound,
    StreamError,
    Thinking,
)
from rare_assistant.models.schemas import Message

FALLBACK_CONTENT = "Failed to respond correctly. Try again"


class TurnPhase(str, Enum):
    """Lifecycle phase of a turn."""

    OPENING = "opening"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


TERMINAL_PHASES = frozenset({TurnPhase.COMPLETED, TurnPhase.FAILED, TurnPhase.ABORTED})


class FailureReason(str, Enum):
    """Why a turn ended in the failed phase."""

    AUTH_UNAVAILABLE = "auth_unavailable"
    STREAM_ESTABLISH = "stream_establish"
    STREAM_ERROR = "stream_error"


class StreamOpened(DomainEvent):
    """The service accepted the request and the event stream is live."""


class OpenFailed(DomainEvent):
    """The turn could not be opened."""

    reason: FailureReason
    message: str = ""


class Cancelled(DomainEvent):
    """The user or the owning component abandoned the turn."""


class Turn(BaseModel):
    """State of one turn.

    Attributes:
        id: Turn identifier.
        user_message_id: The user message that started the turn.
        assistant_message_id: The assistant message the turn writes to.
        phase: Current lifecycle phase.
        done_received: Set once the service signalled completion.
        failure: Why the turn failed, when phase is failed.
        error_message: Detail for the failure, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_message_id: str
    assistant_message_id: str
    phase: TurnPhase = TurnPhase.OPENING
    done_received: bool = False
    failure: FailureReason | None = None
    error_message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


def _fail(
    turn: Turn, message: Message, reason: FailureReason, detail: str
) -> tuple[Turn, Message]:
    failed = turn.model_copy(
        update={"phase": TurnPhase.FAILED, "failure": reason, "error_message": detail}
    )
    update: dict = {"thinking_steps": ()}
    if not message.content:
        update["content"] = FALLBACK_CONTENT
    return failed, message.model_copy(update=update)


def _apply_stream_event(
    turn: Turn, message: Message, event: DomainEvent
) -> tuple[Turn, Message]:
    if isinstance(event, Thinking):
        steps = message.thinking_steps
        if steps and steps[-1] == event.step:
            return turn, message
        return turn, message.model_copy(update={"thinking_steps": (*steps, event.step)})

    if isinstance(event, Response):
        return turn, message.model_copy(
            update={"content": message.content + event.content_delta, "thinking_steps": ()}
        )

    if isinstance(event, SourceFound):
        return turn, message.model_copy(update={"sources": (*message.sources, event.source)})

    if isinstance(event, Done):
        return turn.model_copy(
            update={"phase": TurnPhase.COMPLETED, "done_received": True}
        ), message

    if isinstance(event, StreamError):
        # Done outranks a trailing error frame for the same turn
        if turn.done_received:
            return turn, message
        return _fail(turn, message, FailureReason.STREAM_ERROR, event.message)

    return turn, message


def reduce(turn: Turn, message: Message, event: DomainEvent) -> tuple[Turn, Message]:
    """Apply one event to a turn and its assistant message.

    Args:
        turn: Current turn state.
        message: The turn's assistant message.
        event: Decoded stream event or lifecycle signal.

    Returns:
        The next (turn, message) pair. Both are returned unchanged when the
        event does not apply in the current phase.
    """
    if turn.is_terminal:
        return turn, message

    if isinstance(event, Cancelled):
        return turn.model_copy(update={"phase": TurnPhase.ABORTED}), message

    if turn.phase is TurnPhase.OPENING:
        if isinstance(event, StreamOpened):
            return turn.model_copy(update={"phase": TurnPhase.STREAMING}), message
        if isinstance(event, OpenFailed):
            return _fail(turn, message, event.reason, event.message)
        return turn, message

    return _apply_stream_event(turn, message, event)
