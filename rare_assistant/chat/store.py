"""Conversation store: ordered messages plus an arena of turns.

The store is the single owner of conversation state. Messages are only
ever appended; an assistant message is replaced in place by the copy the
turn reducer returns. Subscribers are notified synchronously after every
change so the UI can re-render.
"""

import logging
import uuid
from collections.abc import Callable

from rare_assistant.chat.events import DomainEvent
from rare_assistant.chat.turn import Turn, reduce
from rare_assistant.models.schemas import Message, Role

logger = logging.getLogger(__name__)

Listener = Callable[["ConversationStore"], None]


class ConversationStore:
    """Append-only conversation log driven by the turn reducer."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._index: dict[str, int] = {}
        self._turns: dict[str, Turn] = {}
        self._active_turn_id: str | None = None
        self._listeners: list[Listener] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def active_turn(self) -> Turn | None:
        """The turn currently opening or streaming, if any."""
        if self._active_turn_id is None:
            return None
        return self._turns[self._active_turn_id]

    @property
    def is_busy(self) -> bool:
        return self._active_turn_id is not None

    def get_message(self, message_id: str) -> Message:
        return self._messages[self._index[message_id]]

    def get_turn(self, turn_id: str) -> Turn:
        return self._turns[turn_id]

    def find_turn(self, turn_id: str) -> Turn | None:
        """Like get_turn, but None once the turn has been cleared away."""
        return self._turns.get(turn_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _append(self, message: Message) -> None:
        self._index[message.id] = len(self._messages)
        self._messages.append(message)

    def begin_turn(self, content: str) -> Turn | None:
        """Start a turn for a user submission.

        Appends the user message and an empty assistant message and opens
        a turn for them. Blank submissions, and submissions while another
        turn is in flight, are refused rather than queued.

        Args:
            content: Text the user submitted.

        Returns:
            The new turn in the opening phase, or None if refused.
        """
        text = content.strip()
        if not text:
            logger.debug("Ignoring blank submission")
            return None
        if self.is_busy:
            logger.debug("Ignoring submission while a turn is in flight")
            return None

        user_message = Message(id=uuid.uuid4().hex, role=Role.USER, content=text)
        assistant_message = Message(id=uuid.uuid4().hex, role=Role.ASSISTANT)
        turn = Turn(
            id=uuid.uuid4().hex,
            user_message_id=user_message.id,
            assistant_message_id=assistant_message.id,
        )

        self._append(user_message)
        self._append(assistant_message)
        self._turns[turn.id] = turn
        self._active_turn_id = turn.id
        self._notify()
        return turn

    def dispatch(self, turn_id: str, event: DomainEvent) -> Turn:
        """Apply one event to a turn through the reducer.

        Args:
            turn_id: Turn the event belongs to.
            event: Decoded stream event or lifecycle signal.

        Returns:
            The turn after the event was applied.
        """
        turn = self._turns[turn_id]
        message = self.get_message(turn.assistant_message_id)
        next_turn, next_message = reduce(turn, message, event)
        if next_turn is turn and next_message is message:
            return turn

        self._turns[turn_id] = next_turn
        self._messages[self._index[message.id]] = next_message
        if next_turn.is_terminal and self._active_turn_id == turn_id:
            self._active_turn_id = None
            logger.info(f"Turn {turn_id[:8]} finished: {next_turn.phase.value}")
        self._notify()
        return next_turn

    def clear(self) -> bool:
        """Start a new conversation.

        Returns:
            False, leaving everything in place, while a turn is in flight.
        """
        if self.is_busy:
            return False
        self._messages.clear()
        self._index.clear()
        self._turns.clear()
        self._notify()
        return True
