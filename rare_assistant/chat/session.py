"""Session controller: runs one streamed turn at a time against the analysis service.

For each submission the controller gets a bearer token, opens a single
event stream, decodes every frame and feeds it through the conversation
store's reducer, in arrival order. Whatever way a turn ends (done, error,
transport failure, cancellation) the stream handle is closed exactly once
and the store leaves the turn in a terminal phase.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import httpx

from rare_assistant.auth.provider import AuthUnavailable
from rare_assistant.auth.token_cache import Credential, TokenCache
from rare_assistant.chat.errors import StreamEstablishFailure
from rare_assistant.chat.events import StreamError, decode
from rare_assistant.chat.sse import ServerEvent, iter_sse_frames
from rare_assistant.chat.store import ConversationStore
from rare_assistant.chat.turn import (
    Cancelled,
    FailureReason,
    OpenFailed,
    StreamOpened,
    TurnPhase,
)
from rare_assistant.config import ClientConfig, get_client_config
from rare_assistant.models.schemas import ChatRequest

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"

_live_controllers: set["SessionController"] = set()


class EventStream:
    """Owned handle on one open event stream response."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def frames(self) -> AsyncIterator[ServerEvent]:
        """Iterate the SSE frames of the response body."""
        return iter_sse_frames(self._response.aiter_lines())

    async def close(self) -> None:
        """Close the underlying response. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()


class SessionController:
    """Drives turns of one conversation against the analysis service.

    At most one turn is in flight; submissions made meanwhile, including
    while a finished turn's stream is still being closed, are refused.
    Progress is observed through the ConversationStore, not through
    return values.
    """

    def __init__(
        self,
        store: ConversationStore,
        token_cache: TokenCache,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            store: Conversation the controller writes to.
            token_cache: Source of bearer credentials.
            config: Client configuration. Loads from environment if not provided.
            client: Optional HTTP client; one is created (and owned) otherwise.
        """
        self._store = store
        self._token_cache = token_cache
        self._config = config or get_client_config()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.request_timeout)
        self._task: asyncio.Task[None] | None = None
        self._stream: EventStream | None = None
        self._closed = False
        _live_controllers.add(self)

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def has_open_stream(self) -> bool:
        return self._stream is not None

    @property
    def is_busy(self) -> bool:
        """True while a turn is in flight or its stream is still being released."""
        if self._store.is_busy:
            return True
        return self._task is not None and not self._task.done()

    def submit_turn(self, user_text: str) -> asyncio.Task[None] | None:
        """Submit user text as a new turn.

        Fire-and-forget: the turn runs in a background task that updates
        the store as frames arrive.

        Args:
            user_text: The user's message.

        Returns:
            The task running the turn, or None if the submission was refused.
        """
        if self._closed:
            return None
        if self._task is not None and not self._task.done():
            logger.debug("Ignoring submission while the previous turn is closing")
            return None

        turn = self._store.begin_turn(user_text)
        if turn is None:
            return None

        logger.info(f"Turn {turn.id[:8]} opening")
        self._task = asyncio.create_task(self._run_turn(turn.id, user_text.strip()))
        return self._task

    async def _run_turn(self, turn_id: str, text: str) -> None:
        stream: EventStream | None = None
        try:
            try:
                credential = await self._token_cache.get_valid_token()
            except AuthUnavailable as e:
                logger.warning(f"Turn {turn_id[:8]} not opened: {e}")
                self._store.dispatch(
                    turn_id, OpenFailed(reason=FailureReason.AUTH_UNAVAILABLE, message=str(e))
                )
                return

            try:
                stream = await self._open_stream(text, credential)
            except StreamEstablishFailure as e:
                logger.warning(f"Turn {turn_id[:8]} failed to open stream: {e}")
                self._store.dispatch(
                    turn_id, OpenFailed(reason=FailureReason.STREAM_ESTABLISH, message=str(e))
                )
                return

            self._stream = stream
            if self._store.dispatch(turn_id, StreamOpened()).is_terminal:
                return
            await self._consume(turn_id, stream)

        except asyncio.CancelledError:
            self._store.dispatch(turn_id, Cancelled())
            raise

        except Exception as e:
            logger.exception(f"Turn {turn_id[:8]} crashed")
            self._fail_unexpectedly(turn_id, e)

        finally:
            if stream is not None:
                await stream.close()
                if self._stream is stream:
                    self._stream = None

    def _fail_unexpectedly(self, turn_id: str, error: Exception) -> None:
        turn = self._store.find_turn(turn_id)
        if turn is None or turn.is_terminal:
            return
        if turn.phase is TurnPhase.OPENING:
            event = OpenFailed(reason=FailureReason.STREAM_ESTABLISH, message=str(error))
        else:
            event = StreamError(message=f"Unexpected error: {error}")
        self._store.dispatch(turn_id, event)

    async def _open_stream(self, text: str, credential: Credential) -> EventStream:
        """Post the message and wait for the event stream to be established.

        Raises:
            StreamEstablishFailure: On connection errors or a non-2xx status.
        """
        request = self._client.build_request(
            "POST",
            f"{self._config.backend_url}{CHAT_PATH}",
            json=ChatRequest(message=text).model_dump(),
            headers={
                "Authorization": f"Bearer {credential.token}",
                "Accept": "text/event-stream",
            },
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise StreamEstablishFailure(f"Connection failed: {e}") from e

        if response.is_error:
            await response.aclose()
            raise StreamEstablishFailure(f"HTTP {response.status_code}")

        return EventStream(response)

    async def _consume(self, turn_id: str, stream: EventStream) -> None:
        try:
            async with contextlib.aclosing(stream.frames()) as frames:
                async for frame in frames:
                    if self._apply_frame(turn_id, frame):
                        return
        except (httpx.HTTPError, httpx.StreamError) as e:
            logger.warning(f"Turn {turn_id[:8]} stream broke: {e}")
            self._store.dispatch(turn_id, StreamError(message=f"Connection lost: {e}"))
            return

        logger.warning(f"Turn {turn_id[:8]} stream ended without completion")
        self._store.dispatch(turn_id, StreamError(message="Stream closed before completion"))

    def _apply_frame(self, turn_id: str, frame: ServerEvent) -> bool:
        """Decode and apply one frame. Returns True once the turn is terminal."""
        event = decode(frame.event, frame.data)
        if event is None:
            return False
        return self._store.dispatch(turn_id, event).is_terminal

    async def cancel(self) -> None:
        """Abort the in-flight turn, if any.

        Idempotent, and a no-op once the turn has finished on its own.
        """
        turn = self._store.active_turn
        if turn is not None:
            logger.info(f"Turn {turn.id[:8]} cancelled")
            self._store.dispatch(turn.id, Cancelled())

        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def aclose(self) -> None:
        """Tear the controller down, cancelling any in-flight turn."""
        if self._closed:
            return
        self._closed = True
        _live_controllers.discard(self)
        await self.cancel()
        if self._owns_client:
            await self._client.aclose()


async def close_all_sessions() -> None:
    """Close every controller that is still alive, e.g. on app shutdown."""
    for controller in list(_live_controllers):
        await controller.aclose()
