"""Decoding of analysis service frames into domain events.

Malformed or unknown frames decode to None and are skipped by the caller,
so a bad frame from the transport never ends a turn on its own.
"""

import logging

from pydantic import BaseModel, ConfigDict, ValidationError

from rare_assistant.models.schemas import (
    ResponseData,
    SourceData,
    SourceRef,
    SourceType,
    ThinkingData,
)

logger = logging.getLogger(__name__)


class DomainEvent(BaseModel):
    """Base class for decoded stream events."""

    model_config = ConfigDict(frozen=True)


class Thinking(DomainEvent):
    """Current reasoning step label. Replaces, never appends to, the label text."""

    step: str


class Response(DomainEvent):
    """A text delta of the answer."""

    content_delta: str


class SourceFound(DomainEvent):
    """One citation for the answer."""

    source: SourceRef


class Done(DomainEvent):
    """The service finished the turn successfully."""


class StreamError(DomainEvent):
    """The service or transport failed mid-stream."""

    message: str = ""


def _source_type(value: str) -> SourceType:
    try:
        return SourceType(value)
    except ValueError:
        return SourceType.OTHER


def _decode_thinking(payload: str) -> Thinking | None:
    step = ThinkingData.model_validate_json(payload).step.strip()
    if not step:
        return None
    return Thinking(step=step)


def _decode_response(payload: str) -> Response:
    return Response(content_delta=ResponseData.model_validate_json(payload).content)


def _decode_source(payload: str) -> SourceFound:
    data = SourceData.model_validate_json(payload)
    relevance = min(max(data.relevance, 0.0), 1.0)
    return SourceFound(
        source=SourceRef(
            source_type=_source_type(data.source_type),
            source_id=data.source_id,
            relevance=relevance,
        )
    )


def _decode_done(payload: str) -> Done:
    # Payload is {"status": "complete"} today; nothing in it is needed
    return Done()


def _decode_error(payload: str) -> StreamError:
    return StreamError(message=payload.strip())


_DECODERS = {
    "thinking": _decode_thinking,
    "response": _decode_response,
    "source": _decode_source,
    "done": _decode_done,
    "error": _decode_error,
}


def decode(event_name: str, payload: str) -> DomainEvent | None:
    """Decode one frame into a domain event.

    Args:
        event_name: SSE event name of the frame.
        payload: Frame data, JSON for the structured events.

    Returns:
        The decoded event, or None for unknown names and malformed payloads.
    """
    decoder = _DECODERS.get(event_name)
    if decoder is None:
        logger.debug(f"Ignoring unknown event type: {event_name!r}")
        return None

    try:
        return decoder(payload)
    except ValidationError as e:
        logger.debug(f"Dropping malformed {event_name!r} frame: {e.error_count()} error(s)")
        return None
