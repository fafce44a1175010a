"""Unit tests for SSE framing and event decoding."""

from collections.abc import AsyncIterator

import pytest_check as check

from rare_assistant.chat.events import (
    Done,
    Response,
    SourceFound,
    StreamError,
    Thinking,
    decode,
)
from rare_assistant.chat.sse import ServerEvent, iter_sse_frames
from rare_assistant.models.schemas import SourceType


async def collect(lines: list[str]) -> list[ServerEvent]:
    async def source() -> AsyncIterator[str]:
        for line in lines:
            yield line

    return [frame async for frame in iter_sse_frames(source())]


class TestDecode:
    """Tests for mapping frames to domain events."""

    def test_thinking(self) -> None:
        assert decode("thinking", '{"step": "Analyzing symptoms..."}') == Thinking(
            step="Analyzing symptoms..."
        )

    def test_thinking_step_is_trimmed(self) -> None:
        assert decode("thinking", '{"step": "  Ranking  "}') == Thinking(step="Ranking")

    def test_blank_thinking_step_is_dropped(self) -> None:
        assert decode("thinking", '{"step": "   "}') is None

    def test_response(self) -> None:
        assert decode("response", '{"content": "Hi"}') == Response(content_delta="Hi")

    def test_source(self) -> None:
        event = decode(
            "source",
            '{"source_type": "orphadata", "source_id": "ORPHA:558", "relevance": 0.82}',
        )

        assert isinstance(event, SourceFound)
        check.equal(event.source.source_type, SourceType.ORPHADATA)
        check.equal(event.source.source_id, "ORPHA:558")
        check.equal(event.source.relevance, 0.82)

    def test_unknown_source_type_maps_to_other(self) -> None:
        event = decode(
            "source", '{"source_type": "pubmed", "source_id": "1", "relevance": 0.5}'
        )

        assert event.source.source_type is SourceType.OTHER

    def test_relevance_is_clamped(self) -> None:
        high = decode("source", '{"source_type": "user_file", "source_id": "a", "relevance": 1.7}')
        low = decode("source", '{"source_type": "user_file", "source_id": "b", "relevance": -0.2}')

        check.equal(high.source.relevance, 1.0)
        check.equal(low.source.relevance, 0.0)

    def test_done_ignores_payload(self) -> None:
        check.equal(decode("done", '{"status": "complete"}'), Done())
        check.equal(decode("done", ""), Done())

    def test_error_accepts_free_form_payload(self) -> None:
        check.equal(decode("error", ""), StreamError(message=""))
        check.equal(decode("error", "upstream timeout"), StreamError(message="upstream timeout"))

    def test_malformed_json_is_dropped(self) -> None:
        check.is_none(decode("response", '{"content": "Hi"'))
        check.is_none(decode("thinking", "not json"))
        check.is_none(decode("source", '{"source_id": "x"}'))

    def test_wrong_field_type_is_dropped(self) -> None:
        assert decode("response", '{"content": ["a"]}') is None

    def test_unknown_event_is_dropped(self) -> None:
        assert decode("heartbeat", "{}") is None

    def test_decoder_does_not_deduplicate(self) -> None:
        first = decode("thinking", '{"step": "A"}')
        second = decode("thinking", '{"step": "A"}')

        assert first == second == Thinking(step="A")


class TestSseFraming:
    """Tests for grouping lines into frames."""

    async def test_event_and_data(self) -> None:
        frames = await collect(["event: response", 'data: {"content": "Hi"}', ""])

        assert frames == [ServerEvent("response", '{"content": "Hi"}')]

    async def test_multiple_data_lines_are_joined(self) -> None:
        frames = await collect(["event: error", "data: line one", "data: line two", ""])

        assert frames == [ServerEvent("error", "line one\nline two")]

    async def test_default_event_name(self) -> None:
        frames = await collect(["data: hello", ""])

        assert frames == [ServerEvent("message", "hello")]

    async def test_event_without_data_is_dispatched(self) -> None:
        frames = await collect(["event: done", ""])

        assert frames == [ServerEvent("done", "")]

    async def test_comments_and_ids_are_ignored(self) -> None:
        frames = await collect([": keep-alive", "id: 7", "event: done", "data: {}", ""])

        assert frames == [ServerEvent("done", "{}")]

    async def test_line_endings_are_stripped(self) -> None:
        frames = await collect(["event: done\r\n", "data: {}\n", "\r\n"])

        assert frames == [ServerEvent("done", "{}")]

    async def test_unterminated_frame_is_dropped(self) -> None:
        frames = await collect(["event: done", ""] + ["event: response", 'data: {"content": "x"}'])

        assert frames == [ServerEvent("done", "")]

    async def test_value_without_leading_space(self) -> None:
        frames = await collect(["event:thinking", 'data:{"step": "A"}', ""])

        assert frames == [ServerEvent("thinking", '{"step": "A"}')]
