"""Unit tests for timed-text parsing."""

import pytest

from captionloop.exceptions import ParseError, ParseErrorKind
from captionloop.models import CaptionTrackRef, TranscriptSegment
from captionloop.timed_text import (
    CaptionXmlParser,
    LegacyTextStrategy,
    Srv3ParagraphStrategy,
    clean_caption_text,
    parse_timed_text,
)
from captionloop.web_client import WebClient

from conftest import EXPECTED_SEGMENTS, FakeWebClient, SRV3_BODY


def srv3(*paragraphs):
    return '<timedtext format="3"><body>' + "".join(paragraphs) + "</body></timedtext>"


class TestParseTimedText:

    def test_sorted_by_start_time(self):
        body = srv3(
            '<p t="1000" d="2000"><s>later</s></p>',
            '<p t="500" d="300"><s>earlier</s></p>',
        )

        segments = parse_timed_text(body)

        assert segments == [
            TranscriptSegment(0.5, 0.3, "earlier"),
            TranscriptSegment(1.0, 2.0, "later"),
        ]

    def test_entities_are_unescaped(self):
        segments = parse_timed_text(srv3('<p t="0" d="1000"><s>A &amp; B</s></p>'))
        assert segments[0].text == "A & B"

    def test_blank_paragraphs_are_dropped(self):
        body = srv3(
            '<p t="0" d="1000"><s></s><s>  </s></p>',
            '<p t="1000" d="1000"><s>kept</s></p>',
        )
        assert [s.text for s in parse_timed_text(body)] == ["kept"]

    def test_spans_are_concatenated_and_whitespace_collapsed(self):
        body = srv3('<p t="0" d="1000"><s>one</s><s t="100">\n two</s><s t="300">   three </s></p>')
        assert parse_timed_text(body)[0].text == "one two three"

    def test_paragraph_without_spans_uses_its_own_text(self):
        body = srv3('<p t="2000" d="1500">manual<br/>caption &lt;line&gt;</p>')
        assert parse_timed_text(body) == [TranscriptSegment(2.0, 1.5, "manual caption <line>")]

    def test_bad_timing_and_zero_duration_are_skipped(self):
        body = srv3(
            '<p t="abc" d="100"><s>bad start</s></p>',
            '<p d="100"><s>no start</s></p>',
            '<p t="100" d="0"><s>zero</s></p>',
            '<p t="200" d="300"><s>good</s></p>',
        )
        assert [s.text for s in parse_timed_text(body)] == ["good"]

    def test_fixture_document(self):
        assert parse_timed_text(SRV3_BODY) == EXPECTED_SEGMENTS

    @pytest.mark.parametrize("body", ["", "<timedtext><body></body></timedtext>", srv3('<p t="0" d="5"><s> </s></p>')])
    def test_empty_transcript(self, body):
        with pytest.raises(ParseError) as excinfo:
            parse_timed_text(body)
        assert excinfo.value.kind is ParseErrorKind.EMPTY_TRANSCRIPT

    def test_legacy_format_fallback(self):
        body = (
            '<?xml version="1.0" encoding="utf-8" ?><transcript>'
            '<text start="3.5" dur="1.25">second &amp;amp; last</text>'
            '<text start="0.08" dur="2.4">it&amp;#39;s first</text>'
            '</transcript>'
        )

        segments = parse_timed_text(body)

        assert segments == [
            TranscriptSegment(0.08, 2.4, "it's first"),
            TranscriptSegment(3.5, 1.25, "second & last"),
        ]

    def test_srv3_wins_over_legacy(self):
        body = srv3('<p t="0" d="1000"><s>srv3</s></p>') + '<text start="0" dur="1">legacy</text>'
        assert [s.text for s in parse_timed_text(body)] == ["srv3"]

    def test_strategy_order_is_configurable(self):
        body = srv3('<p t="0" d="1000"><s>srv3</s></p>') + '<text start="0" dur="1">legacy</text>'
        segments = parse_timed_text(body, strategies=[LegacyTextStrategy(), Srv3ParagraphStrategy()])
        assert [s.text for s in segments] == ["legacy"]


def test_clean_caption_text():
    assert clean_caption_text("  a <i>b</i>\n\n&quot;c&quot; &apos;d&#39; ") == "a b \"c\" 'd'"


class TestCaptionXmlParser:

    def test_fetches_track_url(self):
        url = "https://www.youtube.com/api/timedtext?v=x&lang=en"
        client = FakeWebClient({url: SRV3_BODY})

        segments = CaptionXmlParser(client).fetch_segments(CaptionTrackRef("en", url))

        assert segments == EXPECTED_SEGMENTS
        assert client.requests[0][:2] == ("GET", url)

    def test_relative_track_url_is_joined_to_base(self):
        client = FakeWebClient({"https://www.youtube.com/api/timedtext?v=x": SRV3_BODY})
        segments = CaptionXmlParser(client).fetch_segments(CaptionTrackRef("en", "/api/timedtext?v=x"))
        assert len(segments) == 3

    def test_utf8_body_without_declared_charset(self, scripted_server):
        scripted_server.routes[("GET", "/api/timedtext?v=x")] = (
            200, "text/xml", srv3('<p t="0" d="1000"><s>café — naïve</s></p>'),
        )

        with WebClient({'base_url': scripted_server.base_url}) as client:
            segments = CaptionXmlParser(client).fetch_segments(CaptionTrackRef("en", "/api/timedtext?v=x"))

        assert segments == [TranscriptSegment(0.0, 1.0, "café — naïve")]
