"""Fetches and parses YouTube timed-text caption documents."""

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .cancellation import CancellationToken, NEVER_CANCELLED
from .exceptions import ParseError, ParseErrorKind
from .models import CaptionTrackRef, TranscriptSegment
from .web_client import WebClient

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_TAG = re.compile(r"<[^>]*>")
_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)

def clean_caption_text(raw: str) -> str:
    """Drops markup, unescapes entities, collapses whitespace and trims."""
    text = _TAG.sub("", _BREAK.sub(" ", raw))
    text = html.unescape(text)
    return _WHITESPACE.sub(" ", text).strip()

def _attribute(attributes: str, name: str) -> Optional[str]:
    match = re.search(r'\b%s\s*=\s*"([^"]*)"' % name, attributes)
    return match.group(1) if match else None


class TimedTextStrategy(ABC):
    """Abstract base class for one timed-text dialect."""

    name = "abstract"

    @abstractmethod
    def parse(self, body: str) -> List[TranscriptSegment]:
        """
        Extracts segments in document order.

        Returns an empty list when the body holds nothing in this dialect;
        never raises for malformed entries, it skips them.
        """
        pass


class Srv3ParagraphStrategy(TimedTextStrategy):
    """
    srv3: <p t="startMs" d="durationMs"><s>word</s><s t=".."> word</s></p>.

    The per-word <s> timing is discarded; only paragraph timing is kept.
    Paragraphs without any <s> span (manual tracks) use their own text.
    """

    name = "srv3"

    _paragraph = re.compile(r"<p\b([^>]*?)(?<!/)>(.*?)</p>", re.IGNORECASE | re.DOTALL)
    _span = re.compile(r"<s\b[^>]*>(.*?)</s>", re.IGNORECASE | re.DOTALL)
    _span_open = re.compile(r"<s\b", re.IGNORECASE)

    def parse(self, body: str) -> List[TranscriptSegment]:
        segments = []
        for match in self._paragraph.finditer(body):
            attributes, content = match.group(1), match.group(2)
            start_ms = _attribute(attributes, "t")
            duration_ms = _attribute(attributes, "d")
            try:
                start_time = int(start_ms) / 1000.0
                duration = int(duration_ms) / 1000.0
            except (TypeError, ValueError):
                logger.warning(f"Skipping paragraph with bad timing t={start_ms!r} d={duration_ms!r}")
                continue

            if self._span_open.search(content):
                raw = "".join(span.group(1) for span in self._span.finditer(content))
            else:
                raw = content
            text = clean_caption_text(raw)

            if not text or duration <= 0 or start_time < 0:
                continue
            segments.append(TranscriptSegment(start_time, duration, text))
        return segments


class LegacyTextStrategy(TimedTextStrategy):
    """Older format: <text start="1.23" dur="2.5">escaped text</text>, in seconds."""

    name = "legacy"

    _text = re.compile(r"<text\b([^>]*?)(?<!/)>(.*?)</text>", re.IGNORECASE | re.DOTALL)

    def parse(self, body: str) -> List[TranscriptSegment]:
        segments = []
        for match in self._text.finditer(body):
            attributes, content = match.group(1), match.group(2)
            try:
                start_time = float(_attribute(attributes, "start"))
                duration = float(_attribute(attributes, "dur"))
            except (TypeError, ValueError):
                logger.warning(f"Skipping text entry with bad timing: {attributes.strip()!r}")
                continue
            # Entities arrive escaped twice in this format (&amp;#39;)
            text = clean_caption_text(html.unescape(content))
            if not text or duration <= 0 or start_time < 0:
                continue
            segments.append(TranscriptSegment(start_time, duration, text))
        return segments


DEFAULT_STRATEGIES = (Srv3ParagraphStrategy(), LegacyTextStrategy())

def parse_timed_text(body: str, strategies: Sequence[TimedTextStrategy] = DEFAULT_STRATEGIES) -> List[TranscriptSegment]:
    """
    Parses a timed-text document into segments sorted by start time.

    Strategies are tried in order; the first one producing any segment wins.

    Raises:
        ParseError: EMPTY_TRANSCRIPT if no strategy finds a non-blank segment.
    """
    for strategy in strategies:
        segments = strategy.parse(body or "")
        if segments:
            logger.info(f"Parsed {len(segments)} segments with the {strategy.name} parser")
            return sorted(segments, key=lambda s: s.start_time)
    logger.warning(f"No transcript segments found in caption document (length {len(body or '')})")
    raise ParseError(ParseErrorKind.EMPTY_TRANSCRIPT)


class CaptionXmlParser:
    """Downloads a caption track and parses it."""

    def __init__(self, web_client: WebClient, strategies: Sequence[TimedTextStrategy] = DEFAULT_STRATEGIES):
        self.web_client = web_client
        self.strategies = list(strategies)

    def parse_timed_text(self, body: str) -> List[TranscriptSegment]:
        return parse_timed_text(body, self.strategies)

    def fetch_segments(self, track: CaptionTrackRef, token: CancellationToken = NEVER_CANCELLED) -> List[TranscriptSegment]:
        """
        Raises:
            NetworkError: If the caption document cannot be fetched.
            ParseError: EMPTY_TRANSCRIPT if it holds no segments.
        """
        url = track.base_url
        if url.startswith("/"):
            url = self.web_client.base_url + url
        logger.info(f"Fetching {track.language_code} caption document")
        body = self.web_client.get_text(url, token)
        logger.debug(f"Downloaded caption document, length: {len(body)}")
        return self.parse_timed_text(body)
