"""Renders transcripts as a plain listing or as SRT subtitles."""

import logging
from abc import ABC, abstractmethod

from .exceptions import FormattingError
from .models import Transcript
from .utils import format_clock, format_time_srt

logger = logging.getLogger(__name__)

class TranscriptFormatter(ABC):
    """Abstract base class for transcript formatters."""

    extension = "txt"

    @abstractmethod
    def render(self, transcript: Transcript) -> str:
        """
        Renders the transcript as text.

        Args:
            transcript: The transcript to render.
        """
        pass

    def write(self, transcript: Transcript, output_path: str) -> None:
        """
        Writes the rendered transcript to output_path.

        Raises:
            FormattingError: If file writing fails.
        """
        logger.info(f"Writing {len(transcript)} segments to {output_path}")
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(self.render(transcript))
        except IOError as e:
            logger.error(f"Failed to write transcript to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write transcript file: {e}") from e


class TextFormatter(TranscriptFormatter):
    """One "[m:ss] text" block per segment, separated by blank lines."""

    extension = "txt"

    def render_segment(self, transcript: Transcript, index: int) -> str:
        segment = transcript[index]
        return f"[{format_clock(segment.start_time)}] {segment.text}"

    def render(self, transcript: Transcript) -> str:
        blocks = [self.render_segment(transcript, i) for i in range(len(transcript))]
        return "\n\n".join(blocks) + "\n"


class SRTFormatter(TranscriptFormatter):
    """Formats transcripts into the SRT (SubRip Text) format."""

    extension = "srt"

    def render(self, transcript: Transcript) -> str:
        blocks = []
        for index, segment in enumerate(transcript, start=1):
            start_time_str = format_time_srt(segment.start_time)
            end_time_str = format_time_srt(segment.end_time)
            blocks.append(f"{index}\n{start_time_str} --> {end_time_str}\n{segment.text}\n")
        return "\n".join(blocks)


FORMATTERS = {
    'text': TextFormatter,
    'srt': SRTFormatter,
}

def get_formatter(output_format: str) -> TranscriptFormatter:
    try:
        return FORMATTERS[output_format.lower()]()
    except KeyError:
        raise FormattingError(f"Unsupported output format '{output_format}'") from None
