"""Data models for CaptionLoop."""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

@dataclass(frozen=True)
class TranscriptSegment:
    """A single caption paragraph, active during [start_time, start_time + duration)."""
    start_time: float
    duration: float
    text: str

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def contains(self, t: float) -> bool:
        return self.start_time <= t < self.end_time

@dataclass(frozen=True)
class CaptionTrackRef:
    """One entry of the caption catalog, as chosen by a track selector."""
    language_code: str
    base_url: str
    name: str = "English"

@dataclass(frozen=True)
class Transcript:
    """
    Holds the result of one successful acquisition run.

    Segments are re-sorted by start time on construction (stable, so equal
    start times keep their source order). A transcript always has at least
    one segment; an empty caption document is reported as a ParseError by
    the parser instead.
    """
    language_name: str
    language_code: str
    segments: Tuple[TranscriptSegment, ...]
    video_id: Optional[str] = None

    def __init__(
        self,
        language_name: str,
        language_code: str,
        segments: Sequence[TranscriptSegment],
        video_id: Optional[str] = None,
    ):
        if not segments:
            raise ValueError("A transcript needs at least one segment.")
        object.__setattr__(self, "language_name", language_name)
        object.__setattr__(self, "language_code", language_code)
        object.__setattr__(self, "segments", tuple(sorted(segments, key=lambda s: s.start_time)))
        object.__setattr__(self, "video_id", video_id)

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[TranscriptSegment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> TranscriptSegment:
        return self.segments[index]

    @property
    def text(self) -> str:
        return " ".join(segment.text for segment in self.segments)

@dataclass(frozen=True)
class LoopWindow:
    """Range of playback repeated while loop mode is on."""
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def contains(self, t: float) -> bool:
        return self.start_time <= t <= self.end_time

@dataclass
class SynchronizerState:
    """Mutable playback state owned by a single PlaybackSynchronizer."""
    current_time: float = 0.0
    highlighted_index: int = -1 # -1 means nothing highlighted
    loop_enabled: bool = False
    loop_window: LoopWindow = field(default_factory=LoopWindow)
    video_duration: float = 0.0
    transcript: Optional[Transcript] = None

    @property
    def is_loaded(self) -> bool:
        return self.transcript is not None
