"""Outbound notifications to the player/UI driver."""

from typing import Optional

from .exceptions import AcquisitionError
from .models import Transcript

class PlaybackListener:
    """
    Receives every outbound event. All methods are no-ops, so a driver
    overrides only what it renders.
    """

    def on_transcript_loaded(self, transcript: Transcript) -> None:
        pass

    def on_transcript_failed(self, error: AcquisitionError) -> None:
        pass

    def on_highlight_changed(self, segment_index: Optional[int]) -> None:
        pass

    def on_loop_window_changed(self, start: float, end: float) -> None:
        pass

    def on_loop_mode_changed(self, enabled: bool) -> None:
        pass

    def on_seek_requested(self, seconds: float) -> None:
        pass
