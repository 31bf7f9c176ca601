"""Keeps the transcript highlight and the loop window in step with the player clock."""

import dataclasses
import logging
import math
from bisect import bisect_right
from typing import List, Optional

from .listener import PlaybackListener
from .models import LoopWindow, SynchronizerState, Transcript, TranscriptSegment

logger = logging.getLogger(__name__)

MIN_LOOP_SECONDS = 1.0

class PlaybackSynchronizer:
    """
    Clock-driven highlight and loop state machine.

    Idle until a transcript is loaded, Loaded until clear(). Every mutation
    goes through the methods below and all of them must be called from the
    same execution context as the clock ticks. Nothing here raises; inputs
    are clamped into range.

    While the video duration is unknown (0) the loop window is only bounded
    below.
    """

    def __init__(
        self,
        listener: Optional[PlaybackListener] = None,
        loop_half_width: float = 5.0,
        shift_seconds: float = 10.0,
    ):
        self.listener = listener or PlaybackListener()
        self.loop_half_width = loop_half_width
        self.shift_seconds = shift_seconds
        self._state = SynchronizerState()
        self._starts: List[float] = []
        self._max_ends: List[float] = []

    # --- Read access ---

    @property
    def state(self) -> SynchronizerState:
        """A copy of the current state; changing it has no effect."""
        return dataclasses.replace(self._state)

    @property
    def is_loaded(self) -> bool:
        return self._state.is_loaded

    @property
    def transcript(self) -> Optional[Transcript]:
        return self._state.transcript

    @property
    def current_time(self) -> float:
        return self._state.current_time

    @property
    def highlighted_index(self) -> int:
        return self._state.highlighted_index

    @property
    def highlighted_segment(self) -> Optional[TranscriptSegment]:
        if self._state.transcript is None or self._state.highlighted_index < 0:
            return None
        return self._state.transcript[self._state.highlighted_index]

    @property
    def loop_enabled(self) -> bool:
        return self._state.loop_enabled

    @property
    def loop_window(self) -> LoopWindow:
        return self._state.loop_window

    @property
    def video_duration(self) -> float:
        return self._state.video_duration

    # --- Lifecycle ---

    def load(self, transcript: Transcript) -> None:
        """Idle/Loaded -> Loaded. Looping is switched off for the new transcript."""
        state = self._state
        state.transcript = transcript
        self._starts = [segment.start_time for segment in transcript]
        # Running maximum of end times; lets a binary search find the first
        # segment containing t even when windows overlap.
        self._max_ends = []
        running = -math.inf
        for segment in transcript:
            running = max(running, segment.end_time)
            self._max_ends.append(running)
        logger.info(f"Loaded transcript with {len(transcript)} segments")

        self._set_loop_enabled(False)
        self._set_highlight(-1)
        self._update_highlight()

    def clear(self) -> None:
        """Loaded -> Idle; every field goes back to its initial value."""
        self._set_highlight(-1)
        self._set_loop_enabled(False)
        self._state = SynchronizerState()
        self._starts = []
        self._max_ends = []
        logger.info("Playback state cleared")

    # --- Clock ---

    def find_segment_index(self, t: float) -> int:
        """Index of the first segment whose window contains t, or -1."""
        i = bisect_right(self._max_ends, t)
        if i < len(self._starts) and self._starts[i] <= t:
            return i
        return -1

    def on_clock_tick(self, t: float) -> None:
        state = self._state
        state.current_time = t
        if state.is_loaded:
            self._update_highlight()
        if state.loop_enabled and t >= state.loop_window.end_time:
            logger.debug(f"Loop end {state.loop_window.end_time:.2f} reached at {t:.2f}")
            self.listener.on_seek_requested(state.loop_window.start_time)

    def set_video_duration(self, duration: float) -> None:
        state = self._state
        state.video_duration = max(0.0, duration)
        if state.loop_enabled and state.loop_window.end_time > self._upper_bound():
            window = state.loop_window
            self._set_loop_window(*self._clamp_preserving(window.start_time, window.end_time))

    # --- Loop window ---

    def toggle_loop(self) -> None:
        state = self._state
        enabled = not state.loop_enabled
        if enabled:
            t = state.current_time
            start = max(0.0, t - self.loop_half_width)
            end = min(self._upper_bound(), t + self.loop_half_width)
            self._set_loop_window(*self._enforce_minimum(start, end), force=True)
        self._set_loop_enabled(enabled)

    def shift_loop(self, delta_seconds: float) -> None:
        """Moves the loop window by delta_seconds, keeping its length."""
        window = self._state.loop_window
        new_start = window.start_time + delta_seconds
        new_end = new_start + window.duration
        self._set_loop_window(*self._clamp_preserving(new_start, new_end))

    def on_seek(self, t: float) -> None:
        """
        Records a position change reported by the player. While looping, a
        seek outside the window moves the window to be centered on t.
        """
        state = self._state
        state.current_time = t
        if state.loop_enabled and not state.loop_window.contains(t):
            half = state.loop_window.duration / 2.0
            self._set_loop_window(*self._clamp_preserving(t - half, t + half))
        if state.is_loaded:
            self._update_highlight()

    # --- User commands ---

    def seek(self, t: float) -> None:
        target = min(max(0.0, t), self._upper_bound())
        self.listener.on_seek_requested(target)
        self.on_seek(target)

    def rewind(self) -> None:
        if self._state.loop_enabled:
            self.shift_loop(-self.shift_seconds)
        else:
            self.seek(self._state.current_time - self.shift_seconds)

    def forward(self) -> None:
        if self._state.loop_enabled:
            self.shift_loop(self.shift_seconds)
        else:
            self.seek(self._state.current_time + self.shift_seconds)

    # --- Internals ---

    def _upper_bound(self) -> float:
        duration = self._state.video_duration
        return duration if duration > 0 else math.inf

    def _enforce_minimum(self, start: float, end: float):
        if start >= end:
            end = min(self._upper_bound(), start + MIN_LOOP_SECONDS)
        if start >= end:
            # start sits at the very end of the video
            start = max(0.0, end - MIN_LOOP_SECONDS)
        return start, end

    def _clamp_preserving(self, start: float, end: float):
        upper = self._upper_bound()
        length = min(end - start, upper)
        if start < 0:
            start, end = 0.0, length
        if end > upper:
            end = upper
            start = max(0.0, end - length)
        return self._enforce_minimum(start, end)

    def _set_loop_window(self, start: float, end: float, force: bool = False) -> None:
        window = LoopWindow(start, end)
        if window == self._state.loop_window and not force:
            return
        self._state.loop_window = window
        logger.debug(f"Loop window {start:.2f}-{end:.2f}")
        self.listener.on_loop_window_changed(start, end)

    def _set_loop_enabled(self, enabled: bool) -> None:
        if enabled == self._state.loop_enabled:
            return
        self._state.loop_enabled = enabled
        self.listener.on_loop_mode_changed(enabled)

    def _update_highlight(self) -> None:
        self._set_highlight(self.find_segment_index(self._state.current_time))

    def _set_highlight(self, index: int) -> None:
        if index == self._state.highlighted_index:
            return
        self._state.highlighted_index = index
        self.listener.on_highlight_changed(index if index >= 0 else None)
