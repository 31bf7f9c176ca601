"""Ties background transcript loading to the playback synchronizer."""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Optional

from .config_loader import DEFAULT_CONFIG
from .exceptions import AcquisitionError
from .listener import PlaybackListener
from .models import Transcript
from .pipeline import TranscriptLoader, TranscriptPipeline
from .synchronizer import PlaybackSynchronizer

logger = logging.getLogger(__name__)

class _InboxListener(PlaybackListener):
    """Queues a run's outcome, tagged with the load request it belongs to."""

    def __init__(self, inbox: queue.Queue, generation: int):
        self.inbox = inbox
        self.generation = generation

    def on_transcript_loaded(self, transcript: Transcript) -> None:
        self.inbox.put((self.generation, transcript, None))

    def on_transcript_failed(self, error: AcquisitionError) -> None:
        self.inbox.put((self.generation, None, error))

class PlaybackSession:
    """
    The surface a player/UI driver talks to.

    Loading runs on the loader's worker thread, but its outcome is only
    queued there. The outcome reaches the synchronizer and the listener when
    the driver's own context calls pump(), which every inbound call below
    does first. Inbound calls must all come from that one context.
    """

    def __init__(
        self,
        listener: Optional[PlaybackListener] = None,
        config: Optional[dict] = None,
        pipeline: Optional[TranscriptPipeline] = None,
    ):
        config = {**DEFAULT_CONFIG, **(config or {})}
        self.listener = listener or PlaybackListener()
        self.synchronizer = PlaybackSynchronizer(
            listener=self.listener,
            loop_half_width=float(config['loop_half_width']),
            shift_seconds=float(config['loop_shift_seconds']),
        )
        self.loader = TranscriptLoader(pipeline or TranscriptPipeline(config))
        self._inbox: queue.Queue = queue.Queue()
        self._generation = 0
        self._generation_lock = threading.Lock()

    # --- Loading ---

    def load(self, url_or_id: str) -> Future:
        """Drops the current transcript and starts loading a new one."""
        with self._generation_lock:
            self._generation += 1
            generation = self._generation
        self.synchronizer.clear()
        logger.info(f"Loading transcript for {url_or_id}")
        return self.loader.load(url_or_id, _InboxListener(self._inbox, generation))

    def clear(self) -> None:
        with self._generation_lock:
            self._generation += 1
        self.loader.cancel()
        self.pump()
        self.synchronizer.clear()

    def pump(self) -> int:
        """Applies queued load outcomes; returns how many were delivered."""
        delivered = 0
        while True:
            try:
                generation, transcript, error = self._inbox.get_nowait()
            except queue.Empty:
                return delivered
            if generation != self._generation:
                logger.debug("Dropping outcome of a superseded load request")
                continue
            if transcript is not None:
                self.synchronizer.load(transcript)
                self.listener.on_transcript_loaded(transcript)
            else:
                self.listener.on_transcript_failed(error)
            delivered += 1

    def shutdown(self) -> None:
        self.loader.shutdown(wait=True)

    # --- Player events ---

    def on_clock_tick(self, seconds: float) -> None:
        self.pump()
        self.synchronizer.on_clock_tick(seconds)

    def on_video_duration_known(self, seconds: float) -> None:
        self.pump()
        self.synchronizer.set_video_duration(seconds)

    # --- User commands ---

    def toggle_loop(self) -> None:
        self.pump()
        self.synchronizer.toggle_loop()

    def rewind(self) -> None:
        self.pump()
        self.synchronizer.rewind()

    def forward(self) -> None:
        self.pump()
        self.synchronizer.forward()

    def seek(self, seconds: float) -> None:
        self.pump()
        self.synchronizer.seek(seconds)
