"""Orchestrates the transcript acquisition pipeline."""

import logging
import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .bootstrap import PageBootstrapFetcher
from .cancellation import CancellationToken, NEVER_CANCELLED
from .catalog import CaptionCatalogClient, EnglishTrackSelector, TrackSelector
from .config_loader import DEFAULT_CONFIG
from .exceptions import AcquisitionCancelled, AcquisitionError, InvalidVideoUrl
from .listener import PlaybackListener
from .models import Transcript
from .timed_text import CaptionXmlParser
from .video_id import VideoIdentifierExtractor
from .web_client import WebClient

logger = logging.getLogger(__name__)

_BARE_VIDEO_ID = re.compile(r"[\w-]{11}")

class TranscriptPipeline:
    """
    Runs URL -> video ID -> API key -> caption catalog -> English track ->
    timed text -> Transcript, strictly in sequence.
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        web_client: Optional[WebClient] = None,
        extractor: Optional[VideoIdentifierExtractor] = None,
        bootstrap: Optional[PageBootstrapFetcher] = None,
        catalog_client: Optional[CaptionCatalogClient] = None,
        track_selector: Optional[TrackSelector] = None,
        caption_parser: Optional[CaptionXmlParser] = None,
    ):
        """
        Initializes the pipeline. Stages not given are built from config.

        Args:
            config: A dictionary containing configuration settings.
            web_client: Shared HTTP client for all stages.
            extractor: Video ID extractor.
            bootstrap: Watch-page fetcher.
            catalog_client: Player endpoint client.
            track_selector: Caption track selector.
            caption_parser: Timed-text fetcher and parser.
        """
        self.config = {**DEFAULT_CONFIG, **(config or {})}
        self.web_client = web_client or WebClient(self.config)
        self.extractor = extractor or VideoIdentifierExtractor()
        self.bootstrap = bootstrap or PageBootstrapFetcher(self.web_client)
        self.catalog_client = catalog_client or CaptionCatalogClient(
            self.web_client,
            client_name=self.config['innertube_client_name'],
            client_version=self.config['innertube_client_version'],
        )
        self.track_selector = track_selector or EnglishTrackSelector()
        self.caption_parser = caption_parser or CaptionXmlParser(self.web_client)

    def resolve_video_id(self, url_or_id: str) -> str:
        """Accepts any supported URL shape, or an 11-character video ID as is."""
        candidate = (url_or_id or "").strip()
        if _BARE_VIDEO_ID.fullmatch(candidate):
            return candidate
        video_id = self.extractor.extract(candidate)
        if video_id is None:
            raise InvalidVideoUrl(url_or_id)
        return video_id

    def run(self, url_or_id: str, token: CancellationToken = NEVER_CANCELLED) -> Transcript:
        """
        Executes the full acquisition pipeline for a single video.

        Args:
            url_or_id: A YouTube URL or bare video ID.
            token: Checked between stages and around every request.

        Returns:
            The transcript.

        Raises:
            AcquisitionError: The error of the first failing stage.
            AcquisitionCancelled: If the token was cancelled mid-run.
        """
        start_time = time.time()
        try:
            video_id = self.resolve_video_id(url_or_id)
            logger.info(f"--- Fetching transcript for video: {video_id} ---")

            logger.info("Step 1: Extracting InnerTube API key from watch page...")
            api_key = self.bootstrap.fetch_api_key(video_id, token)
            token.raise_if_cancelled()

            logger.info("Step 2: Requesting caption catalog...")
            document = self.catalog_client.fetch_catalog(video_id, api_key, token)
            token.raise_if_cancelled()

            logger.info("Step 3: Selecting English caption track...")
            track = self.track_selector.select(document)
            logger.info(f"Selected track {track.language_code} ({track.name})")
            token.raise_if_cancelled()

            logger.info("Step 4: Downloading and parsing captions...")
            segments = self.caption_parser.fetch_segments(track, token)
            token.raise_if_cancelled()

            transcript = Transcript(
                language_name=track.name,
                language_code=track.language_code,
                segments=segments,
                video_id=video_id,
            )
            logger.info(
                f"--- Transcript for {video_id} ready: {len(transcript)} segments "
                f"in {time.time() - start_time:.2f} seconds ---"
            )
            return transcript

        except AcquisitionCancelled:
            logger.info(f"Transcript fetch for {url_or_id} cancelled")
            raise
        except AcquisitionError as e:
            # Expected failures, no stack needed
            logger.error(f"Transcript fetch failed for {url_or_id}: {e}")
            raise
        except Exception as e:
            logger.critical(f"An unexpected error occurred while fetching transcript: {e}", exc_info=True)
            raise AcquisitionError(f"An unexpected error occurred: {e}") from e


class TranscriptLoader:
    """
    Runs the pipeline in the background, one run at a time.

    load() cancels whatever run is in flight before submitting the new one,
    and a run only notifies the listener if it is still the current run when
    it finishes, so a stale response never replaces a newer transcript.
    Listener callbacks are invoked on the worker thread.
    """

    def __init__(self, pipeline: TranscriptPipeline, listener: Optional[PlaybackListener] = None):
        self.pipeline = pipeline
        self.listener = listener or PlaybackListener()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="transcript-loader")
        self._lock = threading.RLock()
        self._current_token: Optional[CancellationToken] = None

    def load(self, url_or_id: str, listener: Optional[PlaybackListener] = None) -> Future:
        """
        Starts a run; the future resolves to the Transcript or None.

        listener, when given, receives this run's outcome instead of the
        loader's own listener.
        """
        with self._lock:
            if self._current_token is not None:
                self._current_token.cancel()
            token = CancellationToken()
            self._current_token = token
            return self._executor.submit(self._run, url_or_id, token, listener or self.listener)

    def cancel(self) -> None:
        """Cancels the in-flight run, if any. Its result is dropped."""
        with self._lock:
            if self._current_token is not None:
                self._current_token.cancel()
                self._current_token = None

    def shutdown(self, wait: bool = True) -> None:
        self.cancel()
        self._executor.shutdown(wait=wait)

    def _is_current(self, token: CancellationToken) -> bool:
        return token is self._current_token and not token.cancelled

    def _run(self, url_or_id: str, token: CancellationToken, listener: PlaybackListener) -> Optional[Transcript]:
        try:
            token.raise_if_cancelled()
            transcript = self.pipeline.run(url_or_id, token)
        except AcquisitionCancelled:
            return None
        except AcquisitionError as e:
            with self._lock:
                if self._is_current(token):
                    listener.on_transcript_failed(e)
            return None

        with self._lock:
            if not self._is_current(token):
                logger.info(f"Discarding stale transcript for {url_or_id}")
                return None
            listener.on_transcript_loaded(transcript)
        return transcript
