"""Queries the InnerTube player endpoint for the caption catalog and picks a track."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote

from .cancellation import CancellationToken, NEVER_CANCELLED
from .config_loader import DEFAULT_CONFIG
from .exceptions import NetworkError, ParseError, ParseErrorKind
from .models import CaptionTrackRef
from .web_client import WebClient

logger = logging.getLogger(__name__)

PLAYER_ENDPOINT = "/youtubei/v1/player"

class CaptionCatalogClient:
    """
    Calls the player endpoint posing as the Android app.

    Caption tracks are only reliably present in the response for some client
    identities, hence the spoofed clientName/clientVersion.
    """

    def __init__(
        self,
        web_client: WebClient,
        client_name: str = DEFAULT_CONFIG['innertube_client_name'],
        client_version: str = DEFAULT_CONFIG['innertube_client_version'],
    ):
        self.web_client = web_client
        self.client_name = client_name
        self.client_version = client_version

    def build_payload(self, video_id: str) -> dict:
        return {
            "context": {
                "client": {
                    "clientName": self.client_name,
                    "clientVersion": self.client_version,
                }
            },
            "videoId": video_id,
        }

    def fetch_catalog(self, video_id: str, api_key: str, token: CancellationToken = NEVER_CANCELLED) -> dict:
        """
        Returns the decoded player response.

        Raises:
            NetworkError: On non-success status, an empty body, or a body that
                          is not a JSON object.
        """
        url = f"{self.web_client.base_url}{PLAYER_ENDPOINT}?key={quote(api_key, safe='')}"
        body = self.web_client.post_json(url, self.build_payload(video_id), token)
        if not body or not body.strip():
            raise NetworkError(f"Empty player response for {video_id}", url=url)
        logger.info(f"Player response for {video_id}, length: {len(body)}")

        try:
            document = json.loads(body)
        except ValueError as e:
            logger.warning(f"Player response for {video_id} is not JSON: {body[:200]!r}")
            raise NetworkError(f"Malformed player response for {video_id}", url=url) from e
        if not isinstance(document, dict):
            raise NetworkError(f"Unexpected player response type for {video_id}", url=url)
        return document

class TrackSelector(ABC):
    """Abstract base class for choosing a caption track from a player response."""

    @abstractmethod
    def select(self, document: dict) -> CaptionTrackRef:
        """
        Picks one caption track.

        Args:
            document: The decoded player response.

        Returns:
            The chosen track.

        Raises:
            ParseError: If the catalog is missing or has no suitable track.
        """
        pass

class EnglishTrackSelector(TrackSelector):
    """First track whose languageCode starts with "en" and which has a baseUrl."""

    language_prefix = "en"

    def select(self, document: dict) -> CaptionTrackRef:
        tracks = self._caption_tracks(document)
        logger.debug(f"Found {len(tracks)} caption tracks")

        # Upstream order already ranks default tracks first, so first match wins.
        for i, track in enumerate(tracks):
            if not isinstance(track, dict):
                continue
            language_code = track.get("languageCode")
            base_url = track.get("baseUrl")
            if not isinstance(language_code, str) or not isinstance(base_url, str):
                logger.debug(f"Skipping caption track {i} with malformed languageCode/baseUrl")
                continue
            logger.debug(f"Caption track {i}: language={language_code}, hasUrl={bool(base_url)}")
            if language_code.startswith(self.language_prefix) and base_url:
                return CaptionTrackRef(
                    language_code=language_code,
                    base_url=base_url,
                    name=_track_name(track) or "English",
                )

        raise ParseError(ParseErrorKind.NO_ENGLISH_TRACK)

    def _caption_tracks(self, document: dict) -> list:
        captions = document.get("captions")
        if not isinstance(captions, dict):
            logger.warning(f"No captions object in player response. Top-level keys: {', '.join(document)}")
            raise ParseError(ParseErrorKind.NO_CAPTIONS_AVAILABLE)

        renderer = captions.get("playerCaptionsTracklistRenderer")
        if not isinstance(renderer, dict):
            logger.warning(f"No playerCaptionsTracklistRenderer. Caption keys: {', '.join(captions)}")
            raise ParseError(ParseErrorKind.NO_CAPTIONS_AVAILABLE)

        tracks = renderer.get("captionTracks")
        if not isinstance(tracks, list):
            logger.warning("No captionTracks in playerCaptionsTracklistRenderer")
            raise ParseError(ParseErrorKind.NO_CAPTIONS_AVAILABLE)
        return tracks

def _track_name(track: dict) -> Optional[str]:
    name = track.get("name")
    if not isinstance(name, dict):
        return None
    if name.get("simpleText"):
        return name["simpleText"]
    runs = name.get("runs") or []
    text = "".join(run.get("text", "") for run in runs if isinstance(run, dict))
    return text or None

def select_english(document: dict) -> CaptionTrackRef:
    return EnglishTrackSelector().select(document)
