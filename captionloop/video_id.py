"""Derives a YouTube video ID from the URL shapes people paste."""

import logging
import re
from typing import List, Optional, Pattern, Sequence

logger = logging.getLogger(__name__)

_HOST = r"(?:https?://)?(?:www\.|m\.)?(?:youtube\.com|youtube-nocookie\.com)"

# Ordered: the first pattern that matches wins.
DEFAULT_PATTERNS = (
    _HOST + r"/watch\?(?:[^#\s]*?&)??v=([\w-]+)",
    r"(?:https?://)?youtu\.be/([\w-]+)",
    _HOST + r"/embed/([\w-]+)",
    _HOST + r"/v/([\w-]+)",
)

class VideoIdentifierExtractor:
    """Applies an ordered pattern table to a URL and returns the first captured ID."""

    def __init__(self, patterns: Sequence[str] = DEFAULT_PATTERNS):
        self.patterns: List[Pattern] = [re.compile(p) for p in patterns]

    def add_pattern(self, pattern: str) -> None:
        """Appends a pattern with lowest precedence."""
        self.patterns.append(re.compile(pattern))

    def extract(self, url: Optional[str]) -> Optional[str]:
        if not url:
            return None
        url = url.strip()
        for pattern in self.patterns:
            match = pattern.search(url)
            if match:
                logger.debug(f"Video ID {match.group(1)} matched by pattern {pattern.pattern}")
                return match.group(1)
        logger.warning(f"Could not extract video ID from URL: {url}")
        return None

_default_extractor = VideoIdentifierExtractor()

def extract_video_id(url: Optional[str]) -> Optional[str]:
    """Extracts a video ID using the default pattern table."""
    return _default_extractor.extract(url)

def watch_url(video_id: str, base_url: str = "https://www.youtube.com") -> str:
    """Canonical watch-page URL for a video ID."""
    return f"{base_url.rstrip('/')}/watch?v={video_id}"
