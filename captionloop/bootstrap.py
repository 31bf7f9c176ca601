"""Fetches the watch page and scrapes the InnerTube API key out of it."""

import logging
import re
from typing import List, Optional, Pattern, Sequence

from .cancellation import CancellationToken, NEVER_CANCELLED
from .exceptions import ParseError, ParseErrorKind
from .video_id import watch_url
from .web_client import WebClient

logger = logging.getLogger(__name__)

# Key names and quoting seen in the wild, tried in order.
API_KEY_PATTERNS = (
    r'"innertubeApiKey"\s*:\s*"([^"]+)"',
    r'"INNERTUBE_API_KEY"\s*:\s*"([^"]+)"',
    r'innertubeApiKey"\s*:\s*"([^"]+)"',
    r'INNERTUBE_API_KEY"\s*:\s*"([^"]+)"',
)

_compiled_patterns = [re.compile(p) for p in API_KEY_PATTERNS]

def extract_api_key(html: str, patterns: Optional[Sequence[Pattern]] = None) -> Optional[str]:
    """
    Returns the first non-blank API key matched by the ordered pattern list.

    Args:
        html: Watch-page markup.
        patterns: Compiled patterns to try, API_KEY_PATTERNS by default.

    Returns:
        The key, or None if no pattern produced one.
    """
    for pattern in patterns or _compiled_patterns:
        match = pattern.search(html)
        if match and match.group(1).strip():
            logger.debug(f"Found API key with pattern: {pattern.pattern}")
            return match.group(1).strip()
    return None

class PageBootstrapFetcher:
    """Loads https://www.youtube.com/watch?v=<id> and extracts the API key."""

    def __init__(self, web_client: WebClient, extra_patterns: Sequence[str] = ()):
        self.web_client = web_client
        self.patterns: List[Pattern] = list(_compiled_patterns) + [re.compile(p) for p in extra_patterns]

    def fetch_api_key(self, video_id: str, token: CancellationToken = NEVER_CANCELLED) -> str:
        """
        Raises:
            NetworkError: If the watch page cannot be fetched.
            ParseError: MISSING_API_KEY if no pattern matches.
        """
        url = watch_url(video_id, self.web_client.base_url)
        html = self.web_client.get_text(url, token, headers=self.web_client.browser_headers())
        logger.info(f"Fetched watch page for {video_id}, length: {len(html)}")

        api_key = extract_api_key(html, self.patterns)
        if api_key is None:
            logger.warning(f"No InnerTube API key found in watch page for {video_id}")
            raise ParseError(ParseErrorKind.MISSING_API_KEY, f"No API key in watch page for {video_id}")
        return api_key
