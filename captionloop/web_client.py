"""HTTP access shared by all acquisition stages."""

import logging
from typing import Optional

import requests

from .cancellation import CancellationToken, NEVER_CANCELLED
from .config_loader import DEFAULT_CONFIG
from .exceptions import NetworkError

logger = logging.getLogger(__name__)

class WebClient:
    """
    Thin wrapper over a requests.Session.

    Every call carries a (connect, read) timeout, checks the cancellation
    token before the request and after the response, and turns transport
    failures and non-success statuses into NetworkError. Nothing from
    requests escapes this class.
    """

    def __init__(self, config: Optional[dict] = None, session: Optional[requests.Session] = None):
        config = {**DEFAULT_CONFIG, **(config or {})}
        self.base_url = config['base_url'].rstrip('/')
        self.user_agent = config['user_agent']
        self.accept = config['accept']
        self.accept_language = config['accept_language']
        self.timeout = (float(config['connect_timeout']), float(config['read_timeout']))
        self.session = session or requests.Session()

    def browser_headers(self) -> dict:
        """Headers of a desktop browser; the watch page differs without them."""
        return {
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }

    def get_text(self, url: str, token: CancellationToken = NEVER_CANCELLED, headers: Optional[dict] = None) -> str:
        response = self._send("GET", url, token, headers=headers or {"User-Agent": self.user_agent})
        return response.text

    def post_json(self, url: str, payload: dict, token: CancellationToken = NEVER_CANCELLED) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "*/*",
            "Accept-Language": self.accept_language,
            "Content-Type": "application/json",
        }
        response = self._send("POST", url, token, json=payload, headers=headers)
        return response.text

    def _send(self, method: str, url: str, token: CancellationToken, **kwargs) -> requests.Response:
        token.raise_if_cancelled()
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.warning(f"{method} {url} timed out: {e}")
            raise NetworkError(f"Request timed out: {url}", url=url) from e
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(f"Request failed: {e}", url=url) from e
        token.raise_if_cancelled()

        if "charset" not in response.headers.get("Content-Type", "").lower():
            # Upstream bodies are UTF-8 unless the header says otherwise
            response.encoding = "utf-8"

        if not response.ok:
            logger.warning(f"{method} {url} returned HTTP {response.status_code}")
            raise NetworkError(
                f"HTTP {response.status_code} from {url}",
                url=url,
                status_code=response.status_code,
            )
        logger.debug(f"{method} {url} -> {response.status_code}, {len(response.content)} bytes")
        return response

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
