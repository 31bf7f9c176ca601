"""Pytest configuration and fixtures for CaptionLoop tests."""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from captionloop.listener import PlaybackListener
from captionloop.models import Transcript, TranscriptSegment

VIDEO_ID = "8YkkvVe_Z8w"
API_KEY = "AIzaSyTestKey123"

WATCH_PAGE = """<!DOCTYPE html><html><head><script>
var ytcfg = {"INNERTUBE_CONTEXT_CLIENT_VERSION":"2.20250101.00.00","INNERTUBE_API_KEY":"%s","LINK_API_KEY":"other"};
</script></head><body></body></html>""" % API_KEY

SRV3_BODY = """<?xml version="1.0" encoding="utf-8" ?><timedtext format="3">
<head><pen id="1" b="1"/><ws id="0"/><wp id="0"/></head>
<body>
<p t="4200" d="1800" w="1"><s ac="0">Tom</s><s t="300" ac="0"> &amp;</s><s t="600" ac="0"> Jerry</s></p>
<p t="1000" d="2500" w="1"><s ac="0">Hello</s><s t="400" ac="0"> everyone,</s><s t="900" ac="0">   welcome</s></p>
<p t="3500" d="500" w="1" a="1">
</p>
<p t="6000" d="2000" w="1"><s ac="0">it&#39;s</s><s t="200" ac="0"> &quot;great&quot;</s></p>
</body></timedtext>"""

# Segments SRV3_BODY parses to, in order.
EXPECTED_SEGMENTS = [
    TranscriptSegment(1.0, 2.5, "Hello everyone, welcome"),
    TranscriptSegment(4.2, 1.8, "Tom & Jerry"),
    TranscriptSegment(6.0, 2.0, 'it\'s "great"'),
]


def player_response(base_url, tracks=None):
    """A trimmed player response with an English ASR track."""
    if tracks is None:
        tracks = [
            {
                "baseUrl": f"{base_url}/api/timedtext?v={VIDEO_ID}&lang=en",
                "name": {"runs": [{"text": "English (auto-generated)"}]},
                "languageCode": "en",
                "kind": "asr",
            }
        ]
    return {
        "playabilityStatus": {"status": "OK"},
        "captions": {"playerCaptionsTracklistRenderer": {"captionTracks": tracks}},
    }


class RecordingListener(PlaybackListener):
    """Collects every outbound event as (name, *args)."""

    def __init__(self):
        self.events = []
        self.done = threading.Event()

    def on_transcript_loaded(self, transcript):
        self.events.append(("loaded", transcript))
        self.done.set()

    def on_transcript_failed(self, error):
        self.events.append(("failed", error))
        self.done.set()

    def on_highlight_changed(self, segment_index):
        self.events.append(("highlight", segment_index))

    def on_loop_window_changed(self, start, end):
        self.events.append(("window", start, end))

    def on_loop_mode_changed(self, enabled):
        self.events.append(("loop", enabled))

    def on_seek_requested(self, seconds):
        self.events.append(("seek", seconds))

    def named(self, name):
        return [event[1:] for event in self.events if event[0] == name]


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def transcript():
    return Transcript(
        "English",
        "en",
        [
            TranscriptSegment(0.0, 2.0, "first"),
            TranscriptSegment(2.0, 3.0, "second"),
            TranscriptSegment(7.0, 1.0, "third"),
        ],
        video_id=VIDEO_ID,
    )


class FakeWebClient:
    """Stands in for WebClient; answers from canned bodies keyed by URL."""

    def __init__(self, responses=None, base_url="https://www.youtube.com"):
        self.responses = responses or {}
        self.base_url = base_url
        self.requests = []

    def browser_headers(self):
        return {"User-Agent": "test-agent", "Accept": "text/html", "Accept-Language": "en-US"}

    def _answer(self, url):
        answer = self.responses[url]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get_text(self, url, token=None, headers=None):
        self.requests.append(("GET", url, headers))
        return self._answer(url)

    def post_json(self, url, payload, token=None):
        self.requests.append(("POST", url, payload))
        return self._answer(url)


class _ScriptedHandler(BaseHTTPRequestHandler):
    def _reply(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length).decode("utf-8") if length else ""
        self.server.requests.append((self.command, self.path, dict(self.headers), body))
        status, content_type, payload = self.server.routes.get(
            (self.command, self.path), (404, "text/plain", "not found")
        )
        data = payload.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _reply
    do_POST = _reply

    def log_message(self, format, *args):
        pass


@pytest.fixture
def scripted_server():
    """
    Local HTTP server replaying fixed bodies. Routes are keyed by
    (method, path-with-query) and map to (status, content type, body).
    """
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ScriptedHandler)
    server.routes = {}
    server.requests = []
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def youtube_server(scripted_server):
    """The scripted server loaded with a watch page, player response and srv3 body."""
    base = scripted_server.base_url
    scripted_server.routes.update({
        ("GET", f"/watch?v={VIDEO_ID}"): (200, "text/html", WATCH_PAGE),
        ("POST", f"/youtubei/v1/player?key={API_KEY}"): (200, "application/json", json.dumps(player_response(base))),
        ("GET", f"/api/timedtext?v={VIDEO_ID}&lang=en"): (200, "text/xml", SRV3_BODY),
    })
    return scripted_server
