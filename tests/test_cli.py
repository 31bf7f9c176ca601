"""Tests for the command-line entry points."""

import io
import logging
import os

import pytest

from captionloop.batch import read_url_list, run_batch_processing
from captionloop.cli import CLIHandler, follow_transcript

from conftest import VIDEO_ID

EXPECTED_TEXT = "[0:01] Hello everyone, welcome\n\n[0:04] Tom & Jerry\n\n[0:06] it's \"great\"\n"


@pytest.fixture(autouse=True)
def restore_logging():
    """The entry points reconfigure the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def config_path(tmp_path, youtube_server):
    path = tmp_path / "config.yaml"
    path.write_text(f"base_url: \"{youtube_server.base_url}\"\nlog_dir: null\n", encoding="utf-8")
    return str(path)


def run_cli(argv):
    with pytest.raises(SystemExit) as excinfo:
        CLIHandler().run(argv)
    return excinfo.value.code


class TestCLIHandler:

    def test_prints_transcript(self, config_path, capsys):
        assert run_cli(["-u", f"https://www.youtube.com/watch?v={VIDEO_ID}", "-c", config_path]) == 0
        assert capsys.readouterr().out == EXPECTED_TEXT

    def test_writes_srt_file(self, config_path, tmp_path, capsys):
        output = tmp_path / "out.srt"

        assert run_cli(["-u", VIDEO_ID, "-c", config_path, "-f", "srt", "-o", str(output)]) == 0

        assert capsys.readouterr().out == ""
        assert output.read_text(encoding="utf-8").startswith("1\n00:00:01,000 --> 00:00:03,500\nHello everyone, welcome\n")

    def test_acquisition_failure_is_described(self, config_path, youtube_server, capsys):
        del youtube_server.routes[("GET", f"/watch?v={VIDEO_ID}")]

        assert run_cli(["-u", VIDEO_ID, "-c", config_path]) == 1
        assert "Network error (HTTP 404)" in capsys.readouterr().err

    def test_invalid_url(self, config_path, youtube_server, capsys):
        assert run_cli(["-u", "https://example.com/video", "-c", config_path]) == 1
        assert "Invalid YouTube URL." in capsys.readouterr().err
        assert youtube_server.requests == []

    def test_missing_config(self, tmp_path):
        assert run_cli(["-u", VIDEO_ID, "-c", str(tmp_path / "missing.yaml")]) == 1

    def test_invalid_follow_speed(self, config_path):
        assert run_cli(["-u", VIDEO_ID, "-c", config_path, "--follow", "--follow-speed", "0"]) == 1

    def test_missing_url_is_usage_error(self):
        assert run_cli([]) == 2


class TestFollowTranscript:

    def test_prints_segments_as_they_become_active(self, transcript):
        out = io.StringIO()
        sleeps = []

        follow_transcript(transcript, out=out, sleep=sleeps.append)

        assert out.getvalue() == "[0:00] first\n[0:02] second\n[0:07] third\n"
        assert sleeps == [1.0] * 8

    def test_start_and_speed(self, transcript):
        out = io.StringIO()
        sleeps = []

        follow_transcript(transcript, start=3.0, speed=2.0, out=out, sleep=sleeps.append)

        assert out.getvalue() == "[0:02] second\n[0:07] third\n"
        assert sleeps == [0.5] * 5


class TestBatch:

    def test_read_url_list(self, tmp_path):
        path = tmp_path / "urls.txt"
        path.write_text("# videos\nhttps://youtu.be/aaa\n\nhttps://youtu.be/bbb  # second\nhttps://youtu.be/aaa\n")

        assert read_url_list(str(path)) == ["https://youtu.be/aaa", "https://youtu.be/bbb"]

    def test_read_url_list_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_url_list(str(tmp_path / "none.txt"))

    def test_writes_one_file_per_video(self, tmp_path, config_path):
        urls = tmp_path / "urls.txt"
        urls.write_text(f"https://youtu.be/{VIDEO_ID}\n")
        out_dir = tmp_path / "out"

        with pytest.raises(SystemExit) as excinfo:
            run_batch_processing(["-i", str(urls), "-o", str(out_dir), "-c", config_path])

        assert excinfo.value.code == 0
        assert os.listdir(out_dir) == [f"{VIDEO_ID}.txt"]
        assert (out_dir / f"{VIDEO_ID}.txt").read_text(encoding="utf-8") == EXPECTED_TEXT

    def test_failures_set_exit_code(self, tmp_path, config_path):
        urls = tmp_path / "urls.txt"
        urls.write_text(f"not a video\nhttps://youtu.be/{VIDEO_ID}\n")
        out_dir = tmp_path / "out"

        with pytest.raises(SystemExit) as excinfo:
            run_batch_processing(["-i", str(urls), "-o", str(out_dir), "-c", config_path, "-f", "srt"])

        assert excinfo.value.code == 1
        assert os.listdir(out_dir) == [f"{VIDEO_ID}.srt"]
