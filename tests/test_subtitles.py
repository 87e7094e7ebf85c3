import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, patch

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from cloudmusic.exceptions import SubtitleUnavailable
from cloudmusic.models import SubtitleLine
from cloudmusic.subtitles import SubtitleParser, fetch_subtitle_text, fetch_subtitles, parse_subtitles


def test_single_block_without_index():
    lines = parse_subtitles("00:00:01,000 --> 00:00:02,500\nHello")
    assert lines == [SubtitleLine(start_time=1.0, end_time=2.5, text="Hello")]


def test_malformed_block_dropped_between_valid_blocks():
    raw = "1\n00:00:00,000 --> 00:00:01,000\nHi\n\n2\nBADLINE\n\n3\n00:00:02,000 --> 00:00:03,000\nBye"
    lines = parse_subtitles(raw)
    assert [line.text for line in lines] == ["Hi", "Bye"]
    assert lines[1].start_time == 2.0
    assert lines[1].end_time == 3.0


def test_block_with_only_index_and_timing_is_dropped():
    raw = "1\n00:00:00,000 --> 00:00:01,000\n\n2\n00:00:01,000 --> 00:00:02,000\nNext"
    lines = parse_subtitles(raw)
    assert [line.text for line in lines] == ["Next"]


def test_multiline_text_joined_with_single_space():
    raw = "1\n00:01:02,250 --> 00:01:04,000\nfirst part\n  second part  \n"
    lines = parse_subtitles(raw)
    assert lines[0].text == "first part second part"
    assert lines[0].start_time == pytest.approx(62.25)


def test_crlf_and_dot_separator():
    raw = "1\r\n01:00:00.500 --> 01:00:01.000\r\nOne\r\n\r\n\r\n2\r\n01:00:01.000 --> 01:00:02.000\r\nTwo\r\n"
    lines = parse_subtitles(raw)
    assert [line.text for line in lines] == ["One", "Two"]
    assert lines[0].start_time == pytest.approx(3600.5)


def test_missing_milliseconds_default_to_zero():
    lines = parse_subtitles("1\n00:00:05 --> 00:00:07\nNo millis")
    assert lines[0].start_time == 5.0
    assert lines[0].end_time == 7.0


def test_out_of_order_blocks_keep_file_order():
    raw = "1\n00:00:10,000 --> 00:00:12,000\nLater\n\n2\n00:00:01,000 --> 00:00:02,000\nEarlier"
    assert [line.text for line in parse_subtitles(raw)] == ["Later", "Earlier"]


@pytest.mark.parametrize("raw", ["", "   \n\n  ", None, "no timing here at all"])
def test_empty_or_untimed_input_yields_no_lines(raw):
    assert parse_subtitles(raw) == []


def test_unexpected_input_type_yields_empty_list():
    assert parse_subtitles(12345) == []


def test_parse_file(tmp_path):
    path = tmp_path / "song.srt"
    path.write_text("\ufeff1\n00:00:00,000 --> 00:00:01,000\nHi\n", encoding="utf-8")
    assert SubtitleParser().parse_file(str(path)) == [SubtitleLine(0.0, 1.0, "Hi")]


def _response(status_code=200, chunks=(b"",), encoding="utf-8", content_type="text/plain; charset=utf-8"):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.encoding = encoding
    response.headers = CaseInsensitiveDict({"Content-Type": content_type})
    response.iter_content.return_value = iter(chunks)
    return response


def test_fetch_returns_parsed_lines():
    body = b"1\n00:00:00,000 --> 00:00:01,000\nHi\n"
    with patch("cloudmusic.subtitles.fetcher.requests.get", return_value=_response(chunks=[body])) as mock_get:
        lines = fetch_subtitles("https://oss.example.com/homepage/lyrics/1_song.srt")

    assert lines == [SubtitleLine(0.0, 1.0, "Hi")]
    assert mock_get.call_args[1]["timeout"] == 5.0
    assert mock_get.call_args[1]["stream"] is True


def test_fetch_rejects_content_without_marker():
    with patch("cloudmusic.subtitles.fetcher.requests.get",
               return_value=_response(chunks=[b"<html>Not Found</html>"])):
        with pytest.raises(SubtitleUnavailable):
            fetch_subtitle_text("https://example.com/lyrics.srt")


def test_fetch_rejects_non_2xx():
    with patch("cloudmusic.subtitles.fetcher.requests.get", return_value=_response(status_code=404)):
        with pytest.raises(SubtitleUnavailable):
            fetch_subtitle_text("https://example.com/lyrics.srt")


def test_fetch_wraps_transport_errors():
    with patch("cloudmusic.subtitles.fetcher.requests.get", side_effect=requests.Timeout("timed out")):
        with pytest.raises(SubtitleUnavailable):
            fetch_subtitle_text("https://example.com/lyrics.srt")


def test_fetch_with_marker_but_no_valid_blocks_is_unavailable():
    with patch("cloudmusic.subtitles.fetcher.requests.get",
               return_value=_response(chunks=[b"1\nbroken --> line\n"])):
        with pytest.raises(SubtitleUnavailable):
            fetch_subtitles("https://example.com/lyrics.srt")


def test_whitespace_only_separator_line_keeps_next_block():
    raw = "1\n00:00:00,000 --> 00:00:01,000\nHi\n\n \n2\n00:00:02,000 --> 00:00:03,000\nBye"
    assert [line.text for line in parse_subtitles(raw)] == ["Hi", "Bye"]


def test_separator_with_tabs_and_crlf():
    raw = "1\r\n00:00:00,000 --> 00:00:01,000\r\nHi\r\n\t\r\n\r\n2\r\n00:00:02,000 --> 00:00:03,000\r\nBye"
    assert [line.text for line in parse_subtitles(raw)] == ["Hi", "Bye"]


def test_fetch_decodes_utf8_when_no_charset_declared():
    body = "1\n00:00:00,000 --> 00:00:01,000\n你好\n".encode("utf-8")
    response = _response(chunks=[body], encoding="ISO-8859-1", content_type="text/plain")
    with patch("cloudmusic.subtitles.fetcher.requests.get", return_value=response):
        text = fetch_subtitle_text("https://example.com/lyrics.srt")
    assert "你好" in text


def test_fetch_honours_declared_charset():
    body = "1\n00:00:00,000 --> 00:00:01,000\ncafé\n".encode("latin-1")
    response = _response(chunks=[body], encoding="ISO-8859-1", content_type="text/plain; charset=ISO-8859-1")
    with patch("cloudmusic.subtitles.fetcher.requests.get", return_value=response):
        text = fetch_subtitle_text("https://example.com/lyrics.srt")
    assert "café" in text


# Local HTTP server


SRT_BODY = "1\n00:00:00,000 --> 00:00:01,000\n你好\n".encode("utf-8")


@pytest.fixture
def lyrics_server():
    stop = threading.Event()

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", str(len(SRT_BODY)))
            self.end_headers()
            try:
                if self.path == "/slow.srt":
                    for index in range(len(SRT_BODY)):
                        if stop.is_set():
                            return
                        self.wfile.write(SRT_BODY[index:index + 1])
                        self.wfile.flush()
                        time.sleep(0.5)
                else:
                    self.wfile.write(SRT_BODY)
            except OSError:
                pass

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    stop.set()
    server.shutdown()
    server.server_close()


def test_fetch_from_server_without_charset_is_utf8(lyrics_server):
    lines = fetch_subtitles(f"{lyrics_server}/song.srt", timeout=5.0)
    assert lines == [SubtitleLine(0.0, 1.0, "你好")]


def test_fetch_aborts_slow_server_at_deadline(lyrics_server):
    started = time.monotonic()
    with pytest.raises(SubtitleUnavailable):
        fetch_subtitle_text(f"{lyrics_server}/slow.srt", timeout=1.0)
    assert time.monotonic() - started < 2.5
