"""
Subtitle resource fetching for CloudMusic.

Downloads a lyric file by URL under a hard deadline. The resource is only
accepted when it contains the "-->" timing marker.
"""

import logging
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import requests

from ..exceptions import SubtitleUnavailable
from ..models import SubtitleLine
from .parser import TIMING_MARKER, parse_subtitles

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 5.0
_CHUNK_SIZE = 8192


def _declared_charset(response: requests.Response) -> str:
    """Charset from the Content-Type header, or UTF-8 when the server names none."""
    content_type = response.headers.get("content-type") or ""
    if "charset" in content_type.lower() and response.encoding:
        return response.encoding
    return "utf-8"


def _download(url: str, timeout: float, verify_ssl: bool,
              responses: List[requests.Response]) -> Tuple[bytes, str]:
    response = requests.get(url, timeout=timeout, verify=verify_ssl, stream=True)
    responses.append(response)
    try:
        if not response.ok:
            raise SubtitleUnavailable(f"Subtitle download failed with status: {response.status_code}")
        body = b"".join(response.iter_content(chunk_size=_CHUNK_SIZE))
        return body, _declared_charset(response)
    finally:
        response.close()


def fetch_subtitle_text(url: str, timeout: float = DEFAULT_FETCH_TIMEOUT, verify_ssl: bool = True) -> str:
    """
    Download subtitle text, aborting once ``timeout`` seconds have elapsed.

    The transfer runs on a worker thread and the caller waits at most
    ``timeout`` seconds for it, so a server trickling bytes cannot hold the
    caller past the deadline. On expiry the response is closed and the
    worker is abandoned.

    Args:
        url: URL of the subtitle resource
        timeout: Total time allowed in seconds (default: 5)
        verify_ssl: Whether to verify SSL certificates

    Returns:
        Subtitle text (UTF-8 unless the server declares another charset)

    Raises:
        SubtitleUnavailable: On transport failure, non-2xx response, deadline
            expiry, or content without a timing marker
    """
    responses: List[requests.Response] = []
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cloudmusic-subtitles")
    future = executor.submit(_download, url, timeout, verify_ssl, responses)

    try:
        body, charset = future.result(timeout=timeout)
    except futures.TimeoutError:
        future.cancel()
        for response in responses:
            response.close()
        raise SubtitleUnavailable(f"Subtitle download exceeded {timeout:.1f}s")
    except requests.RequestException as e:
        raise SubtitleUnavailable(f"Subtitle download failed: {str(e)}")
    finally:
        executor.shutdown(wait=False)

    text = body.decode(charset, errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]

    if TIMING_MARKER not in text:
        raise SubtitleUnavailable("Resource does not look like a timed subtitle file")

    return text


def fetch_subtitles(url: str, timeout: float = DEFAULT_FETCH_TIMEOUT, verify_ssl: bool = True) -> List[SubtitleLine]:
    """
    Fetch and parse a subtitle resource.

    Raises:
        SubtitleUnavailable: If the resource cannot be fetched or yields no lines
    """
    logger.info(f"Fetching subtitles from: {url[:100]}")
    lines = parse_subtitles(fetch_subtitle_text(url, timeout=timeout, verify_ssl=verify_ssl))
    if not lines:
        raise SubtitleUnavailable("Subtitle resource contains no timed lines")

    logger.info(f"Loaded {len(lines)} subtitle lines")
    return lines
