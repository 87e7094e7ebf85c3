"""
Object store client for CloudMusic.

Uploads and deletes single media objects (covers, audio, lyric files) on an
S3-compatible endpoint using SigV4-signed requests. No multi-part uploads,
no retries, no caching.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

import requests

from ..exceptions import DeleteError, SigningError, UploadError
from ..models import MediaFile, StoreConfig
from ..utils import build_object_key
from .signer import Clock, sign_request, utc_now

logger = logging.getLogger(__name__)


class ObjectStore:
    """
    Client for a single bucket on an S3-compatible object store.

    Holds only immutable configuration, so one instance can be shared freely.
    Callers must not upload the same logical file twice concurrently, and
    must serialize upload/delete pairs on the same key themselves.
    """

    def __init__(self, config: StoreConfig, clock: Clock = utc_now):
        """
        Initialize object store client.

        Args:
            config: Endpoint, bucket, credentials and gateway headers
            clock: Callable returning the current UTC datetime (used for keys and signing)
        """
        self.config = config
        self.clock = clock

    def _now(self) -> datetime:
        try:
            now = self.clock()
        except Exception as e:
            raise SigningError(f"Clock unavailable: {str(e)}")
        if now is None:
            raise SigningError("Clock returned no instant")
        return now

    def _split_extra_headers(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        if self.config.sign_extra_headers:
            return dict(self.config.extra_headers), {}
        return {}, dict(self.config.extra_headers)

    def _signed_headers(self, method: str, url: str, now: datetime,
                        content_type: Optional[str] = None) -> Dict[str, str]:
        signed, unsigned = self._split_extra_headers()
        return sign_request(
            method,
            url,
            self.config.credential,
            content_type=content_type,
            extra_headers=signed,
            unsigned_headers=unsigned,
            clock=lambda: now,
        )

    def build_key(self, filename: str, folder: str, now: Optional[datetime] = None) -> str:
        """
        Build the object key for an upload made at ``now``.

        Returns:
            Key of the form folder/<millis>_<sanitized filename>
        """
        now = now or self._now()
        return build_object_key(folder, filename, int(now.timestamp() * 1000))

    def upload(self, file: MediaFile, folder: str = "music") -> str:
        """
        Upload a file with a signed PUT.

        Args:
            file: File name, MIME type and contents
            folder: Key prefix (e.g. "covers", "tracks", "lyrics")

        Returns:
            Fully-qualified URL of the stored object

        Raises:
            UploadError: On any non-2xx response or transport failure
            SigningError: If no signing instant is available
        """
        now = self._now()
        key = self.build_key(file.name, folder, now)
        url = self.config.object_url(key)
        headers = self._signed_headers("PUT", url, now, content_type=file.mime_type)

        logger.info(f"Uploading {file.name} ({file.size} bytes) to {key}")

        try:
            response = requests.put(
                url,
                data=file.data,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as e:
            logger.error(f"Error uploading {file.name}: {str(e)}")
            raise UploadError(None, f"Upload failed: {str(e)}")

        if not response.ok:
            logger.error(f"Upload of {file.name} rejected with status {response.status_code}: {response.text[:500]}")
            raise UploadError(response.status_code, response.text or f"Upload failed with status: {response.status_code}")

        logger.info(f"Uploaded {file.name} to {url}")
        return url

    def remove(self, object_url: str) -> None:
        """
        Delete an object with a signed DELETE.

        Best-effort: 404 counts as success, any other failure is logged and
        swallowed. URLs outside this store's bucket are ignored without
        making a request.

        Args:
            object_url: URL previously returned by upload()
        """
        if not self.config.owns(object_url):
            logger.debug(f"Skipping delete of foreign URL: {object_url[:100] if object_url else 'N/A'}")
            return

        try:
            headers = self._signed_headers("DELETE", object_url, self._now())
            response = requests.delete(
                object_url,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except (requests.RequestException, SigningError) as e:
            error = DeleteError(None, str(e))
            logger.error(f"Error deleting {object_url}: {error}")
            return

        if response.ok or response.status_code == 404:
            logger.info(f"Deleted {object_url}")
            return

        error = DeleteError(response.status_code, response.text[:500])
        logger.error(f"Delete of {object_url} failed: {error}")
