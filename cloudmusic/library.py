"""
Media library operations for CloudMusic.

Coordinates the object store with the song catalog:

- add_song: optimistic record first, media upload in the background
- replace_asset: upload the new file, persist its URL, then delete the old one
- delete_song: remove the catalog row, then clean up stored media

The catalog itself is an external collaborator; InMemoryCatalog is a
reference implementation used by tests and examples.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from .exceptions import CloudMusicError, UploadError
from .metadata import MetadataClient
from .models import MediaFile, Song
from .storage.client import ObjectStore

logger = logging.getLogger(__name__)

ASSET_FOLDERS = {
    "cover_url": "covers",
    "audio_url": "tracks",
    "lyrics_url": "lyrics",
}


class Catalog:
    """Interface to the remote song database."""

    def list_songs(self) -> List[Song]:
        raise NotImplementedError

    def insert_song(self, song: Song) -> None:
        raise NotImplementedError

    def update_song(self, song_id: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete_song(self, song_id: str) -> None:
        raise NotImplementedError


class InMemoryCatalog(Catalog):
    """Catalog kept in process memory, newest songs first."""

    def __init__(self, songs: Optional[List[Song]] = None):
        self._lock = threading.Lock()
        self._records: Dict[str, Dict[str, Any]] = {}
        for song in songs or []:
            self.insert_song(song)

    def list_songs(self) -> List[Song]:
        with self._lock:
            records = list(self._records.values())
        songs = [Song.from_record(record) for record in records]
        return sorted(songs, key=lambda s: s.added_at, reverse=True)

    def get_song(self, song_id: str) -> Optional[Song]:
        with self._lock:
            record = self._records.get(song_id)
        return Song.from_record(record) if record else None

    def insert_song(self, song: Song) -> None:
        with self._lock:
            if song.id in self._records:
                raise CloudMusicError(f"Song already exists: {song.id}")
            self._records[song.id] = song.to_record()

    def update_song(self, song_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            if song_id not in self._records:
                raise CloudMusicError(f"Song not found: {song_id}")
            self._records[song_id].update(fields)

    def delete_song(self, song_id: str) -> None:
        with self._lock:
            self._records.pop(song_id, None)


class PendingSong:
    """
    Result of the first phase of add_song().

    ``song`` is the optimistic record (is_uploading=True). ``future`` resolves
    to the final record once media is stored, or raises UploadError.
    ``uploaded`` collects the URLs stored so far, including on failure.
    """

    def __init__(self, song: Song, future: "Future[Song]", uploaded: Optional[Dict[str, str]] = None):
        self.song = song
        self.future = future
        self.uploaded = uploaded if uploaded is not None else {}

    def on_complete(self, callback: Callable[[Song], None]) -> None:
        """Call ``callback`` with the updated record when the upload succeeds."""
        def _done(future: "Future[Song]") -> None:
            if future.exception() is None:
                callback(future.result())
        self.future.add_done_callback(_done)

    def on_failure(self, callback: Callable[[Song, BaseException], None]) -> None:
        """Call ``callback`` with the failed record and the error when the upload fails."""
        def _done(future: "Future[Song]") -> None:
            error = future.exception()
            if error is not None:
                callback(replace(self.song, is_uploading=False, **self.uploaded), error)
        self.future.add_done_callback(_done)

    def result(self, timeout: Optional[float] = None) -> Song:
        return self.future.result(timeout=timeout)


class MediaLibrary:
    """Ties song records in a Catalog to media stored in an ObjectStore."""

    def __init__(
        self,
        store: ObjectStore,
        catalog: Catalog,
        metadata: Optional[MetadataClient] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize media library.

        Args:
            store: Object store for covers, audio and lyric files
            catalog: Song database
            metadata: Optional AI description client
            executor: Runs background uploads (default: a small thread pool)
        """
        self.store = store
        self.catalog = catalog
        self.metadata = metadata
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="cloudmusic-upload")

    def _upload_assets(self, song_id: str, files: Dict[str, MediaFile], urls: Dict[str, str]) -> Dict[str, str]:
        """Upload files in order, persisting whatever was stored even when a later upload fails."""
        try:
            for field_name, media in files.items():
                urls[field_name] = self.store.upload(media, ASSET_FOLDERS[field_name])
        finally:
            if urls:
                self.catalog.update_song(song_id, urls)
        return urls

    def add_song(
        self,
        title: str,
        artist: str,
        album: Optional[str] = None,
        cover: Optional[MediaFile] = None,
        audio: Optional[MediaFile] = None,
        lyrics: Optional[MediaFile] = None,
        cover_url: Optional[str] = None,
        audio_url: Optional[str] = None,
        lyrics_url: Optional[str] = None,
    ) -> PendingSong:
        """
        Add a song in two phases.

        Phase 1 (synchronous): insert an optimistic record marked
        is_uploading and return it. Phase 2 (background): upload the media
        files, persist the resulting URLs and resolve the returned future.

        On upload failure the record is marked as no longer uploading. URLs of
        files stored before the failure are persisted so they can be cleaned
        up by delete_song(); the record is not deleted.

        Returns:
            PendingSong with the optimistic record and a future for the final one
        """
        now_ms = int(time.time() * 1000)
        song = Song(
            id=uuid.uuid4().hex,
            title=title,
            artist=artist,
            album=album or "",
            cover_url=cover_url or "",
            audio_url=audio_url,
            lyrics_url=lyrics_url,
            added_at=now_ms,
            is_uploading=True,
        )

        if self.metadata is not None:
            described = self.metadata.describe(title, artist)
            song.description = described.description
            song.mood = described.mood

        self.catalog.insert_song(song)
        logger.info(f"Added '{title}' by '{artist}' ({song.id}), uploading media in background")

        files = {
            name: media
            for name, media in (("cover_url", cover), ("audio_url", audio), ("lyrics_url", lyrics))
            if media is not None
        }
        uploaded: Dict[str, str] = {}
        future = self.executor.submit(self._finish_upload, replace(song), files, uploaded)
        return PendingSong(song, future, uploaded)

    def _finish_upload(self, song: Song, files: Dict[str, MediaFile], uploaded: Dict[str, str]) -> Song:
        try:
            urls = self._upload_assets(song.id, files, uploaded)
        except UploadError:
            logger.error(f"Media upload for '{song.title}' ({song.id}) failed after storing {sorted(uploaded)}")
            raise

        logger.info(f"Media upload for '{song.title}' ({song.id}) complete")
        return replace(song, is_uploading=False, **urls)

    def replace_asset(self, song: Song, field_name: str, media: MediaFile) -> Song:
        """
        Swap one media asset of a song.

        The superseded object is deleted only after the new upload has
        succeeded and the catalog points at it.

        Args:
            song: Current song record
            field_name: "cover_url", "audio_url" or "lyrics_url"
            media: Replacement file

        Returns:
            Updated song record

        Raises:
            UploadError: If the new file could not be stored (old asset is kept)
        """
        if field_name not in ASSET_FOLDERS:
            raise ValueError(f"Unknown asset field: {field_name}")

        old_url = getattr(song, field_name)
        new_url = self.store.upload(media, ASSET_FOLDERS[field_name])
        self.catalog.update_song(song.id, {field_name: new_url})

        if old_url and old_url != new_url:
            self.store.remove(old_url)
        return replace(song, **{field_name: new_url})

    def update_details(self, song: Song, title: Optional[str] = None, artist: Optional[str] = None,
                       album: Optional[str] = None) -> Song:
        """
        Edit a song's text fields, refreshing the AI description when title or artist changed.
        """
        fields: Dict[str, Any] = {}
        if title is not None and title != song.title:
            fields["title"] = title
        if artist is not None and artist != song.artist:
            fields["artist"] = artist
        if album is not None and album != song.album:
            fields["album"] = album or "Single"

        if self.metadata is not None and ("title" in fields or "artist" in fields):
            described = self.metadata.describe(fields.get("title", song.title), fields.get("artist", song.artist))
            fields["description"] = described.description
            fields["mood"] = described.mood

        if fields:
            self.catalog.update_song(song.id, fields)
        return replace(song, **fields)

    def delete_song(self, song: Song) -> None:
        """
        Remove a song, then best-effort delete its stored media.

        Storage cleanup failures never fail the deletion.
        """
        self.catalog.delete_song(song.id)
        logger.info(f"Deleted '{song.title}' ({song.id}) from catalog")
        for url in song.asset_urls():
            self.store.remove(url)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)
