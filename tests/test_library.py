"""
Unit tests for MediaLibrary.

Uses a mocked ObjectStore and the in-memory catalog.
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from cloudmusic.exceptions import CloudMusicError, UploadError
from cloudmusic.library import InMemoryCatalog, MediaLibrary
from cloudmusic.metadata import MetadataClient
from cloudmusic.models import MediaFile, Song, SongDescription
from cloudmusic.storage.client import ObjectStore

BASE = "https://oss.example.com/homepage"


@pytest.fixture
def mock_store():
    store = Mock(spec=ObjectStore)
    store.upload.side_effect = lambda media, folder: f"{BASE}/{folder}/1_{media.name}"
    return store


@pytest.fixture
def catalog():
    return InMemoryCatalog()


@pytest.fixture
def library(mock_store, catalog):
    lib = MediaLibrary(mock_store, catalog, executor=ThreadPoolExecutor(max_workers=1))
    yield lib
    lib.shutdown()


@pytest.fixture
def audio():
    return MediaFile(name="track.mp3", mime_type="audio/mpeg", data=b"0123456789")


def test_add_song_returns_optimistic_record_immediately(mock_store, catalog, audio):
    executor = Mock()
    library = MediaLibrary(mock_store, catalog, executor=executor)

    pending = library.add_song("Morning Dew", "Acoustic Soul", audio=audio)

    assert pending.song.is_uploading
    assert pending.song.album == "Single"
    assert pending.song.cover_url == "https://picsum.photos/seed/Morning Dew/400/400"
    assert catalog.get_song(pending.song.id).title == "Morning Dew"
    executor.submit.assert_called_once()
    mock_store.upload.assert_not_called()


def test_add_song_background_upload_updates_catalog(library, catalog, mock_store, audio):
    cover = MediaFile(name="cover.png", mime_type="image/png", data=b"png")
    completed = []

    pending = library.add_song("Forest Whispers", "Nature Sounds", cover=cover, audio=audio)
    pending.on_complete(completed.append)
    song = pending.result(timeout=5)
    library.shutdown()

    assert not song.is_uploading
    assert song.cover_url == f"{BASE}/covers/1_cover.png"
    assert song.audio_url == f"{BASE}/tracks/1_track.mp3"
    assert completed == [song]

    stored = catalog.get_song(song.id)
    assert stored.audio_url == song.audio_url
    assert stored.cover_url == song.cover_url


def test_add_song_failure_marks_record_failed(library, catalog, mock_store, audio):
    mock_store.upload.side_effect = UploadError(403, "SignatureDoesNotMatch")
    failures = []

    pending = library.add_song("Void", "Ethereal", audio=audio)
    pending.on_failure(lambda song, error: failures.append((song, error)))

    with pytest.raises(UploadError):
        pending.result(timeout=5)
    library.shutdown()

    failed_song, error = failures[0]
    assert not failed_song.is_uploading
    assert failed_song.audio_url is None
    assert error.status == 403
    # The record is kept, not rolled back
    assert catalog.get_song(pending.song.id) is not None


def test_partial_upload_failure_keeps_stored_urls(library, catalog, mock_store, audio):
    def upload(media, folder):
        if folder == "tracks":
            raise UploadError(500, "InternalError")
        return f"{BASE}/{folder}/1_{media.name}"

    mock_store.upload.side_effect = upload
    cover = MediaFile(name="cover.png", mime_type="image/png", data=b"png")
    failures = []

    pending = library.add_song("Void", "Ethereal", cover=cover, audio=audio)
    pending.on_failure(lambda song, error: failures.append(song))
    with pytest.raises(UploadError):
        pending.result(timeout=5)
    library.shutdown()

    stored = catalog.get_song(pending.song.id)
    assert stored.cover_url == f"{BASE}/covers/1_cover.png"
    assert stored.audio_url is None
    assert failures[0].cover_url == stored.cover_url

    library.delete_song(stored)
    mock_store.remove.assert_called_once_with(f"{BASE}/covers/1_cover.png")


def test_add_song_uses_metadata_client(mock_store, catalog):
    metadata = Mock(spec=MetadataClient)
    metadata.describe.return_value = SongDescription("Soft piano.", "Calm")
    library = MediaLibrary(mock_store, catalog, metadata=metadata, executor=Mock())

    pending = library.add_song("Minimalist Piano", "Simeon Walker")

    metadata.describe.assert_called_once_with("Minimalist Piano", "Simeon Walker")
    assert catalog.get_song(pending.song.id).mood == "Calm"


def test_replace_asset_deletes_old_object_after_upload(library, catalog, mock_store, audio):
    calls = []
    mock_store.upload.side_effect = lambda media, folder: calls.append("upload") or f"{BASE}/{folder}/2_{media.name}"
    mock_store.remove.side_effect = lambda url: calls.append(("remove", url))

    song = Song(id="s1", title="t", artist="a", audio_url=f"{BASE}/tracks/1_old.mp3")
    catalog.insert_song(song)

    updated = library.replace_asset(song, "audio_url", audio)

    assert updated.audio_url == f"{BASE}/tracks/2_track.mp3"
    assert catalog.get_song("s1").audio_url == updated.audio_url
    assert calls == ["upload", ("remove", f"{BASE}/tracks/1_old.mp3")]


def test_replace_asset_keeps_old_object_when_upload_fails(library, catalog, mock_store, audio):
    mock_store.upload.side_effect = UploadError(None, "connection refused")
    song = Song(id="s1", title="t", artist="a", audio_url=f"{BASE}/tracks/1_old.mp3")
    catalog.insert_song(song)

    with pytest.raises(UploadError):
        library.replace_asset(song, "audio_url", audio)

    mock_store.remove.assert_not_called()
    assert catalog.get_song("s1").audio_url == f"{BASE}/tracks/1_old.mp3"


def test_replace_asset_rejects_unknown_field(library, audio):
    with pytest.raises(ValueError):
        library.replace_asset(Song(id="s1", title="t", artist="a"), "title", audio)


def test_delete_song_removes_row_then_assets(library, catalog, mock_store):
    song = Song(
        id="s1", title="t", artist="a",
        cover_url=f"{BASE}/covers/1_c.png",
        audio_url=f"{BASE}/tracks/1_a.mp3",
        lyrics_url=f"{BASE}/lyrics/1_l.srt",
    )
    catalog.insert_song(song)

    library.delete_song(song)

    assert catalog.get_song("s1") is None
    removed = [call.args[0] for call in mock_store.remove.call_args_list]
    assert removed == song.asset_urls()


def test_update_details_refreshes_description_on_rename(mock_store, catalog):
    metadata = Mock(spec=MetadataClient)
    metadata.describe.return_value = SongDescription("New blurb.", "Bright")
    library = MediaLibrary(mock_store, catalog, metadata=metadata, executor=Mock())
    song = Song(id="s1", title="Old", artist="a", description="Old blurb.")
    catalog.insert_song(song)

    updated = library.update_details(song, title="New")

    assert updated.title == "New"
    assert updated.description == "New blurb."
    assert catalog.get_song("s1").mood == "Bright"


def test_update_details_without_changes_skips_metadata(mock_store, catalog):
    metadata = Mock(spec=MetadataClient)
    library = MediaLibrary(mock_store, catalog, metadata=metadata, executor=Mock())
    song = Song(id="s1", title="Same", artist="a")
    catalog.insert_song(song)

    library.update_details(song, title="Same", album="Live")

    metadata.describe.assert_not_called()
    assert catalog.get_song("s1").album == "Live"


def test_in_memory_catalog_lists_newest_first():
    catalog = InMemoryCatalog([
        Song(id="a", title="old", artist="x", added_at=1),
        Song(id="b", title="new", artist="x", added_at=2),
    ])
    assert [song.id for song in catalog.list_songs()] == ["b", "a"]


def test_in_memory_catalog_rejects_duplicates_and_unknown_updates():
    catalog = InMemoryCatalog([Song(id="a", title="t", artist="x")])
    with pytest.raises(CloudMusicError):
        catalog.insert_song(Song(id="a", title="t", artist="x"))
    with pytest.raises(CloudMusicError):
        catalog.update_song("missing", {"title": "x"})
