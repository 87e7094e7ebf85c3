"""
Data models for CloudMusic.

Defines the core data structures used throughout the package.
"""

import mimetypes
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_ALBUM = "Single"
DEFAULT_MIME_TYPE = "application/octet-stream"
PLACEHOLDER_COVER_URL = "https://picsum.photos/seed/{title}/400/400"


@dataclass(frozen=True)
class Credential:
    """Access key pair and scope used to sign object storage requests."""
    access_key_id: str
    secret_key: str
    region: str = "us-east-1"
    service: str = "s3"

    def __repr__(self) -> str:
        return (
            f"Credential(access_key_id={self.access_key_id!r}, secret_key='***', "
            f"region={self.region!r}, service={self.service!r})"
        )


@dataclass
class StoreConfig:
    """Configuration for an S3-compatible object store."""
    endpoint: str
    bucket: str
    credential: Credential
    extra_headers: Dict[str, str] = field(default_factory=dict)
    sign_extra_headers: bool = True
    timeout: int = 30
    verify_ssl: bool = True

    def __post_init__(self):
        if not self.endpoint.endswith("/"):
            self.endpoint = f"{self.endpoint}/"

    @property
    def base_url(self) -> str:
        return f"{self.endpoint}{self.bucket}/"

    def object_url(self, key: str) -> str:
        return f"{self.base_url}{key}"

    def owns(self, url: str) -> bool:
        """Check whether a URL points at an object inside this store's bucket."""
        return bool(url) and url.startswith(self.base_url)

    @classmethod
    def from_env(cls, prefix: str = "CLOUDMUSIC_", environ: Optional[Dict[str, str]] = None) -> "StoreConfig":
        """
        Build a StoreConfig from environment variables.

        Reads {prefix}S3_ENDPOINT, {prefix}S3_BUCKET, {prefix}S3_ACCESS_KEY,
        {prefix}S3_SECRET_KEY and optionally {prefix}S3_REGION plus the
        {prefix}GATEWAY_CLIENT_ID / {prefix}GATEWAY_CLIENT_SECRET pair.

        Raises:
            ValueError: If a required variable is missing
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(f"{prefix}{name}")
            if not value:
                raise ValueError(f"Missing required setting: {prefix}{name}")
            return value

        extra_headers = {}
        client_id = env.get(f"{prefix}GATEWAY_CLIENT_ID")
        client_secret = env.get(f"{prefix}GATEWAY_CLIENT_SECRET")
        if client_id and client_secret:
            extra_headers = {
                "CF-Access-Client-Id": client_id,
                "CF-Access-Client-Secret": client_secret,
            }

        return cls(
            endpoint=required("S3_ENDPOINT"),
            bucket=required("S3_BUCKET"),
            credential=Credential(
                access_key_id=required("S3_ACCESS_KEY"),
                secret_key=required("S3_SECRET_KEY"),
                region=env.get(f"{prefix}S3_REGION") or "us-east-1",
            ),
            extra_headers=extra_headers,
        )


@dataclass
class MediaFile:
    """A file to be uploaded: its name, declared MIME type and contents."""
    name: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str) -> "MediaFile":
        """Load a local file, guessing its MIME type from the extension."""
        mime_type, _ = mimetypes.guess_type(path)
        with open(path, "rb") as f:
            data = f.read()
        return cls(name=os.path.basename(path), mime_type=mime_type or DEFAULT_MIME_TYPE, data=data)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SubtitleLine:
    """A single timed lyric line (times in seconds)."""
    start_time: float
    end_time: float
    text: str

    def contains(self, current_time: float) -> bool:
        return self.start_time <= current_time < self.end_time


class PlaybackClock:
    """
    Interface to the audio element driving playback.

    The lyrics engine only reads the position and issues seek() calls.
    """

    @property
    def current_time(self) -> float:
        raise NotImplementedError

    @property
    def duration(self) -> float:
        raise NotImplementedError

    @property
    def is_playing(self) -> bool:
        raise NotImplementedError

    def seek(self, position: float) -> None:
        raise NotImplementedError

    def play_pause(self) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class SongDescription:
    """Short AI-generated blurb and one-word mood for a song."""
    description: str
    mood: str


@dataclass
class Song:
    """A song record as stored in the catalog."""
    id: str
    title: str
    artist: str
    album: str = DEFAULT_ALBUM
    cover_url: str = ""
    audio_url: Optional[str] = None
    lyrics_url: Optional[str] = None
    added_at: int = field(default_factory=lambda: int(time.time() * 1000))
    description: Optional[str] = None
    mood: Optional[str] = None
    is_uploading: bool = False

    def __post_init__(self):
        if not self.album:
            self.album = DEFAULT_ALBUM
        if not self.cover_url:
            self.cover_url = PLACEHOLDER_COVER_URL.format(title=self.title)

    def asset_urls(self) -> List[str]:
        """All media URLs referenced by this record."""
        return [url for url in (self.cover_url, self.audio_url, self.lyrics_url) if url]

    def to_record(self) -> Dict[str, Any]:
        """Convert to the catalog's row layout."""
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "cover_url": self.cover_url,
            "audio_url": self.audio_url,
            "lyrics_url": self.lyrics_url,
            "added_at": self.added_at,
            "description": self.description,
            "mood": self.mood,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Song":
        """Build a Song from a catalog row (snake_case or camelCase keys)."""
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            value = record.get(snake)
            if value is None:
                value = record.get(camel, default)
            return value

        return cls(
            id=str(record["id"]),
            title=record.get("title", ""),
            artist=record.get("artist", ""),
            album=record.get("album") or DEFAULT_ALBUM,
            cover_url=pick("cover_url", "coverUrl", ""),
            audio_url=pick("audio_url", "audioUrl"),
            lyrics_url=pick("lyrics_url", "lyricsUrl"),
            added_at=int(pick("added_at", "addedAt", 0) or 0),
            description=record.get("description"),
            mood=record.get("mood"),
        )
