"""
Media library example.

Adds a song with background uploads, waits for them to finish, swaps the
cover image and finally deletes the song with its stored media.
"""

import logging
import sys

from cloudmusic import InMemoryCatalog, MediaFile, MediaLibrary, ObjectStore, StoreConfig

def main():
    logging.basicConfig(level=logging.INFO)

    if len(sys.argv) < 3:
        print("usage: library_flow.py AUDIO_FILE COVER_FILE [NEW_COVER_FILE]")
        return

    store = ObjectStore(StoreConfig.from_env())
    library = MediaLibrary(store, InMemoryCatalog())

    # Phase one returns immediately with a record marked as uploading
    pending = library.add_song(
        title="Forest Whispers",
        artist="Nature Sounds",
        audio=MediaFile.from_path(sys.argv[1]),
        cover=MediaFile.from_path(sys.argv[2]),
    )
    print(f"Added {pending.song.title} (uploading={pending.song.is_uploading})")
    pending.on_failure(lambda song, error: print(f"Upload failed for {song.title}: {error}"))

    # Phase two finishes in the background
    song = pending.result()
    print(f"Audio: {song.audio_url}")
    print(f"Cover: {song.cover_url}")

    if len(sys.argv) > 3:
        song = library.replace_asset(song, "cover_url", MediaFile.from_path(sys.argv[3]))
        print(f"New cover: {song.cover_url}")

    library.delete_song(song)
    print("Deleted song and its media")
    library.shutdown()

if __name__ == "__main__":
    main()
