"""
Object storage usage example.

Demonstrates uploading a local track to an S3-compatible bucket and
deleting it again. Credentials come from CLOUDMUSIC_S3_* variables.
"""

import logging
import sys

from cloudmusic import MediaFile, ObjectStore, StoreConfig, UploadError

def main():
    logging.basicConfig(level=logging.INFO)

    path = sys.argv[1] if len(sys.argv) > 1 else "song.mp3"

    # Load store settings from the environment
    store = ObjectStore(StoreConfig.from_env())
    media = MediaFile.from_path(path)

    print(f"Uploading {media.name} ({media.size} bytes, {media.mime_type})...")
    try:
        url = store.upload(media, folder="tracks")
    except UploadError as e:
        print(f"Upload failed: {e}")
        return

    print(f"Public URL: {url}")

    # Deleting never raises; failures are only logged
    print("\nRemoving uploaded object...")
    store.remove(url)
    print("Done")

if __name__ == "__main__":
    main()
