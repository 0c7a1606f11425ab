#!/usr/bin/env python3
# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "mutagen>=1.47.0",
#     "ytmusicapi>=1.8.0",
# ]
# ///
"""
music-archiver - Download your Spotify listening history as audio files.

Reads the Streaming_History_Audio_*.json files of a Spotify extended
streaming history export, finds each track on YouTube Music, and downloads
it with yt-dlp. Tracks already in the output directory are skipped, so an
interrupted run can simply be started again.

Features:
- Most played tracks are downloaded first
- Duplicate detection across re-releases (same artist and title)
- Duration limit and keyword blacklist for unwanted matches
- Randomized wait between downloads

Usage:
    uv run music_archiver.py ./spotify_data                  # Raw Spotify export
    uv run music_archiver.py ./history.json -o ./music       # Pre-processed history
    uv run music_archiver.py ./spotify_data -s history.json  # Save parsed history
    uv run music_archiver.py ./spotify_data --blacklist "live,karaoke"
"""

from musicarchiver.cli import main

if __name__ == "__main__":
    main()
