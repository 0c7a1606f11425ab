"""Spotify streaming history parsing and deduplication."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import HISTORY_FILE_PREFIX, HISTORY_FILE_SUFFIX
from .errors import FileParseError, InvalidHistoryFileFormat, NoHistoryFilesFound

logger = logging.getLogger(__name__)


@dataclass
class Track:
    """One unique Spotify track with every timestamp it was played at."""

    spotify_track_uri: str
    track_name: str | None = None
    artist_name: str | None = None
    album_name: str | None = None
    timestamps: list[str] = field(default_factory=list)

    @property
    def play_count(self) -> int:
        return len(self.timestamps)

    @property
    def track_id(self) -> str:
        """Last segment of the URI ('spotify:track:abc' -> 'abc')."""
        return self.spotify_track_uri.split(":")[-1] or "unknown"

    def to_dict(self) -> dict:
        return {
            "timestamps": list(self.timestamps),
            "track_name": self.track_name,
            "artist_name": self.artist_name,
            "album_name": self.album_name,
            "spotify_track_uri": self.spotify_track_uri,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Track":
        return cls(
            spotify_track_uri=data["spotify_track_uri"],
            track_name=data.get("track_name"),
            artist_name=data.get("artist_name"),
            album_name=data.get("album_name"),
            timestamps=list(data["timestamps"]),
        )


def find_history_files(directory: Path) -> list[Path]:
    """List Streaming_History_Audio_*.json files in a directory, sorted by name."""
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file()
        and p.name.startswith(HISTORY_FILE_PREFIX)
        and p.name.endswith(HISTORY_FILE_SUFFIX)
    )


def read_listening_events(path: Path) -> list[dict]:
    """Load the raw listening events of one export file.

    Raises:
        FileParseError: if the file can't be read or isn't a JSON array.
    """
    try:
        with open(path, encoding="utf-8") as f:
            events = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FileParseError(path, str(e)) from e

    if not isinstance(events, list):
        raise FileParseError(path, "expected a JSON array of listening events")
    return events


def aggregate_events(events, tracks: dict[str, Track]) -> int:
    """Fold listening events into `tracks`, keyed by Spotify URI.

    Metadata comes from the first event seen for a URI; later events only
    add their timestamp. Events without a URI (podcasts, local files) are
    dropped.

    Returns:
        Number of events folded in.
    """
    folded = 0
    for event in events:
        if not isinstance(event, dict):
            continue
        uri = event.get("spotify_track_uri")
        if not uri:
            continue

        existing = tracks.get(uri)
        if existing:
            existing.timestamps.append(event.get("ts") or "")
        else:
            tracks[uri] = Track(
                spotify_track_uri=uri,
                track_name=event.get("master_metadata_track_name"),
                artist_name=event.get("master_metadata_album_artist_name"),
                album_name=event.get("master_metadata_album_album_name"),
                timestamps=[event.get("ts") or ""],
            )
        folded += 1
    return folded


def deduplicate_tracks(tracks: list[Track]) -> list[Track]:
    """Keep only the first track for each (artist, title) pair.

    Different URIs can point at the same song (re-releases, compilations).
    Order is preserved, so on play-count-sorted input the most played
    version survives.
    """
    seen: set[tuple[str | None, str | None]] = set()
    unique = []
    for track in tracks:
        key = (track.artist_name, track.track_name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(track)
    return unique


def parse_streaming_history(directory: Path, save_path: Path | None = None) -> list[Track]:
    """Parse a Spotify data export into unique tracks, most played first.

    Args:
        directory: Folder holding Streaming_History_Audio_*.json files
        save_path: If set, also write the result there as pre-processed history

    Raises:
        NoHistoryFilesFound: if no history file could be processed.
    """
    logger.info("Scanning for Spotify streaming history files...")

    try:
        files = find_history_files(directory)
    except OSError as e:
        raise NoHistoryFilesFound(f"Cannot read directory {directory}: {e}") from e

    tracks: dict[str, Track] = {}
    files_processed = 0
    total_events = 0

    for path in files:
        logger.info("Processing: %s", path.name)
        try:
            events = read_listening_events(path)
        except FileParseError as e:
            logger.error("Error processing file %s: %s", path.name, e.reason)
            continue
        total_events += len(events)
        aggregate_events(events, tracks)
        files_processed += 1

    if files_processed == 0:
        raise NoHistoryFilesFound(
            f"No {HISTORY_FILE_PREFIX}*{HISTORY_FILE_SUFFIX} files found in {directory}"
        )

    for track in tracks.values():
        track.timestamps.sort()

    # sorted() is stable: equal play counts keep first-seen order
    result = sorted(tracks.values(), key=lambda t: t.play_count, reverse=True)
    result = deduplicate_tracks(result)

    logger.info("Processed %d history files", files_processed)
    logger.info("Total listening events: %d", total_events)
    logger.info("Unique tracks found: %d", len(result))

    if save_path is not None:
        save_history_file(result, save_path)
        logger.info("History saved to: %s", save_path)

    return result


def save_history_file(tracks: list[Track], path: Path):
    """Write tracks in the pre-processed history format."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([t.to_dict() for t in tracks], f, indent=2, ensure_ascii=False)


def load_history_file(path: Path) -> list[Track]:
    """Load tracks from a pre-processed history file.

    Raises:
        InvalidHistoryFileFormat: if the file isn't a JSON array of tracks.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidHistoryFileFormat(f"{path}: not valid JSON ({e})") from e

    if not isinstance(data, list):
        raise InvalidHistoryFileFormat(f"{path}: expected array of tracks")

    tracks = []
    for i, entry in enumerate(data):
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("spotify_track_uri"), str)
            or not isinstance(entry.get("timestamps"), list)
        ):
            raise InvalidHistoryFileFormat(f"{path}: entry {i} is not a track record")
        tracks.append(Track.from_dict(entry))

    logger.info("Found %d tracks in history file", len(tracks))
    return tracks


def filter_new_tracks(tracks: list[Track], known_track_ids: set[str]) -> list[Track]:
    """Drop tracks whose Spotify track ID is already in the output directory."""
    return [t for t in tracks if t.track_id not in known_track_ids]
