"""Output directory scanning and filename conventions."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from mutagen import File as MutagenFile

from .utils import sanitize_filename

logger = logging.getLogger(__name__)

# <title>___<artist>__ytId__<videoId>___trackId_<spotifyTrackId>.<ext>
VIDEO_ID_SEPARATOR = "__ytId__"
TRACK_ID_SEPARATOR = "___trackId_"

TRACK_ID_PATTERN = re.compile(r"___trackId_([^.]+)\.")
VIDEO_ID_PATTERN = re.compile(r"__ytId__(.+?)___trackId_")


@dataclass
class KnownIds:
    """IDs of tracks already present in the output directory."""

    track_ids: set[str] = field(default_factory=set)
    video_ids: set[str] = field(default_factory=set)


def build_filename(track_name: str, artist_name: str, video_id: str, track_id: str) -> str:
    """Build the output filename (without extension) for a download."""
    title = sanitize_filename(track_name)
    artist = sanitize_filename(artist_name)
    return f"{title}___{artist}{VIDEO_ID_SEPARATOR}{video_id}{TRACK_ID_SEPARATOR}{track_id}"


def parse_filename(name: str) -> tuple[str | None, str | None]:
    """Recover (video_id, track_id) from an output filename.

    Either element is None if the name doesn't follow the convention.
    """
    video_match = VIDEO_ID_PATTERN.search(name)
    track_match = TRACK_ID_PATTERN.search(name)
    return (
        video_match.group(1) if video_match else None,
        track_match.group(1) if track_match else None,
    )


def scan_output_directory(output_dir: Path, audio_format: str) -> KnownIds:
    """Collect Spotify track IDs and YouTube IDs of already downloaded files.

    An unreadable directory yields empty sets: the run then downloads
    everything again rather than silently skipping tracks.
    """
    known = KnownIds()
    suffix = f".{audio_format}"

    try:
        entries = list(output_dir.iterdir())
    except OSError as e:
        logger.warning("Could not scan output directory: %s", e)
        return known

    for entry in entries:
        if not entry.name.endswith(suffix) or not entry.is_file():
            continue
        video_id, track_id = parse_filename(entry.name)
        if video_id:
            known.video_ids.add(video_id)
        if track_id:
            known.track_ids.add(track_id)

    logger.debug(
        "Found %d track IDs and %d YouTube IDs in %s",
        len(known.track_ids),
        len(known.video_ids),
        output_dir,
    )
    return known


def describe_audio_file(path: Path) -> str | None:
    """Summarize a downloaded file's stream info, e.g. '3:45, 128 kbps'.

    Returns None if mutagen can't read the file.
    """
    try:
        audio = MutagenFile(path)
    except Exception:
        return None
    if audio is None or audio.info is None:
        return None

    length = int(getattr(audio.info, "length", 0) or 0)
    summary = f"{length // 60}:{length % 60:02d}"
    bitrate = getattr(audio.info, "bitrate", 0)
    if bitrate:
        summary += f", {bitrate // 1000} kbps"
    return summary
