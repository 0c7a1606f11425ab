"""Main download loop: match, skip known, fetch, throttle."""

import enum
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path

from .config import SEARCH_PAUSE_SECONDS, Config
from .errors import FetchError
from .history import Track
from .library import build_filename, describe_audio_file
from .utils import random_wait_seconds
from .ytmusic import CatalogCandidate

logger = logging.getLogger(__name__)


class FetchOutcome(enum.Enum):
    SUCCESSFUL = "successful"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DownloadStats:
    successful: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, outcome: FetchOutcome):
        if outcome is FetchOutcome.SUCCESSFUL:
            self.successful += 1
        elif outcome is FetchOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def total(self) -> int:
        return self.successful + self.failed + self.skipped


def download_track(
    song: CatalogCandidate, track: Track, fetcher, config: Config
) -> Path:
    """Fetch a matched song and check the audio file was written.

    Raises:
        FetchError: if the fetcher fails or the file is missing afterwards.
    """
    filename = build_filename(track.track_name, track.artist_name, song.id, track.track_id)
    output_path = config.output_dir / f"{filename}.{config.audio_format}"

    logger.info("Downloading: %s by %s", song.title, song.artist_names)
    logger.debug("YouTube ID: %s", song.id)
    logger.debug("Output filename: %s", output_path.name)

    if not fetcher.fetch(song.id, config.output_dir, filename):
        raise FetchError(f'Download failed for "{song.title}"')
    if not output_path.exists():
        raise FetchError(f"File not created: {output_path}")
    return output_path


def process_track(
    track: Track,
    matcher,
    fetcher,
    config: Config,
    known_video_ids: set[str],
    sleep=time.sleep,
) -> FetchOutcome:
    """Run one track through match -> skip check -> download."""
    if not track.track_name or not track.artist_name:
        logger.warning("Skipping track with missing metadata: %s", track.spotify_track_uri)
        return FetchOutcome.FAILED

    song = matcher.match(track.track_name, track.artist_name)
    if song is None:
        return FetchOutcome.FAILED

    sleep(SEARCH_PAUSE_SECONDS)

    if song.id in known_video_ids:
        logger.info("Already downloaded: %s", song.title)
        return FetchOutcome.SKIPPED

    try:
        path = download_track(song, track, fetcher, config)
    except FetchError as e:
        logger.error("%s", e)
        return FetchOutcome.FAILED

    info = describe_audio_file(path)
    logger.info("Downloaded: %s%s", path.name, f" ({info})" if info else "")
    known_video_ids.add(song.id)
    return FetchOutcome.SUCCESSFUL


def process_tracks(
    tracks: list[Track],
    matcher,
    fetcher,
    config: Config,
    known_video_ids: set[str] | None = None,
    sleep=time.sleep,
    randint=random.randint,
) -> DownloadStats:
    """Download every track in order, one at a time.

    `matcher` needs a `match(title, artist)` method and `fetcher` a
    `fetch(video_id, output_dir, filename)` method. `sleep` and `randint`
    can be replaced to run without delays.

    Returns:
        Counts of successful, failed and skipped tracks.
    """
    known = set(known_video_ids or ())
    stats = DownloadStats()

    for i, track in enumerate(tracks, 1):
        logger.info("[%d/%d] Processing: %s by %s", i, len(tracks), track.track_name, track.artist_name)
        logger.info("Play count: %d", track.play_count)

        try:
            outcome = process_track(track, matcher, fetcher, config, known, sleep)
        except Exception as e:
            logger.error("Error processing %s: %s", track.track_name, e)
            outcome = FetchOutcome.FAILED
        stats.record(outcome)

        if i < len(tracks):
            wait = random_wait_seconds(config.min_wait, config.max_wait, randint)
            logger.info("Waiting %ds before next download...", wait)
            sleep(wait)

    logger.info(
        "Summary: %d successful, %d failed, %d skipped",
        stats.successful,
        stats.failed,
        stats.skipped,
    )
    return stats
