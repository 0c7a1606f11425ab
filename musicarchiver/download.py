"""Audio download backend (yt-dlp)."""

import logging
import subprocess
from pathlib import Path

from .config import COOKIE_FILE
from .errors import FetchError, MissingDependencyError

logger = logging.getLogger(__name__)

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={}"


def check_ytdlp():
    """Make sure yt-dlp is installed and runnable.

    Raises:
        MissingDependencyError: if `yt-dlp --version` fails.
    """
    try:
        result = subprocess.run(["yt-dlp", "--version"], capture_output=True, text=True)
    except OSError as e:
        raise MissingDependencyError(f"yt-dlp is required but not found: {e}") from e

    if result.returncode != 0:
        raise MissingDependencyError("yt-dlp not found or not executable")
    logger.debug("yt-dlp version %s", result.stdout.strip())


class YtDlpFetcher:
    """Download a YouTube video's audio track with yt-dlp."""

    def __init__(self, audio_format: str, use_cookie_file: bool = True):
        self.audio_format = audio_format
        self.use_cookie_file = use_cookie_file

    def build_args(self, video_id: str, output_dir: Path, filename: str) -> list[str]:
        args = [
            "yt-dlp",
            "-x",
            "--audio-format",
            self.audio_format,
            "--embed-thumbnail",
            "--convert-thumbnails",
            "jpg",
            # Square-crop the cover art
            "--ppa",
            "ThumbnailsConvertor:-vf crop=ih:ih",
            "--embed-metadata",
            "--no-playlist",
        ]
        if self.use_cookie_file:
            args += ["--cookies", COOKIE_FILE]
        args += [
            "-o",
            str(output_dir / f"{filename}.%(ext)s"),
            YOUTUBE_WATCH_URL.format(video_id),
        ]
        return args

    def fetch(self, video_id: str, output_dir: Path, filename: str) -> bool:
        """Download `video_id` to `output_dir/filename.<audio_format>`.

        Returns:
            True if yt-dlp exited successfully.
        """
        try:
            self._run(self.build_args(video_id, output_dir, filename))
        except FetchError as e:
            logger.error("Download failed for %s: %s", video_id, e)
            return False
        return True

    def _run(self, cmd: list[str]):
        logger.debug("yt-dlp command: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise FetchError(f"could not start yt-dlp: {e}") from e

        if result.stdout.strip():
            logger.debug("yt-dlp stdout:\n%s", result.stdout)
        if result.stderr.strip():
            logger.debug("yt-dlp stderr:\n%s", result.stderr)

        if result.returncode != 0:
            last_line = result.stderr.strip().splitlines()[-1:] or ["no error output"]
            raise FetchError(f"yt-dlp exited with code {result.returncode} ({last_line[0]})")
