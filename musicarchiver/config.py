"""Configuration defaults and run-time settings for music-archiver."""

from dataclasses import dataclass, field
from pathlib import Path

# Defaults (overridable from the command line)
DEFAULT_OUTPUT_DIR = Path("./downloads")
DEFAULT_AUDIO_FORMAT = "opus"
DEFAULT_MAX_DURATION = 420  # seconds
DEFAULT_MIN_WAIT = 6  # seconds between downloads
DEFAULT_MAX_WAIT = 10

# yt-dlp cookie jar, looked up in the working directory
COOKIE_FILE = "cookies.txt"

# Spotify extended streaming history export files
HISTORY_FILE_PREFIX = "Streaming_History_Audio_"
HISTORY_FILE_SUFFIX = ".json"

# Pause after each search to stay under YouTube Music rate limits
SEARCH_PAUSE_SECONDS = 2

# Longest sanitized title/artist component in output filenames
MAX_FILENAME_COMPONENT = 200


@dataclass
class Config:
    """Options for a single archiver run."""

    output_dir: Path = DEFAULT_OUTPUT_DIR
    audio_format: str = DEFAULT_AUDIO_FORMAT
    max_duration: int = DEFAULT_MAX_DURATION
    min_wait: int = DEFAULT_MIN_WAIT
    max_wait: int = DEFAULT_MAX_WAIT
    blacklisted_keywords: list[str] = field(default_factory=list)
    use_cookie_file: bool = True
    verbose: bool = False
    history_json_path: Path | None = None

    @property
    def save_history_json(self) -> bool:
        return self.history_json_path is not None


def parse_blacklist(value: str | None) -> list[str]:
    """Split a comma-separated keyword list into lowercase keywords."""
    if not value:
        return []
    return [k.strip().lower() for k in value.split(",") if k.strip()]
