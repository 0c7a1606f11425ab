"""Command-line interface and main orchestration."""

import argparse
import logging
import sys
from pathlib import Path

from .archiver import DownloadStats, process_tracks
from .config import (
    COOKIE_FILE,
    DEFAULT_AUDIO_FORMAT,
    DEFAULT_MAX_DURATION,
    DEFAULT_MAX_WAIT,
    DEFAULT_MIN_WAIT,
    DEFAULT_OUTPUT_DIR,
    Config,
    parse_blacklist,
)
from .download import YtDlpFetcher, check_ytdlp
from .errors import ArchiverError, FatalStartupError, InvalidInputPath
from .history import (
    Track,
    deduplicate_tracks,
    filter_new_tracks,
    load_history_file,
    parse_streaming_history,
)
from .library import scan_output_directory
from .ytmusic import CatalogMatcher, create_client

logger = logging.getLogger(__name__)

EPILOG = """\
examples:
  # Process raw Spotify data export
  music-archiver ./spotify_data -o ./music

  # Use pre-processed JSON file
  music-archiver ./history.json -o ./music

  # Save parsed history for later use
  music-archiver ./spotify_data -s ./parsed_history.json

  # With custom filters
  music-archiver ./spotify_data --blacklist "instrumental,karaoke"
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music-archiver",
        description="Download your Spotify listening history as audio files from YouTube Music",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        help="Directory with Streaming_History_Audio_*.json files, or a pre-processed JSON file",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Output directory for downloads (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "-f",
        "--audio-format",
        default=DEFAULT_AUDIO_FORMAT,
        help=f"Audio format: opus, mp3, m4a, etc. (default: {DEFAULT_AUDIO_FORMAT})",
    )
    parser.add_argument(
        "--max-duration",
        type=int,
        default=DEFAULT_MAX_DURATION,
        help=f"Skip tracks longer than this many seconds (default: {DEFAULT_MAX_DURATION})",
    )
    parser.add_argument(
        "--blacklist",
        default="",
        help="Comma-separated keywords to filter out (e.g. 'instrumental,karaoke')",
    )
    parser.add_argument(
        "--min-wait",
        type=int,
        default=DEFAULT_MIN_WAIT,
        help=f"Minimum wait between downloads in seconds (default: {DEFAULT_MIN_WAIT})",
    )
    parser.add_argument(
        "--max-wait",
        type=int,
        default=DEFAULT_MAX_WAIT,
        help=f"Maximum wait between downloads in seconds (default: {DEFAULT_MAX_WAIT})",
    )
    parser.add_argument(
        "-s",
        "--save-json",
        type=Path,
        default=None,
        help="Save parsed history to JSON (only when input is a directory)",
    )
    parser.add_argument(
        "--no-cookies",
        action="store_true",
        help=f"Don't pass {COOKIE_FILE} to yt-dlp",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def parse_args(argv=None) -> tuple[Path, Config]:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.input is None:
        parser.print_help(sys.stderr)
        sys.exit(1)
    if args.min_wait < 0 or args.min_wait > args.max_wait:
        parser.error("--min-wait must be between 0 and --max-wait")

    config = Config(
        output_dir=args.output_dir,
        audio_format=args.audio_format,
        max_duration=args.max_duration,
        min_wait=args.min_wait,
        max_wait=args.max_wait,
        blacklisted_keywords=parse_blacklist(args.blacklist),
        use_cookie_file=not args.no_cookies,
        verbose=args.verbose,
        history_json_path=args.save_json,
    )
    return args.input, config


def configure_logging(verbose: bool):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[handler],
        force=True,
    )


def detect_input_type(path: Path) -> str:
    """Return 'directory' or 'json' for a valid input path.

    Raises:
        InvalidInputPath: for anything else.
    """
    if path.is_dir():
        return "directory"
    if path.is_file() and path.suffix.lower() == ".json":
        return "json"
    if not path.exists():
        raise InvalidInputPath(f"{path} does not exist")
    raise InvalidInputPath(
        "Input must be a directory containing Spotify history files or a JSON file"
    )


def ensure_output_directory(output_dir: Path):
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FatalStartupError(f"Failed to create output directory: {e}") from e


def load_tracks(input_path: Path, config: Config) -> list[Track]:
    if detect_input_type(input_path) == "directory":
        logger.info("Processing Spotify streaming history files...")
        return parse_streaming_history(input_path, save_path=config.history_json_path)

    logger.info("Loading pre-processed history file...")
    return load_history_file(input_path)


def run(input_path: Path, config: Config, matcher=None, fetcher=None, sleep=None) -> DownloadStats:
    """Archive every not-yet-downloaded track from a history export."""
    ensure_output_directory(config.output_dir)

    all_tracks = load_tracks(input_path, config)

    known = scan_output_directory(config.output_dir, config.audio_format)
    logger.info("Found %d already downloaded tracks", len(known.track_ids))

    new_tracks = filter_new_tracks(all_tracks, known.track_ids)
    unique_tracks = deduplicate_tracks(new_tracks)
    logger.info("%d tracks not yet downloaded", len(new_tracks))
    logger.info(
        "%d unique tracks to download (%d duplicates removed)",
        len(unique_tracks),
        len(new_tracks) - len(unique_tracks),
    )

    if matcher is None:
        matcher = CatalogMatcher(create_client(), config.max_duration, config.blacklisted_keywords)
    if fetcher is None:
        fetcher = YtDlpFetcher(config.audio_format, config.use_cookie_file)

    kwargs = {"sleep": sleep} if sleep is not None else {}
    return process_tracks(unique_tracks, matcher, fetcher, config, known.video_ids, **kwargs)


def main(argv=None):
    input_path, config = parse_args(argv)
    configure_logging(config.verbose)

    logger.info("Music Archiver starting...")
    logger.info("Input: %s", input_path)
    logger.info("Output: %s", config.output_dir)
    logger.info("Format: %s", config.audio_format)
    logger.info("Max duration: %ds", config.max_duration)
    if config.blacklisted_keywords:
        logger.info("Blacklisted: %s", ", ".join(config.blacklisted_keywords))
    logger.debug("Verbose mode enabled")

    try:
        check_ytdlp()
        stats = run(input_path, config)
    except ArchiverError as e:
        logger.error("Fatal error: %s", e)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unhandled error: %s", e)
        sys.exit(1)

    print(
        f"\nDone! {stats.successful}/{stats.total} downloaded successfully "
        f"({stats.failed} failed, {stats.skipped} skipped)."
    )


if __name__ == "__main__":
    main()
