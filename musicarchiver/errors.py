"""Exceptions raised by music-archiver."""


class ArchiverError(Exception):
    """Base class for all archiver errors."""


class FatalStartupError(ArchiverError):
    """The run cannot start at all."""


class MissingDependencyError(FatalStartupError):
    """A required external tool (yt-dlp) is not installed."""


class InvalidInputPath(FatalStartupError):
    """Input is neither a history directory nor a JSON file."""


class NoHistoryFilesFound(FatalStartupError):
    """No Streaming_History_Audio_*.json file could be processed."""


class InvalidHistoryFileFormat(ArchiverError):
    """A pre-processed history file does not hold a list of tracks."""


class FileParseError(ArchiverError):
    """A single streaming history file is malformed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MatchNotFoundError(ArchiverError):
    """No usable catalog entry for a track."""


class MatchExcludedError(MatchNotFoundError):
    """The selected catalog entry hit the duration limit or the blacklist."""


class FetchError(ArchiverError):
    """yt-dlp failed or did not produce the expected file."""
