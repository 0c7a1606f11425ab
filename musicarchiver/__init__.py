"""music-archiver: download your Spotify listening history from YouTube Music."""

__version__ = "0.1.0"
