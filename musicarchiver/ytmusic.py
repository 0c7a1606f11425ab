"""YouTube Music search and best-match selection."""

import logging
from dataclasses import dataclass, field

from ytmusicapi import YTMusic

from .errors import MatchExcludedError, MatchNotFoundError
from .utils import normalize_text, parse_duration, similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateArtist:
    name: str
    channel_id: str = ""


@dataclass(frozen=True)
class CandidateAlbum:
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class Duration:
    seconds: int
    text: str


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: int
    height: int


@dataclass(frozen=True)
class CatalogCandidate:
    """A YouTube Music song, validated from a raw search result."""

    id: str
    title: str
    duration: Duration
    artists: list[CandidateArtist] = field(default_factory=list)
    album: CandidateAlbum = field(default_factory=CandidateAlbum)
    thumbnails: list[Thumbnail] = field(default_factory=list)

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)

    @classmethod
    def from_search_result(cls, result: dict) -> "CatalogCandidate | None":
        """Convert a ytmusicapi search result, or None if id/title/duration is missing."""
        video_id = result.get("videoId")
        title = result.get("title")
        seconds = _result_seconds(result)
        if not video_id or not title or seconds is None:
            return None

        album = result.get("album") or {}
        return cls(
            id=video_id,
            title=title,
            duration=Duration(seconds=seconds, text=result.get("duration") or ""),
            artists=[
                CandidateArtist(name=a["name"], channel_id=a.get("id") or "")
                for a in _result_artists(result)
            ],
            album=CandidateAlbum(id=album.get("id") or "", name=album.get("name") or ""),
            thumbnails=[
                Thumbnail(url=t.get("url", ""), width=t.get("width", 0), height=t.get("height", 0))
                for t in result.get("thumbnails") or []
            ],
        )


def _result_artists(result: dict) -> list[dict]:
    return [a for a in result.get("artists") or [] if a and a.get("name")]


def _result_seconds(result: dict) -> int | None:
    seconds = result.get("duration_seconds")
    if isinstance(seconds, int):
        return seconds
    return parse_duration(result.get("duration"))


def create_client() -> YTMusic:
    """Create an unauthenticated YouTube Music client."""
    return YTMusic()


class CatalogMatcher:
    """Find the YouTube Music song that best matches a Spotify track.

    Selection is exact-then-fallback: the first result whose title and one
    of whose artists equal the target (case-insensitive) wins; otherwise the
    first result is used. The chosen song is then dropped, not replaced, if
    it's longer than `max_duration` or mentions a blacklisted keyword.
    """

    def __init__(self, client, max_duration: int, blacklisted_keywords: list[str] | None = None):
        self.client = client
        self.max_duration = max_duration
        self.blacklisted_keywords = [k.lower() for k in blacklisted_keywords or []]

    def match(self, title: str | None, artist: str | None) -> CatalogCandidate | None:
        """Search YouTube Music for a track, returning None if no usable match."""
        if not title or not title.strip() or not artist or not artist.strip():
            logger.warning('Skipping invalid song: "%s" by "%s"', title, artist)
            return None

        logger.info("Searching: %s by %s", title, artist)

        try:
            results = self.client.search(f"{title} {artist}", filter="songs")
        except Exception as e:
            logger.error('Search failed for "%s" by "%s": %s', title, artist, e)
            return None

        try:
            return self.select(results or [], title, artist)
        except MatchExcludedError as e:
            logger.warning("Skipping unsuitable track: %s", e)
        except MatchNotFoundError as e:
            logger.warning("%s", e)
        return None

    def select(self, results: list[dict], title: str, artist: str) -> CatalogCandidate:
        """Pick the best result and apply the exclusion rules.

        Raises:
            MatchNotFoundError: if no result is usable.
            MatchExcludedError: if the selected result is excluded.
        """
        if not results:
            raise MatchNotFoundError(f"No results found for: {title} by {artist}")

        song = self.select_best_match(results, title, artist)
        if song is None:
            raise MatchNotFoundError(f"No usable result for: {title} by {artist}")

        reason = self.exclusion_reason(song)
        if reason:
            names = _result_artists(song)
            first_artist = names[0]["name"] if names else "unknown"
            raise MatchExcludedError(f"{song.get('title')} by {first_artist} ({reason})")

        candidate = CatalogCandidate.from_search_result(song)
        if candidate is None:
            raise MatchNotFoundError(f"Incomplete result for: {title} by {artist}")
        return candidate

    def select_best_match(self, results: list[dict], title: str, artist: str) -> dict | None:
        target_title = title.lower().strip()
        target_artist = artist.lower().strip()

        for song in results:
            song_title = (song.get("title") or "").lower().strip()
            if song_title != target_title:
                continue
            if any(a["name"].lower().strip() == target_artist for a in _result_artists(song)):
                return song

        first = results[0]
        first_artists = _result_artists(first)
        if first.get("title") and first_artists:
            title_sim = similarity(normalize_text(title), normalize_text(first["title"]))
            artist_sim = similarity(normalize_text(artist), normalize_text(first_artists[0]["name"]))
            logger.warning(
                "Using closest match: %s by %s (title=%.0f%%, artist=%.0f%%)",
                first["title"],
                first_artists[0]["name"],
                title_sim * 100,
                artist_sim * 100,
            )
            return first

        return None

    def exclusion_reason(self, song: dict) -> str | None:
        """Why a song must not be downloaded, or None if it's fine."""
        seconds = _result_seconds(song)
        if seconds and seconds > self.max_duration:
            return f"{seconds}s exceeds {self.max_duration}s limit"

        title = (song.get("title") or "").lower()
        artist_names = [a["name"].lower() for a in _result_artists(song)]
        for keyword in self.blacklisted_keywords:
            if keyword in title or any(keyword in name for name in artist_names):
                return f"blacklisted keyword '{keyword}'"
        return None
