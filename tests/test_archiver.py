import tempfile
import unittest
from pathlib import Path

from musicarchiver.archiver import DownloadStats, FetchOutcome, process_track, process_tracks
from musicarchiver.config import SEARCH_PAUSE_SECONDS, Config
from musicarchiver.history import Track
from musicarchiver.ytmusic import CandidateArtist, CatalogCandidate, Duration


def _candidate(video_id):
    return CatalogCandidate(
        id=video_id,
        title=f"Title {video_id}",
        duration=Duration(seconds=200, text="3:20"),
        artists=[CandidateArtist("Artist")],
    )


class FakeMatcher:
    def __init__(self, matches):
        self.matches = matches
        self.calls = []

    def match(self, title, artist):
        self.calls.append((title, artist))
        return self.matches.get(title)


class FakeFetcher:
    """Writes an empty audio file unless told to fail."""

    def __init__(self, succeed=True, write_file=True):
        self.succeed = succeed
        self.write_file = write_file
        self.calls = []

    def fetch(self, video_id, output_dir, filename):
        self.calls.append((video_id, filename))
        if self.succeed and self.write_file:
            (output_dir / f"{filename}.opus").touch()
        return self.succeed


class ProcessTracksTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.config = Config(output_dir=Path(self._tmp.name), audio_format="opus", min_wait=1, max_wait=3)
        self.sleeps = []

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, tracks, matcher, fetcher, known=None):
        return process_tracks(
            tracks,
            matcher,
            fetcher,
            self.config,
            known,
            sleep=self.sleeps.append,
            randint=lambda a, b: b,
        )

    def test_successful_download(self):
        tracks = [Track("spotify:track:A", "Song", "Artist", timestamps=["t"])]
        fetcher = FakeFetcher()

        stats = self._run(tracks, FakeMatcher({"Song": _candidate("vidA")}), fetcher)

        self.assertEqual(stats, DownloadStats(successful=1))
        self.assertEqual(fetcher.calls, [("vidA", "Song___Artist__ytId__vidA___trackId_A")])
        self.assertTrue((self.config.output_dir / "Song___Artist__ytId__vidA___trackId_A.opus").exists())

    def test_known_video_id_is_skipped_without_fetch(self):
        tracks = [Track("spotify:track:A", "Song", "Artist", timestamps=["t"])]
        fetcher = FakeFetcher()

        stats = self._run(tracks, FakeMatcher({"Song": _candidate("vidA")}), fetcher, known={"vidA"})

        self.assertEqual(stats, DownloadStats(skipped=1))
        self.assertEqual(fetcher.calls, [])

    def test_missing_metadata_fails_without_matching(self):
        matcher = FakeMatcher({})
        stats = self._run([Track("spotify:track:A", None, "Artist", timestamps=["t"])], matcher, FakeFetcher())
        self.assertEqual(stats, DownloadStats(failed=1))
        self.assertEqual(matcher.calls, [])

    def test_no_match_fails(self):
        stats = self._run([Track("spotify:track:A", "Song", "Artist", timestamps=["t"])], FakeMatcher({}), FakeFetcher())
        self.assertEqual(stats, DownloadStats(failed=1))

    def test_fetch_failure_and_missing_file_both_fail(self):
        track = Track("spotify:track:A", "Song", "Artist", timestamps=["t"])
        matcher = FakeMatcher({"Song": _candidate("vidA")})

        self.assertEqual(self._run([track], matcher, FakeFetcher(succeed=False)), DownloadStats(failed=1))
        self.assertEqual(self._run([track], matcher, FakeFetcher(write_file=False)), DownloadStats(failed=1))

    def test_same_video_downloaded_once_per_run(self):
        tracks = [
            Track("spotify:track:A", "Song", "Artist", timestamps=["t"]),
            Track("spotify:track:B", "Song", "Artist", timestamps=["t"]),
        ]
        fetcher = FakeFetcher()
        stats = self._run(tracks, FakeMatcher({"Song": _candidate("vidA")}), fetcher)
        self.assertEqual(stats, DownloadStats(successful=1, skipped=1))
        self.assertEqual(len(fetcher.calls), 1)

    def test_exception_in_one_track_does_not_stop_run(self):
        class BrokenMatcher(FakeMatcher):
            def match(self, title, artist):
                if title == "Bad":
                    raise ValueError("boom")
                return super().match(title, artist)

        tracks = [
            Track("spotify:track:A", "Bad", "Artist", timestamps=["t"]),
            Track("spotify:track:B", "Song", "Artist", timestamps=["t"]),
        ]
        stats = self._run(tracks, BrokenMatcher({"Song": _candidate("vidB")}), FakeFetcher())
        self.assertEqual(stats, DownloadStats(successful=1, failed=1))

    def test_waits_between_items_but_not_after_last(self):
        tracks = [
            Track("spotify:track:A", "One", "Artist", timestamps=["t"]),
            Track("spotify:track:B", "Two", "Artist", timestamps=["t"]),
        ]
        matcher = FakeMatcher({"One": _candidate("v1"), "Two": _candidate("v2")})

        self._run(tracks, matcher, FakeFetcher())

        # pause, random wait, pause
        self.assertEqual(self.sleeps, [SEARCH_PAUSE_SECONDS, 3, SEARCH_PAUSE_SECONDS])

    def test_random_wait_uses_configured_bounds(self):
        bounds = []
        tracks = [Track("spotify:track:A", None, None), Track("spotify:track:B", None, None)]
        process_tracks(
            tracks,
            FakeMatcher({}),
            FakeFetcher(),
            self.config,
            sleep=lambda s: None,
            randint=lambda a, b: bounds.append((a, b)) or a,
        )
        self.assertEqual(bounds, [(1, 3)])


class ProcessTrackTests(unittest.TestCase):
    def test_outcome_for_skipped_track(self):
        track = Track("spotify:track:A", "Song", "Artist", timestamps=["t"])
        outcome = process_track(
            track,
            FakeMatcher({"Song": _candidate("vidA")}),
            FakeFetcher(),
            Config(),
            {"vidA"},
            sleep=lambda s: None,
        )
        self.assertIs(outcome, FetchOutcome.SKIPPED)


if __name__ == "__main__":
    unittest.main()
