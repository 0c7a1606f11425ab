import subprocess
import unittest
from pathlib import Path
from unittest import mock

from musicarchiver.download import YtDlpFetcher, check_ytdlp
from musicarchiver.errors import MissingDependencyError


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class YtDlpFetcherTests(unittest.TestCase):
    def test_build_args(self):
        fetcher = YtDlpFetcher("mp3", use_cookie_file=True)
        args = fetcher.build_args("dQw4w9WgXcQ", Path("out"), "Song___Artist__ytId__dQw4w9WgXcQ___trackId_A")

        self.assertEqual(args[0], "yt-dlp")
        self.assertIn("-x", args)
        self.assertEqual(args[args.index("--audio-format") + 1], "mp3")
        self.assertEqual(args[args.index("--cookies") + 1], "cookies.txt")
        self.assertEqual(
            args[args.index("-o") + 1],
            str(Path("out") / "Song___Artist__ytId__dQw4w9WgXcQ___trackId_A.%(ext)s"),
        )
        self.assertEqual(args[-1], "https://www.youtube.com/watch?v=dQw4w9WgXcQ")

    def test_no_cookies(self):
        args = YtDlpFetcher("opus", use_cookie_file=False).build_args("id", Path("."), "f")
        self.assertNotIn("--cookies", args)

    def test_fetch_reports_exit_status(self):
        fetcher = YtDlpFetcher("opus")
        with mock.patch("musicarchiver.download.subprocess.run", return_value=_completed(0)) as run:
            self.assertTrue(fetcher.fetch("id", Path("."), "f"))
        self.assertTrue(run.call_args.kwargs["capture_output"])

        with mock.patch(
            "musicarchiver.download.subprocess.run",
            return_value=_completed(1, stderr="ERROR: Video unavailable"),
        ):
            with self.assertLogs("musicarchiver.download", level="ERROR") as logs:
                self.assertFalse(fetcher.fetch("id", Path("."), "f"))
        self.assertIn("Video unavailable", logs.output[0])

    def test_fetch_when_ytdlp_cannot_start(self):
        with mock.patch("musicarchiver.download.subprocess.run", side_effect=FileNotFoundError("yt-dlp")):
            self.assertFalse(YtDlpFetcher("opus").fetch("id", Path("."), "f"))


class CheckYtdlpTests(unittest.TestCase):
    def test_installed(self):
        with mock.patch("musicarchiver.download.subprocess.run", return_value=_completed(0, "2024.08.06\n")):
            check_ytdlp()

    def test_missing(self):
        with mock.patch("musicarchiver.download.subprocess.run", side_effect=FileNotFoundError("yt-dlp")):
            with self.assertRaises(MissingDependencyError):
                check_ytdlp()

    def test_broken(self):
        with mock.patch("musicarchiver.download.subprocess.run", return_value=_completed(127)):
            with self.assertRaises(MissingDependencyError):
                check_ytdlp()


if __name__ == "__main__":
    unittest.main()
