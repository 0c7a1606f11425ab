"""String sanitization, normalization and timing utilities."""

import difflib
import random
import re
import unicodedata

from .config import MAX_FILENAME_COMPONENT

# Characters not allowed in filenames on common filesystems
ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize_filename(name: str) -> str:
    """Make a title or artist safe to embed in a filename.

    Examples:
        'AC/DC' -> 'ACDC'
        '  What  is "Love"?  ' -> 'What is Love'
    """
    name = ILLEGAL_FILENAME_CHARS.sub("", name)
    name = " ".join(name.split())
    return name[:MAX_FILENAME_COMPONENT]


def normalize_text(text: str) -> str:
    """Normalize text for similarity scoring."""
    if not text:
        return ""
    text = text.lower()
    # Drop bracketed qualifiers like "(Remastered 2011)" or "[Live]"
    text = re.sub(
        r"\s*[\(\[].*?(radio|edit|remaster|live|version|remix|acoustic|"
        r"feat\.?|ft\.?|bonus|extended|single|original|\d{4}).*?[\)\]]",
        "",
        text,
        flags=re.IGNORECASE,
    )
    # Normalize unicode (é -> e)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^\w\s]", " ", text)
    return " ".join(text.split())


def similarity(s1: str, s2: str) -> float:
    """Calculate similarity ratio between two strings."""
    return difflib.SequenceMatcher(None, s1, s2).ratio()


def parse_duration(text: str | None) -> int | None:
    """Parse a 'M:SS' or 'H:MM:SS' display duration into seconds."""
    if not text:
        return None
    parts = text.strip().split(":")
    if not all(p.isdigit() for p in parts) or len(parts) > 3:
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + int(part)
    return seconds


def random_wait_seconds(min_wait: int, max_wait: int, randint=random.randint) -> int:
    """Pick a whole number of seconds in [min_wait, max_wait], inclusive."""
    return randint(min_wait, max_wait)
