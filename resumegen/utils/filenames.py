"""Download file name helpers."""

import re
import unicodedata

_PUNCTUATION = {
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
    "/": "-",
    "\\": "-",
    ":": "-",
    "|": "-",
}


def sanitize_filename(text: str, fallback: str = "resume") -> str:
    """
    Reduce text to an ASCII file name safe for Content-Disposition headers.

    >>> sanitize_filename("José's CV: 2024")
    'Joses_CV-_2024'
    """
    if not text:
        return fallback

    text = unicodedata.normalize("NFKD", text)
    for old, new in _PUNCTUATION.items():
        text = text.replace(old, new)

    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"\s+", "_", text)
    text = re.sub(r"[^\w\-]", "", text)
    text = text.strip("_-")[:50]

    return text or fallback
