"""
youcast.extract.diagnostics - Bounded stderr capture and failure hints.
"""

from __future__ import annotations

import codecs
import logging
import re
from enum import Enum

logger = logging.getLogger(__name__)

SEVERITY_MARKERS = ("ERROR", "error")
FORMAT_MARKER = re.compile(r"Downloading \d+ format\(s\):")
LINE_BREAK = re.compile(r"[\r\n]")


class DiagnosticBuffer:
    """Accumulates a process's stderr text, keeping at most ``limit`` chars.

    The newest text is kept; the partial trailing line is bounded too.
    """

    def __init__(self, name: str, limit: int = 8192) -> None:
        self.name = name
        self.limit = limit
        self.total_chars = 0
        self._text = ""
        self._partial = ""
        # keeps a multi-byte character split across reads intact
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def text(self) -> str:
        return self._text

    @property
    def truncated(self) -> bool:
        return self.total_chars > len(self._text)

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return the complete, non-empty lines it finished."""
        return self._append(self._decoder.decode(chunk))

    def flush(self) -> list[str]:
        """Return the unterminated last line, if any."""
        lines = self._append(self._decoder.decode(b"", final=True))
        line, self._partial = self._partial.strip(), ""
        return lines + [line] if line else lines

    def _append(self, decoded: str) -> list[str]:
        self.total_chars += len(decoded)
        self._text = (self._text + decoded)[-self.limit :]

        pieces = LINE_BREAK.split(self._partial + decoded)
        self._partial = pieces.pop()[-self.limit :]
        return [line.strip() for line in pieces if line.strip()]

    def excerpt(self, size: int = 500) -> str:
        return self._text[-size:].strip()


def forward_line(name: str, line: str) -> None:
    """Forward noteworthy diagnostic lines to the log without flooding it."""
    if FORMAT_MARKER.search(line):
        logger.info("%s format: %s", name, line)
    elif any(marker in line for marker in SEVERITY_MARKERS):
        logger.debug("%s: %s", name, line)


class FailureKind(str, Enum):
    CONFIGURATION = "configuration"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    UNKNOWN = "unknown"


def classify_failure(text: str) -> FailureKind:
    """Map extractor diagnostics to a coarse failure category."""
    lowered = text.lower()
    if "invalid audio format" in lowered:
        return FailureKind.CONFIGURATION
    if "video unavailable" in lowered or "private video" in lowered:
        return FailureKind.UNAVAILABLE
    if "rate limit" in lowered or "http error 429" in lowered:
        return FailureKind.RATE_LIMITED
    return FailureKind.UNKNOWN
