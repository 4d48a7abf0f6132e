"""
youcast.validation - Dependency checks and input validation.

Validates the environment and request inputs before extraction.
"""

from __future__ import annotations

import re
import shutil
import subprocess
from typing import Any

from youcast.config import ExtractorSettings
from youcast.exceptions import DependencyError, ValidationError

INSTALL_HINTS = {
    "yt-dlp": "Install with: pip install yt-dlp (or brew install yt-dlp)",
    "ffmpeg": "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
}

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


def check_binary(binary: str, version_flag: str = "--version") -> dict[str, str]:
    """Check that a binary is on PATH and get its version.

    Args:
        binary: Executable name or path
        version_flag: Flag that prints the version

    Returns:
        Dict with 'path' and 'version'

    Raises:
        DependencyError: If the binary is not found
    """
    path = shutil.which(binary)
    if not path:
        raise DependencyError(
            binary,
            f"{binary} not found in PATH",
            INSTALL_HINTS.get(binary),
        )

    try:
        proc = subprocess.run(
            [path, version_flag],
            capture_output=True,
            text=True,
            timeout=5,
        )
        version_line = proc.stdout.split("\n")[0].strip()
        version = _parse_version(version_line) or "unknown"
    except (subprocess.TimeoutExpired, OSError):
        version = "unknown"

    return {"path": path, "version": version}


def _parse_version(line: str) -> str | None:
    # "ffmpeg version 6.1.1 Copyright..." or yt-dlp's bare "2024.08.06"
    parts = line.split()
    if len(parts) >= 3 and parts[1] == "version":
        return parts[2]
    return parts[0] if parts else None


def check_dependencies(settings: ExtractorSettings | None = None) -> dict[str, Any]:
    """Check yt-dlp and ffmpeg, collecting results instead of raising.

    Returns:
        Dict with 'passed' and per-binary 'checks'
    """
    settings = settings or ExtractorSettings()
    results: dict[str, Any] = {"passed": True, "checks": {}}

    for binary, flag in (
        (settings.extractor_binary, "--version"),
        (settings.transcoder_binary, "-version"),
    ):
        try:
            results["checks"][binary] = check_binary(binary, flag)
        except DependencyError as e:
            results["checks"][binary] = {"error": str(e), "install_hint": e.install_hint}
            results["passed"] = False

    return results


def validate_source_id(source_id: str) -> str:
    """Validate a YouTube video ID (11 URL-safe characters).

    Raises:
        ValidationError: If the ID is malformed
    """
    if not source_id or not VIDEO_ID_PATTERN.match(source_id):
        raise ValidationError(
            f"Invalid video ID '{source_id}': must be an 11 character YouTube video ID"
        )
    return source_id
