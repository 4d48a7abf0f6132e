"""
youcast.extract.topology - Pipeline shape and process command lines.

A profile with postprocessor args needs a second (ffmpeg) stage; every
other profile is streamed by yt-dlp alone.
"""

from __future__ import annotations

import re
from enum import Enum

from youcast.config import ExtractorSettings, ProfileConfig

# yt-dlp style "NAME:ARGS" postprocessor arg prefix, e.g. "ffmpeg:-c:a aac"
POSTPROCESSOR_TAG = re.compile(r"^\s*[A-Za-z][\w+-]*:")


class Topology(str, Enum):
    SINGLE = "single"
    TWO_STAGE = "two-stage"


def select_topology(profile: ProfileConfig) -> Topology:
    """Return TWO_STAGE when the profile carries non-blank postprocessor args."""
    if profile.postprocessor_args and profile.postprocessor_args.strip():
        return Topology.TWO_STAGE
    return Topology.SINGLE


def parse_postprocessor_args(raw: str | None) -> list[str]:
    """Strip the leading tag and split postprocessor args on whitespace.

    >>> parse_postprocessor_args("ffmpeg:-c:a libmp3lame  -b:a 64k")
    ['-c:a', 'libmp3lame', '-b:a', '64k']
    """
    if not raw:
        return []
    return POSTPROCESSOR_TAG.sub("", raw, count=1).split()


def build_direct_args(
    source_id: str, profile: ProfileConfig, settings: ExtractorSettings
) -> list[str]:
    """yt-dlp arguments for single-stage streaming."""
    return [
        "-N",
        str(settings.cpu_count()),
        "-x",
        "--audio-format",
        profile.audio_format,
        "--output",
        "-",
        *profile.additional_args,
        settings.source_url(source_id),
    ]


def build_raw_audio_args(source_id: str, settings: ExtractorSettings) -> list[str]:
    """yt-dlp arguments for the first stage of a conversion pipeline."""
    return [
        "-N",
        str(settings.cpu_count()),
        "-f",
        "bestaudio",
        "--output",
        "-",
        "--no-playlist",
        settings.source_url(source_id),
    ]


def build_transcoder_args(profile: ProfileConfig) -> list[str]:
    """ffmpeg arguments reading stdin and writing the profile's container to stdout."""
    return [
        "-hide_banner",
        "-i",
        "pipe:0",
        *parse_postprocessor_args(profile.postprocessor_args),
        "-f",
        profile.audio_format,
        "pipe:1",
    ]
