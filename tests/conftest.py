"""
Test configuration and shared fixtures.

External tools are replaced by small executable Python scripts so the
pipeline runs real subprocesses without yt-dlp, ffmpeg or network access.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from fakes import relay_body, write_script
from youcast.config import ExtractorSettings, ProfileConfig


@pytest.fixture
def make_bin(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory for fake executables in a per-test bin directory."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        return write_script(bin_dir, name, body)

    return _make


@pytest.fixture
def make_settings(make_bin) -> Callable[..., ExtractorSettings]:
    """Build ExtractorSettings pointing at fake yt-dlp/ffmpeg scripts."""

    def _settings(
        extractor: str,
        transcoder: str | None = None,
        **overrides,
    ) -> ExtractorSettings:
        extractor_path = make_bin("yt-dlp", extractor)
        transcoder_path = make_bin("ffmpeg", transcoder or relay_body())
        return ExtractorSettings(
            extractor_binary=str(extractor_path),
            transcoder_binary=str(transcoder_path),
            concurrency=2,
            chunk_size=4096,
            **overrides,
        )

    return _settings


@pytest.fixture
def direct_profile() -> ProfileConfig:
    """Profile streamed by yt-dlp alone."""
    return ProfileConfig(
        description="Direct opus",
        audio_format="opus",
        content_type="audio/ogg",
        file_extension="opus",
        additional_args=["--no-playlist", "-f", "bestaudio"],
        postprocessor_args="",
    )


@pytest.fixture
def convert_profile() -> ProfileConfig:
    """Profile that pipes yt-dlp into ffmpeg."""
    return ProfileConfig(
        description="MP3 64k",
        audio_format="mp3",
        content_type="audio/mpeg",
        file_extension="mp3",
        postprocessor_args="tag:-c:a libmp3lame -b:a 64k",
    )


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample configuration dictionary."""
    return {
        "default_profile": "voice",
        "extractor": {
            "extractor_binary": "yt-dlp",
            "transcoder_binary": "ffmpeg",
            "chunk_size": 32768,
        },
        "profiles": {
            "voice": {
                "description": "Low bitrate speech",
                "audio_format": "mp3",
                "content_type": "audio/mpeg",
                "file_extension": "mp3",
                "postprocessor_args": "ffmpeg:-c:a libmp3lame -b:a 32k -ac 1",
            }
        },
    }


@pytest.fixture
def config_file(tmp_path: Path, sample_config_dict: dict) -> Path:
    """Write sample_config_dict to a youcast.yaml and return its path."""
    path = tmp_path / "youcast.yaml"
    with open(path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return path
