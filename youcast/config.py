"""
youcast.config - YAML config loading, audio profiles, validation.

Handles loading youcast.yaml, merging custom audio profiles over the
built-in ones, and resolving the profile a request should use.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from youcast.exceptions import ConfigError

DEFAULT_PROFILE = "mp3"


class ProfileConfig(BaseModel):
    """Named bundle of extraction/transcoding parameters.

    Accepts snake_case keys or the camelCase keys used by existing
    yt-dlp profile JSON files (audioFormat, postprocessorArgs, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: str = ""
    audio_format: str
    content_type: str
    file_extension: str
    additional_args: list[str] = Field(default_factory=list)
    postprocessor_args: str | None = None

    @field_validator("audio_format", "content_type", "file_extension")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ExtractorSettings(BaseModel):
    """How external processes are located and driven."""

    extractor_binary: str = "yt-dlp"
    transcoder_binary: str = "ffmpeg"
    source_url_template: str = "https://www.youtube.com/watch?v={source_id}"
    concurrency: int | None = Field(default=None, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    diagnostic_limit: int = Field(default=8192, gt=0)

    @field_validator("source_url_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        if "{source_id}" not in v:
            raise ValueError("source_url_template must contain {source_id}")
        return v

    def source_url(self, source_id: str) -> str:
        return self.source_url_template.format(source_id=source_id)

    def cpu_count(self) -> int:
        return self.concurrency or os.cpu_count() or 1


BUILTIN_PROFILES: dict[str, dict[str, Any]] = {
    "mp3": {
        "description": "MP3 64k mono, transcoded by ffmpeg (podcast friendly)",
        "audio_format": "mp3",
        "content_type": "audio/mpeg",
        "file_extension": "mp3",
        "additional_args": [],
        "postprocessor_args": "ffmpeg:-threads 0 -c:a libmp3lame -b:a 64k -ac 1 -ar 22050",
    },
    "mp3-hq": {
        "description": "MP3 128k stereo, transcoded by ffmpeg",
        "audio_format": "mp3",
        "content_type": "audio/mpeg",
        "file_extension": "mp3",
        "additional_args": [],
        "postprocessor_args": "ffmpeg:-threads 0 -c:a libmp3lame -b:a 128k -ar 44100",
    },
    "m4a": {
        "description": "Native AAC audio streamed directly by yt-dlp",
        "audio_format": "m4a",
        "content_type": "audio/mp4",
        "file_extension": "m4a",
        "additional_args": ["-f", "bestaudio[ext=m4a]/bestaudio", "--no-playlist"],
        "postprocessor_args": None,
    },
    "opus": {
        "description": "Native Opus audio streamed directly by yt-dlp",
        "audio_format": "opus",
        "content_type": "audio/ogg",
        "file_extension": "opus",
        "additional_args": ["-f", "bestaudio[acodec=opus]/bestaudio", "--no-playlist"],
        "postprocessor_args": None,
    },
}


class YoucastConfig(BaseModel):
    """Resolved configuration for YouCast."""

    default_profile: str = Field(default_factory=lambda: get_default_profile())
    extractor: ExtractorSettings = Field(default_factory=ExtractorSettings)
    profiles: dict[str, ProfileConfig] = Field(
        default_factory=lambda: {
            name: ProfileConfig(**data) for name, data in BUILTIN_PROFILES.items()
        }
    )
    config_path: Path | None = None


def get_default_profile() -> str:
    """Get the default audio profile from DEFAULT_AUDIO_PROFILE, falling back to 'mp3'."""
    return os.environ.get("DEFAULT_AUDIO_PROFILE") or DEFAULT_PROFILE


def load_profiles_file(path: Path) -> dict[str, ProfileConfig]:
    """Load a YAML or JSON mapping of profile name to profile settings."""
    if not path.exists():
        raise ConfigError(f"Profiles file not found: {path}")

    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            raw = json.load(f)
        else:
            raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Profiles file must contain a mapping: {path}")
    return parse_profiles(raw, source=str(path))


def parse_profiles(raw: dict[str, Any], source: str = "config") -> dict[str, ProfileConfig]:
    """Validate raw profile dicts into ProfileConfig models."""
    profiles = {}
    for name, data in raw.items():
        if not isinstance(data, dict):
            raise ConfigError(f"Profile '{name}' in {source} must be a mapping")
        try:
            profiles[name] = ProfileConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid profile '{name}' in {source}: {e}") from e
    return profiles


def load_config(config_file: Path | None = None) -> YoucastConfig:
    """Load and validate configuration.

    Without a file, returns the built-in profiles and default settings.
    Profiles from the file are merged over the built-ins; a ``profiles_file``
    key points at a separate YAML/JSON profiles file, relative to the config.
    """
    if config_file is None:
        return YoucastConfig()

    if not config_file.exists():
        raise ConfigError(f"No config file found at {config_file}")

    with open(config_file, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_file}")

    profiles = {name: ProfileConfig(**data) for name, data in BUILTIN_PROFILES.items()}

    profiles_file = raw_config.get("profiles_file")
    if profiles_file:
        profiles_path = Path(profiles_file)
        if not profiles_path.is_absolute():
            profiles_path = config_file.parent / profiles_path
        profiles.update(load_profiles_file(profiles_path))

    profiles.update(parse_profiles(raw_config.get("profiles") or {}, source=str(config_file)))

    try:
        return YoucastConfig(
            default_profile=raw_config.get("default_profile") or get_default_profile(),
            extractor=ExtractorSettings(**(raw_config.get("extractor") or {})),
            profiles=profiles,
            config_path=config_file,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def resolve_profile(
    requested: str | None, config: YoucastConfig | None = None
) -> tuple[str, ProfileConfig]:
    """Get profile configuration, falling back to the default profile.

    Unknown or missing profile names resolve to the default.

    Raises:
        ConfigError: If the default profile itself is not defined
    """
    config = config or YoucastConfig()
    if requested and requested in config.profiles:
        return requested, config.profiles[requested]

    default = config.default_profile
    if default not in config.profiles:
        raise ConfigError(f"Default profile '{default}' is not defined")
    return default, config.profiles[default]


def create_default_config(default_profile: str | None = None) -> dict[str, Any]:
    """Create a starter youcast.yaml with the default extractor settings."""
    extractor = ExtractorSettings().model_dump(exclude_none=True)
    return {
        "default_profile": default_profile or get_default_profile(),
        "extractor": extractor,
        "profiles": {},
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
