"""Tests for youcast.config module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from youcast.config import (
    BUILTIN_PROFILES,
    ExtractorSettings,
    ProfileConfig,
    YoucastConfig,
    create_default_config,
    get_default_profile,
    load_config,
    load_profiles_file,
    resolve_profile,
    write_config,
)
from youcast.exceptions import ConfigError
from youcast.extract.topology import Topology, select_topology


class TestProfileConfig:
    def test_snake_case_fields(self) -> None:
        profile = ProfileConfig(
            audio_format="mp3",
            content_type="audio/mpeg",
            file_extension="mp3",
        )
        assert profile.additional_args == []
        assert profile.postprocessor_args is None

    def test_camel_case_aliases(self) -> None:
        profile = ProfileConfig(
            **{
                "description": "legacy",
                "audioFormat": "m4a",
                "contentType": "audio/mp4",
                "fileExtension": "m4a",
                "additionalArgs": ["--no-playlist"],
                "postprocessorArgs": "",
            }
        )
        assert profile.audio_format == "m4a"
        assert profile.additional_args == ["--no-playlist"]

    def test_blank_format_raises(self) -> None:
        with pytest.raises(ValueError):
            ProfileConfig(audio_format=" ", content_type="audio/mpeg", file_extension="mp3")

    def test_missing_content_type_raises(self) -> None:
        with pytest.raises(ValueError):
            ProfileConfig(audio_format="mp3", file_extension="mp3")


class TestExtractorSettings:
    def test_defaults(self) -> None:
        settings = ExtractorSettings()
        assert settings.extractor_binary == "yt-dlp"
        assert settings.transcoder_binary == "ffmpeg"
        assert settings.source_url("abc12345678") == "https://www.youtube.com/watch?v=abc12345678"

    def test_concurrency_override(self) -> None:
        assert ExtractorSettings(concurrency=3).cpu_count() == 3

    def test_template_requires_placeholder(self) -> None:
        with pytest.raises(ValueError):
            ExtractorSettings(source_url_template="https://example.test/")

    def test_invalid_chunk_size_raises(self) -> None:
        with pytest.raises(ValueError):
            ExtractorSettings(chunk_size=0)


class TestBuiltinProfiles:
    def test_all_builtins_validate(self) -> None:
        for data in BUILTIN_PROFILES.values():
            ProfileConfig(**data)

    def test_mp3_is_two_stage(self) -> None:
        profile = ProfileConfig(**BUILTIN_PROFILES["mp3"])
        assert select_topology(profile) is Topology.TWO_STAGE

    def test_m4a_is_single_stage(self) -> None:
        profile = ProfileConfig(**BUILTIN_PROFILES["m4a"])
        assert select_topology(profile) is Topology.SINGLE


class TestDefaultProfile:
    def test_fallback_is_mp3(self, monkeypatch) -> None:
        monkeypatch.delenv("DEFAULT_AUDIO_PROFILE", raising=False)
        assert get_default_profile() == "mp3"

    def test_environment_override(self, monkeypatch) -> None:
        monkeypatch.setenv("DEFAULT_AUDIO_PROFILE", "opus")
        assert get_default_profile() == "opus"
        assert YoucastConfig().default_profile == "opus"


class TestResolveProfile:
    def test_known_profile(self) -> None:
        name, profile = resolve_profile("m4a", YoucastConfig())
        assert name == "m4a"
        assert profile.content_type == "audio/mp4"

    def test_unknown_profile_falls_back(self) -> None:
        name, _ = resolve_profile("nonexistent", YoucastConfig(default_profile="opus"))
        assert name == "opus"

    def test_missing_profile_falls_back(self) -> None:
        name, _ = resolve_profile(None, YoucastConfig(default_profile="mp3"))
        assert name == "mp3"

    def test_undefined_default_raises(self) -> None:
        with pytest.raises(ConfigError):
            resolve_profile(None, YoucastConfig(default_profile="missing"))


class TestLoadConfig:
    def test_no_file_uses_builtins(self) -> None:
        config = load_config(None)
        assert set(BUILTIN_PROFILES) <= set(config.profiles)
        assert config.config_path is None

    def test_load_config_from_file(self, config_file: Path) -> None:
        config = load_config(config_file)
        assert config.default_profile == "voice"
        assert config.extractor.chunk_size == 32768
        assert "voice" in config.profiles
        assert "mp3" in config.profiles
        assert config.config_path == config_file

    def test_load_missing_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path / "youcast.yaml")

    def test_invalid_profile_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "youcast.yaml"
        write_config({"profiles": {"broken": {"audio_format": "mp3"}}}, path)
        with pytest.raises(ConfigError, match="broken"):
            load_config(path)

    def test_invalid_extractor_settings_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "youcast.yaml"
        write_config({"extractor": {"chunk_size": -1}}, path)
        with pytest.raises(ConfigError):
            load_config(path)

    def test_profiles_file_relative_to_config(self, tmp_path: Path) -> None:
        profiles = {
            "mp3": {
                "description": "Override",
                "audioFormat": "mp3",
                "contentType": "audio/mpeg",
                "fileExtension": "mp3",
                "additionalArgs": [],
                "postprocessorArgs": "ffmpeg:-b:a 96k",
            }
        }
        (tmp_path / "yt-dlp-profiles.json").write_text(json.dumps(profiles))
        path = tmp_path / "youcast.yaml"
        write_config({"profiles_file": "yt-dlp-profiles.json"}, path)

        config = load_config(path)

        assert config.profiles["mp3"].description == "Override"
        assert config.profiles["mp3"].postprocessor_args == "ffmpeg:-b:a 96k"


class TestLoadProfilesFile:
    def test_yaml_profiles(self, tmp_path: Path) -> None:
        path = tmp_path / "profiles.yaml"
        write_config(
            {
                "aac": {
                    "audio_format": "aac",
                    "content_type": "audio/aac",
                    "file_extension": "aac",
                }
            },
            path,
        )
        profiles = load_profiles_file(path)
        assert profiles["aac"].audio_format == "aac"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_profiles_file(tmp_path / "missing.json")

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "profiles.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ConfigError):
            load_profiles_file(path)


class TestCreateDefaultConfig:
    def test_round_trips_through_load_config(self, tmp_path: Path) -> None:
        path = tmp_path / "youcast.yaml"
        write_config(create_default_config("m4a"), path)

        config = load_config(path)

        assert config.default_profile == "m4a"
        assert config.extractor == ExtractorSettings()

    def test_default_profile_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("DEFAULT_AUDIO_PROFILE", "opus")
        assert create_default_config()["default_profile"] == "opus"
