"""Tests for youcast.utils module."""

from __future__ import annotations

from youcast.utils import format_size


class TestFormatSize:
    def test_bytes(self) -> None:
        assert format_size(512) == "512.0 B"

    def test_zero(self) -> None:
        assert format_size(0) == "0.0 B"

    def test_kilobytes(self) -> None:
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self) -> None:
        assert format_size(5 * 1024 * 1024) == "5.0 MB"

    def test_gigabytes(self) -> None:
        assert format_size(3 * 1024**3) == "3.0 GB"

    def test_terabytes(self) -> None:
        assert format_size(2 * 1024**4) == "2.0 TB"
