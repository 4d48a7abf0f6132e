"""
youcast.extract - Audio extraction pipeline.

Spawns yt-dlp (and ffmpeg when the profile needs conversion), wires their
stdio together and exposes the result as a single async byte stream.
"""

from __future__ import annotations

from youcast.extract.pipeline import PipelineHandle, extract_audio_stream
from youcast.extract.stream import AudioStream
from youcast.extract.topology import Topology, select_topology

__all__ = [
    "AudioStream",
    "PipelineHandle",
    "Topology",
    "extract_audio_stream",
    "select_topology",
]
