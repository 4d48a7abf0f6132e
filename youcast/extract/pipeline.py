"""
youcast.extract.pipeline - Turn a video ID into a streaming audio handle.

Single-stage: yt-dlp converts and streams by itself. The handle is only
returned once the first byte arrives, so an early failure can still be
reported as a plain exception.

Two-stage: yt-dlp streams raw audio through an OS pipe into ffmpeg. The
handle is returned as soon as both processes are running; later failures
of either process surface as an error from the stream.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from dataclasses import dataclass

from youcast.config import ExtractorSettings, ProfileConfig
from youcast.exceptions import ExtractionError, TranscodeError, YoucastError
from youcast.extract.latch import RequestState
from youcast.extract.stream import AudioStream
from youcast.extract.supervisor import Supervisor
from youcast.extract.topology import (
    Topology,
    build_direct_args,
    build_raw_audio_args,
    build_transcoder_args,
    select_topology,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineHandle:
    """A ready audio stream plus what a caller needs to serve it."""

    stream: AudioStream
    content_type: str
    title: str
    file_extension: str
    topology: Topology


async def extract_audio_stream(
    source_id: str,
    profile: ProfileConfig,
    profile_name: str = "custom",
    settings: ExtractorSettings | None = None,
) -> PipelineHandle:
    """Start extracting audio for ``source_id`` using ``profile``.

    Args:
        source_id: Video identifier, inserted into the source URL template
        profile: Audio profile controlling format and topology
        profile_name: Profile name, used for logging only
        settings: Binaries and tuning; defaults to ExtractorSettings()

    Returns:
        PipelineHandle whose stream yields the audio bytes

    Raises:
        SpawnError: If yt-dlp or ffmpeg could not be started
        ExtractionError: If single-stage yt-dlp failed before emitting any audio
    """
    settings = settings or ExtractorSettings()
    topology = select_topology(profile)

    logger.info("Extracting %s (profile: %s, %s)", source_id, profile_name, topology.value)
    logger.debug("Using profile: %s", profile.description)

    supervisor = Supervisor(source_id, diagnostic_limit=settings.diagnostic_limit)
    if topology is Topology.TWO_STAGE:
        stream = await _start_two_stage(supervisor, source_id, profile, settings)
    else:
        stream = await _start_single(supervisor, source_id, profile, settings)

    return PipelineHandle(
        stream=stream,
        content_type=profile.content_type,
        title=f"Video {source_id}",
        file_extension=profile.file_extension,
        topology=topology,
    )


async def _start_single(
    supervisor: Supervisor,
    source_id: str,
    profile: ProfileConfig,
    settings: ExtractorSettings,
) -> AudioStream:
    try:
        extractor = await supervisor.spawn(
            "yt-dlp",
            settings.extractor_binary,
            build_direct_args(source_id, profile, settings),
        )
    except YoucastError:
        supervisor.transition(RequestState.REJECTED)
        raise
    supervisor.watch(extractor, ExtractionError)

    try:
        first_chunk = await extractor.process.stdout.read(settings.chunk_size)
    except asyncio.CancelledError:
        supervisor.transition(RequestState.CANCELLED)
        logger.info("Request for %s cancelled before any audio, stopping", source_id)
        supervisor.terminate_all()
        await asyncio.shield(supervisor.reap())
        raise

    if not first_chunk:
        error = await supervisor.finish()
        supervisor.transition(RequestState.REJECTED)
        if error is None:
            error = ExtractionError(
                "yt-dlp exited without producing any audio",
                exit_code=extractor.returncode,
                diagnostics=extractor.diagnostics.text,
            )
            logger.error("%s: %s", source_id, error)
        raise error

    supervisor.transition(RequestState.STREAMING)
    logger.debug("First audio bytes received for %s", source_id)
    return AudioStream(
        extractor.process.stdout,
        supervisor,
        chunk_size=settings.chunk_size,
        first_chunk=first_chunk,
    )


async def _start_two_stage(
    supervisor: Supervisor,
    source_id: str,
    profile: ProfileConfig,
    settings: ExtractorSettings,
) -> AudioStream:
    read_fd, write_fd = os.pipe()
    try:
        extractor = await supervisor.spawn(
            "yt-dlp",
            settings.extractor_binary,
            build_raw_audio_args(source_id, settings),
            stdout=write_fd,
        )
        transcoder = await supervisor.spawn(
            "ffmpeg",
            settings.transcoder_binary,
            build_transcoder_args(profile),
            stdin=read_fd,
            stdout=subprocess.PIPE,
        )
    except YoucastError:
        supervisor.transition(RequestState.REJECTED)
        supervisor.terminate_all()
        await supervisor.reap()
        raise
    finally:
        # the children hold their own copies now
        os.close(read_fd)
        os.close(write_fd)

    supervisor.watch(extractor, ExtractionError)
    supervisor.watch(transcoder, TranscodeError)
    supervisor.transition(RequestState.STREAMING)
    logger.debug("Conversion pipeline running for %s: yt-dlp -> ffmpeg", source_id)
    return AudioStream(transcoder.process.stdout, supervisor, chunk_size=settings.chunk_size)
