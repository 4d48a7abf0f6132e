"""
youcast.exceptions - Custom exception classes.

All YouCast-specific exceptions inherit from YoucastError.
"""


class YoucastError(Exception):
    """Base exception for all YouCast errors."""

    pass


class ConfigError(YoucastError):
    """Configuration or profile loading/validation error."""

    pass


class ValidationError(YoucastError):
    """Input validation error."""

    pass


class SpawnError(YoucastError):
    """An external process could not be started."""

    def __init__(self, binary: str, message: str):
        self.binary = binary
        self.message = message
        super().__init__(f"Failed to start {binary}: {message}")


class ProcessFailure(YoucastError):
    """An external process exited unsuccessfully."""

    def __init__(self, message: str, exit_code: int | None = None, diagnostics: str = ""):
        self.exit_code = exit_code
        self.diagnostics = diagnostics
        super().__init__(message)


class ExtractionError(ProcessFailure):
    """Extractor (yt-dlp) failure."""

    pass


class TranscodeError(ProcessFailure):
    """Transcoder (ffmpeg) failure."""

    pass


class DependencyError(YoucastError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
