"""
YouCast - stream audio from online videos through yt-dlp and ffmpeg.

Turns a video identifier into a live audio byte stream by supervising one
extractor process, or an extractor piped into a transcoder when the selected
profile asks for format conversion.
"""

__version__ = "0.1.0"
