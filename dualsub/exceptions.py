"""Custom Exceptions for the DualSub application."""

class DualSubError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(DualSubError):
    """Exception raised for errors in configuration loading."""
    pass

class AudioExtractionError(DualSubError):
    """Exception raised for errors during audio extraction."""
    pass

class TranscriptionError(DualSubError):
    """Exception raised for errors during transcription or when parsing a transcription response."""
    pass

class TranslationError(DualSubError):
    """Exception raised for errors during translation."""
    pass

class FormattingError(DualSubError):
    """Exception raised for errors during subtitle formatting."""
    pass

class SRTParseError(FormattingError):
    """Exception raised for a single SRT block that cannot be parsed."""
    pass

class FileSystemError(DualSubError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass

class RenderError(DualSubError):
    """Exception raised when burning subtitles into a video fails or is cancelled."""
    pass

class IngestionError(DualSubError, ValueError):
    """Exception raised when raw segments cannot be turned into subtitles."""
    pass

class MalformedTimestampError(IngestionError):
    """Exception raised for a timestamp that is not HH:MM:SS,mmm (or HH:MM:SS.mmm)."""

    def __init__(self, timestamp, reason: str = "expected HH:MM:SS,mmm"):
        self.timestamp = timestamp
        super().__init__(f"Malformed timestamp {timestamp!r}: {reason}")

class InvalidIntervalError(IngestionError):
    """Exception raised for a segment whose end lies before its start."""

    def __init__(self, index, start_time: str, end_time: str):
        self.index = index
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(f"Segment {index} ends before it starts ({start_time} --> {end_time})")
