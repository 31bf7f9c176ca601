"""Custom Exceptions for the CaptionLoop application."""

from enum import Enum
from typing import Optional

class CaptionLoopError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(CaptionLoopError):
    """Exception raised for errors in configuration loading."""
    pass

class FileSystemError(CaptionLoopError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass

class FormattingError(CaptionLoopError):
    """Exception raised for errors while writing transcript output."""
    pass

class AcquisitionError(CaptionLoopError):
    """Base class for every failure of the transcript acquisition pipeline."""
    pass

class InvalidVideoUrl(AcquisitionError):
    """Exception raised when no video ID can be derived from the given URL."""

    def __init__(self, url: Optional[str]):
        super().__init__(f"Could not extract a video ID from: {url!r}")
        self.url = url

class NetworkError(AcquisitionError):
    """Request failed, timed out, or returned a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code

class ParseErrorKind(Enum):
    MISSING_API_KEY = "missing_api_key"
    NO_CAPTIONS_AVAILABLE = "no_captions_available"
    NO_ENGLISH_TRACK = "no_english_track"
    EMPTY_TRANSCRIPT = "empty_transcript"

class ParseError(AcquisitionError):
    """Structural absence of expected data at a specific pipeline stage."""

    def __init__(self, kind: ParseErrorKind, message: Optional[str] = None):
        super().__init__(message or kind.value.replace("_", " ").capitalize())
        self.kind = kind

class AcquisitionCancelled(AcquisitionError):
    """Raised inside a pipeline run whose cancellation token was triggered."""
    pass


_PARSE_MESSAGES = {
    ParseErrorKind.MISSING_API_KEY: "Could not read the video page. YouTube may have changed its format.",
    ParseErrorKind.NO_CAPTIONS_AVAILABLE: "No transcript available for this video.",
    ParseErrorKind.NO_ENGLISH_TRACK: "This video has no English captions.",
    ParseErrorKind.EMPTY_TRANSCRIPT: "The English captions for this video are empty.",
}

def describe_error(error: AcquisitionError) -> str:
    """Maps an acquisition error to a short user-facing message."""
    if isinstance(error, ParseError):
        return _PARSE_MESSAGES[error.kind]
    if isinstance(error, InvalidVideoUrl):
        return "Invalid YouTube URL."
    if isinstance(error, NetworkError):
        if error.status_code is not None:
            return f"Network error (HTTP {error.status_code}). Please try again."
        return "Network error. Please check your connection and try again."
    return f"Error loading transcript: {error}"
