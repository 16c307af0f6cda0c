"""
Exception hierarchy for mediatr.

Every failure the pipelines raise derives from MediatrError so the CLI and
the batch runner can catch them in one place.
"""

from typing import Optional


class MediatrError(Exception):
    """Base exception for user-facing mediatr failures."""


class ConfigError(MediatrError):
    """Raised when mediatr.conf holds an invalid value."""


class NotFoundError(MediatrError):
    """Raised when an input file or directory does not exist."""


class UnsupportedFormatError(MediatrError):
    """Raised when an input file has an extension the job cannot handle."""


class MissingDependencyError(MediatrError):
    """Raised when a required external tool is not on PATH."""


class TranscodeError(MediatrError):
    """Raised when the ffmpeg process exits with an error."""


class NoMatchingFilesError(MediatrError):
    """Raised when a batch scan finds no file with a recognized extension."""


class WalkError(MediatrError):
    """Raised when directory traversal fails partway through."""


class DirectoryCreationError(MediatrError):
    """Raised when an output directory cannot be created."""


class UploadError(MediatrError):
    """Raised when uploading audio to object storage fails."""

    def __init__(self, object_name: str, cause: Optional[Exception] = None):
        self.object_name = object_name
        self.cause = cause
        message = f"Failed to upload '{object_name}' to storage"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class TranscriptionError(MediatrError):
    """Raised when the remote recognition operation fails."""


class WriteError(MediatrError):
    """Raised when the transcript cannot be written to disk."""


class ClientError(MediatrError):
    """Raised when a Google Cloud client cannot be created, e.g. missing credentials."""
