"""Google Cloud Storage staging for audio sent to recognition."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from google.cloud import storage

from .config import StorageSettings
from .errors import ClientError, UploadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteObject:
    """A transient object uploaded for a single transcription job."""
    bucket: str
    name: str

    @property
    def uri(self) -> str:
        return f"gs://{self.bucket}/{self.name}"


def generate_object_name(
    local_path: str,
    prefix: str = "",
    clock: Callable[[], int] = time.time_ns
) -> str:
    """Time-based object name so concurrent or repeated jobs never collide."""
    ext = Path(local_path).suffix.lower() or ".mp3"
    return f"{prefix}audio-{clock()}{ext}"


class StorageSession:
    """
    Uploads and deletes staging objects in one bucket.

    Use as a context manager; the underlying client is closed on exit.
    """

    def __init__(
        self,
        settings: StorageSettings,
        client_factory: Callable[[], Any] = storage.Client
    ):
        self.settings = settings
        self._client_factory = client_factory
        self._client: Optional[Any] = None

    def __enter__(self) -> "StorageSession":
        try:
            self._client = self._client_factory()
        except Exception as e:
            raise ClientError(f"Failed to create storage client: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._client is None:
            return
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
        self._client = None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("StorageSession is not open")
        return self._client

    def upload(self, local_path: str, content_type: str = "audio/mpeg") -> RemoteObject:
        """
        Upload local_path under a fresh object name.

        Raises:
            UploadError: If the upload fails.
        """
        name = generate_object_name(local_path, self.settings.object_prefix)
        try:
            blob = self.client.bucket(self.settings.bucket).blob(name)
            blob.upload_from_filename(local_path, content_type=content_type)
        except Exception as e:
            logger.error("Upload to bucket %s failed: %s", self.settings.bucket, e)
            raise UploadError(name, e) from e

        remote = RemoteObject(bucket=self.settings.bucket, name=name)
        logger.info("Uploaded %s to %s", local_path, remote.uri)
        return remote

    def delete(self, remote: RemoteObject) -> bool:
        """Delete a staging object. Failures are logged as warnings only."""
        try:
            self.client.bucket(remote.bucket).blob(remote.name).delete()
        except Exception as e:
            logger.warning("Failed to delete temporary object %s: %s", remote.uri, e)
            return False

        logger.debug("Deleted temporary object %s", remote.uri)
        return True
