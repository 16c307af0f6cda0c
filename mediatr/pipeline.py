"""
Pipelines that orchestrate video-to-audio extraction and audio transcription.

Each pipeline handles one file at a time; directory inputs are expanded
into a batch where a failing file is logged and skipped.
"""

import logging
import os
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from .config import Settings
from .errors import MediatrError, NoMatchingFilesError, NotFoundError, UnsupportedFormatError
from .extractor import AudioExtractor
from .files import (
    AUDIO_FORMATS, VIDEO_FORMATS,
    ensure_directory, has_extension, is_directory, resolve_output_path,
    resolve_target, scan_directory,
)
from .formatter import MarkdownFormatter
from .storage import StorageSession
from .transcriber import Transcriber

logger = logging.getLogger(__name__)


@dataclass
class ItemResult:
    """Outcome of one file in a pipeline run."""
    input_path: str
    output_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """Per-file outcomes of a pipeline run."""
    items: List[ItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[ItemResult]:
        return [r for r in self.items if r.success]

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.items if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed


def run_batch(
    paths: Iterable[str],
    process: Callable[[str], str],
    progress_callback: Optional[Callable[[int, int, str], None]] = None
) -> BatchResult:
    """
    Apply process to every path, continuing past failures.

    Args:
        paths: Input files, processed in order.
        process: Single-file operation returning the output path.
        progress_callback: Optional callback(current, total, message).

    Returns:
        BatchResult with one ItemResult per path.
    """
    paths = list(paths)
    total = len(paths)
    result = BatchResult()

    for i, path in enumerate(paths):
        if progress_callback:
            progress_callback(i, total, f"Processing: {Path(path).name}")

        try:
            output_path = process(path)
        except MediatrError as e:
            logger.error("Failed to process %s: %s", path, e)
            result.items.append(ItemResult(input_path=path, error=str(e)))
            continue
        except Exception as e:
            logger.exception("Unexpected error processing %s", path)
            result.items.append(ItemResult(input_path=path, error=f"Unexpected error: {e}"))
            continue

        result.items.append(ItemResult(input_path=path, output_path=output_path))

    if progress_callback:
        progress_callback(total, total, "Batch processing complete!")

    return result


def _expand(
    input_path: str,
    output: Optional[str],
    extensions: Iterable[str],
    kind: str
) -> List[str]:
    """Scan a batch directory and prepare its output directory."""
    files = scan_directory(input_path, extensions)
    if not files:
        raise NoMatchingFilesError(
            f"No {kind} files found in {input_path} "
            f"(looked for: {', '.join(sorted(extensions))})"
        )
    if output:
        ensure_directory(output)
    logger.info("Found %d %s file(s) in %s", len(files), kind, input_path)
    return files


class VideoPipeline:
    """Convert a video file, or every video under a directory, to MP3."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        extractor: Optional[AudioExtractor] = None
    ):
        self.settings = settings or Settings()
        self._extractor = extractor

    @property
    def extractor(self) -> AudioExtractor:
        """Get or create the audio extractor."""
        if self._extractor is None:
            self._extractor = AudioExtractor(self.settings.transcode)
        return self._extractor

    def extract(self, video_path: str, output_path: Optional[str] = None) -> str:
        """Extract audio from one video. Errors propagate to the caller."""
        return self.extractor.extract_audio(video_path, output_path)

    def run(
        self,
        input_path: str,
        output: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process a video file or a directory of videos.

        A single file raises on failure. In directory mode, output is an
        output directory and per-file failures are recorded, not raised.

        Raises:
            NotFoundError: If input_path does not exist.
            NoMatchingFilesError: If a directory holds no video files.
            MissingDependencyError: If ffmpeg is not installed.
        """
        if not is_directory(input_path):
            output_path = self.extract(input_path, output)
            return BatchResult([ItemResult(input_path=input_path, output_path=output_path)])

        videos = _expand(input_path, output, VIDEO_FORMATS, "video")
        # a missing ffmpeg fails the whole batch, not each file
        self.extractor.ffmpeg
        return run_batch(
            videos,
            lambda path: self.extract(path, resolve_output_path(path, output, ".mp3")),
            progress_callback,
        )


class TranscriptionPipeline:
    """
    Transcribe an MP3 file, or every MP3 under a directory, to markdown.

    Audio is staged in Cloud Storage for the duration of each job and
    deleted afterwards.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        speech_client_factory: Optional[Callable[[], Any]] = None,
        storage_client_factory: Optional[Callable[[], Any]] = None,
        formatter: Optional[MarkdownFormatter] = None
    ):
        """
        Initialize the transcription pipeline.

        Args:
            settings: Storage and recognition settings.
            speech_client_factory: Creates the Speech client (default SpeechClient).
            storage_client_factory: Creates the Storage client (default storage.Client).
            formatter: Markdown formatter for the transcript.
        """
        self.settings = settings or Settings()
        self._speech_client_factory = speech_client_factory
        self._storage_client_factory = storage_client_factory
        self.formatter = formatter or MarkdownFormatter()

    def _open_transcriber(self) -> Transcriber:
        if self._speech_client_factory is None:
            return Transcriber(self.settings.recognition)
        return Transcriber(self.settings.recognition, self._speech_client_factory)

    def _open_storage(self) -> StorageSession:
        if self._storage_client_factory is None:
            return StorageSession(self.settings.storage)
        return StorageSession(self.settings.storage, self._storage_client_factory)

    def transcribe(self, audio_path: str, transcript_path: Optional[str] = None) -> str:
        """
        Transcribe one MP3 file and write its markdown transcript.

        Returns:
            Path of the written transcript.

        Raises:
            NotFoundError: If the audio file does not exist.
            UnsupportedFormatError: If the file is not an .mp3.
            ClientError: If a Google Cloud client cannot be created.
            UploadError, TranscriptionError, WriteError: On remote or disk failures.
        """
        if not os.path.exists(audio_path):
            raise NotFoundError(f"Audio file not found: {audio_path}")

        if not has_extension(audio_path, AUDIO_FORMATS):
            raise UnsupportedFormatError(
                f"Only .mp3 files are supported for audio transcription: {audio_path}"
            )

        transcript_path = resolve_target(audio_path, transcript_path, ".md")

        with ExitStack() as stack:
            transcriber = stack.enter_context(self._open_transcriber())
            storage = stack.enter_context(self._open_storage())

            remote = storage.upload(audio_path)
            try:
                result = transcriber.transcribe(remote.uri)
                content = self.formatter.format(result)
                output_path = self.formatter.save(content, transcript_path)
            finally:
                storage.delete(remote)

        logger.info("Transcription completed: %s", output_path)
        return output_path

    def run(
        self,
        input_path: str,
        output: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process an audio file or a directory of audio files.

        A single file raises on failure. In directory mode, output is an
        output directory and per-file failures are recorded, not raised.

        Raises:
            NotFoundError: If input_path does not exist.
            NoMatchingFilesError: If a directory holds no .mp3 files.
        """
        if not is_directory(input_path):
            output_path = self.transcribe(input_path, output)
            return BatchResult([ItemResult(input_path=input_path, output_path=output_path)])

        audios = _expand(input_path, output, AUDIO_FORMATS, "audio")
        return run_batch(
            audios,
            lambda path: self.transcribe(path, resolve_output_path(path, output, ".md")),
            progress_callback,
        )
