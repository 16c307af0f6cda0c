"""
Speech-to-text transcription module using Google Cloud Speech-to-Text.

Submits a long-running recognition request for audio staged in Cloud
Storage and collects the recognized segments.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from google.cloud import speech

from .config import RecognitionSettings
from .errors import ClientError, TranscriptionError

logger = logging.getLogger(__name__)


@dataclass
class TranscriptSegment:
    """One alternative transcript of one recognized utterance."""
    id: int
    text: str
    confidence: Optional[float] = None
    alternative: int = 0


@dataclass
class TranscriptionResult:
    """Complete transcription result."""
    segments: List[TranscriptSegment]
    language: str

    @property
    def text(self) -> str:
        """Full transcribed text."""
        return " ".join(seg.text for seg in self.segments if seg.text)

    @property
    def word_count(self) -> int:
        """Get total word count."""
        return len(self.text.split())

    @property
    def segment_count(self) -> int:
        """Get number of segments."""
        return len(self.segments)


def build_recognition_config(settings: RecognitionSettings) -> speech.RecognitionConfig:
    """
    Build the RecognitionConfig for a job.

    The base profile sets only encoding, sample rate and language. The
    enhanced profile also turns on punctuation, diarization and phrase hints.
    """
    config = speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding[settings.encoding],
        sample_rate_hertz=settings.sample_rate,
        language_code=settings.language,
    )

    if not settings.enhanced:
        return config

    config.enable_automatic_punctuation = settings.punctuation
    if settings.diarization:
        config.diarization_config = speech.SpeakerDiarizationConfig(
            enable_speaker_diarization=True,
            min_speaker_count=settings.min_speakers,
            max_speaker_count=settings.max_speakers,
        )
    if settings.phrases:
        config.speech_contexts = [
            speech.SpeechContext(phrases=list(settings.phrases), boost=settings.boost)
        ]
    return config


class Transcriber:
    """
    Long-running speech recognition against Google Cloud Speech.

    Use as a context manager; the speech client transport is closed on exit.
    """

    def __init__(
        self,
        settings: Optional[RecognitionSettings] = None,
        client_factory: Callable[[], Any] = speech.SpeechClient
    ):
        """
        Initialize the transcriber.

        Args:
            settings: Language, encoding, sample rate and enhanced options.
            client_factory: Creates the SpeechClient.
        """
        self.settings = settings or RecognitionSettings()
        self._client_factory = client_factory
        self._client: Optional[Any] = None

    def __enter__(self) -> "Transcriber":
        try:
            self._client = self._client_factory()
        except Exception as e:
            raise ClientError(f"Failed to create speech client: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._client is None:
            return
        transport = getattr(self._client, "transport", None)
        close = getattr(transport, "close", None)
        if callable(close):
            close()
        self._client = None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("Transcriber is not open")
        return self._client

    def transcribe(self, uri: str) -> TranscriptionResult:
        """
        Transcribe audio stored at a gs:// URI.

        Blocks until the remote operation finishes. No timeout is enforced
        unless RecognitionSettings.timeout is set.

        Raises:
            TranscriptionError: If the request or the operation fails.
        """
        client = self.client
        config = build_recognition_config(self.settings)
        audio = speech.RecognitionAudio(uri=uri)

        try:
            operation = client.long_running_recognize(config=config, audio=audio)
        except Exception as e:
            raise TranscriptionError(f"Failed to start transcription: {e}") from e

        logger.info("Waiting for recognition of %s", uri)
        try:
            response = operation.result(timeout=self.settings.timeout)
        except Exception as e:
            raise TranscriptionError(f"Failed to complete transcription: {e}") from e

        segments = []
        for result in response.results:
            for i, alt in enumerate(result.alternatives):
                segments.append(TranscriptSegment(
                    id=len(segments),
                    text=alt.transcript.strip(),
                    confidence=alt.confidence or None,
                    alternative=i,
                ))

        logger.info("Recognition returned %d segment(s)", len(segments))
        return TranscriptionResult(segments=segments, language=self.settings.language)
