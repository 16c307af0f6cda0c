"""
mediatr - Convert video files to audio and transcribe audio to markdown.

Uses FFmpeg for audio extraction and Google Cloud Speech-to-Text for
transcription.
"""

__version__ = "1.0.0"

from .extractor import AudioExtractor
from .transcriber import Transcriber
from .formatter import MarkdownFormatter
from .pipeline import BatchResult, ItemResult, TranscriptionPipeline, VideoPipeline

__all__ = [
    "AudioExtractor",
    "Transcriber",
    "MarkdownFormatter",
    "VideoPipeline",
    "TranscriptionPipeline",
    "BatchResult",
    "ItemResult",
]
