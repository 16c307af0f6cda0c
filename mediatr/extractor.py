"""
Audio extraction module for video files.

Extracts an MP3 audio track from video files using FFmpeg.
"""

import logging
import os
import subprocess
from typing import Callable, List, Optional

from .config import TranscodeSettings, check_ffmpeg
from .errors import MissingDependencyError, NotFoundError, TranscodeError
from .files import resolve_target

logger = logging.getLogger(__name__)


def build_extract_cmd(
    ffmpeg: str,
    video_path: str,
    output_path: str,
    audio_codec: str = "libmp3lame",
    bitrate: str = "192k"
) -> List[str]:
    """Build the ffmpeg command that drops the video stream and encodes audio."""
    return [
        ffmpeg,
        "-y",  # Overwrite output
        "-i", video_path,
        "-vn",  # No video
        "-acodec", audio_codec,
        "-ab", bitrate,
        output_path,
    ]


class AudioExtractor:
    """Extract audio from video files using FFmpeg."""

    def __init__(
        self,
        settings: Optional[TranscodeSettings] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        which: Callable[[str], str] = check_ffmpeg
    ):
        """
        Initialize the audio extractor.

        Args:
            settings: FFmpeg binary, codec and bitrate. Defaults to MP3 at 192k.
            runner: Callable used to run the ffmpeg process.
            which: Resolves the ffmpeg binary or raises MissingDependencyError.
        """
        self.settings = settings or TranscodeSettings()
        self._runner = runner
        self._which = which
        self._ffmpeg: Optional[str] = None

    @property
    def ffmpeg(self) -> str:
        """Resolve the ffmpeg executable on first use."""
        if self._ffmpeg is None:
            self._ffmpeg = self._which(self.settings.ffmpeg)
        return self._ffmpeg

    def extract_audio(self, video_path: str, output_path: Optional[str] = None) -> str:
        """
        Extract audio from a video file.

        Args:
            video_path: Path to the input video file.
            output_path: Optional path for the output audio file. If None,
                the audio is written next to the video with a .mp3 extension.
                An existing directory receives <stem>.mp3.

        Returns:
            Path to the extracted audio file.

        Raises:
            NotFoundError: If the video does not exist.
            MissingDependencyError: If ffmpeg is not installed.
            TranscodeError: If ffmpeg fails.
        """
        if not os.path.exists(video_path):
            raise NotFoundError(f"Video file not found: {video_path}")

        output_path = resolve_target(video_path, output_path, ".mp3")

        cmd = build_extract_cmd(
            self.ffmpeg,
            video_path,
            output_path,
            audio_codec=self.settings.audio_codec,
            bitrate=self.settings.bitrate,
        )

        logger.info("Extracting audio from %s to %s", video_path, output_path)
        try:
            self._runner(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
            raise TranscodeError(f"Error extracting audio from {video_path}: {detail}") from e
        except FileNotFoundError as e:
            raise MissingDependencyError(f"FFmpeg could not be executed: {e}") from e

        logger.info("Audio extraction completed: %s", output_path)
        return output_path
