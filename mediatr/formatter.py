"""
Markdown formatter for transcription output.

Renders a transcription result as a markdown document and writes it
to disk in a single atomic step.
"""

import logging
import os
import tempfile

from .errors import WriteError
from .transcriber import TranscriptionResult

logger = logging.getLogger(__name__)

TITLE = "Audio Transcription"


class MarkdownFormatter:
    """Format transcription results as markdown."""

    def __init__(self, title: str = TITLE):
        self.title = title

    def format(self, result: TranscriptionResult) -> str:
        """
        Format transcription result as markdown.

        Each segment becomes its own paragraph under a top-level heading.
        """
        lines = [f"# {self.title}\n\n"]
        for segment in result.segments:
            lines.append(f"{segment.text}\n\n")
        return "".join(lines)

    def save(self, content: str, output_path: str, create_dirs: bool = True) -> str:
        """
        Save markdown content to a file.

        The content goes to a temporary file in the destination directory
        which then replaces output_path, so readers never see a partial file.

        Args:
            content: Markdown content to save.
            output_path: Path to save the file.
            create_dirs: Create parent directories if needed.

        Returns:
            Absolute path to the saved file.

        Raises:
            WriteError: If the file cannot be written.
        """
        output_path = os.path.abspath(output_path)
        directory = os.path.dirname(output_path)

        tmp_path = None
        try:
            if create_dirs:
                os.makedirs(directory, exist_ok=True)

            fd, tmp_path = tempfile.mkstemp(
                prefix=".mediatr-", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, output_path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise WriteError(f"Failed to write transcript {output_path}: {e}") from e

        logger.debug("Wrote %d characters to %s", len(content), output_path)
        return output_path
