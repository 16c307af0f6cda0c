"""
Filesystem helpers shared by the extraction and transcription pipelines.

Classifies input paths, scans directories for media files, and derives
output paths for converted audio and transcripts.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import DirectoryCreationError, NotFoundError, WalkError

logger = logging.getLogger(__name__)

# Supported video formats
VIDEO_FORMATS = {".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv"}

# Supported audio formats for transcription
AUDIO_FORMATS = {".mp3"}


def is_directory(path: str) -> bool:
    """Return True if a directory exists at path. Stat failures count as False."""
    try:
        return os.path.isdir(path)
    except (OSError, ValueError):
        return False


def has_extension(path: str, extensions: Iterable[str]) -> bool:
    """Check the last extension of path against extensions, ignoring case."""
    ext = Path(path).suffix.lower()
    return ext in {e.lower() for e in extensions}


def scan_directory(directory: str, extensions: Iterable[str]) -> List[str]:
    """
    Recursively collect files whose extension is in extensions.

    Args:
        directory: Root directory to scan.
        extensions: Extensions to match, with leading dot. Case-insensitive.

    Returns:
        Absolute file paths in walk order. Directory and file names are
        sorted at every level, so the order is stable across runs.

    Raises:
        NotFoundError: If directory does not exist.
        WalkError: If an I/O error interrupts the traversal.
    """
    if not os.path.exists(directory):
        raise NotFoundError(f"Directory not found: {directory}")

    root = os.path.abspath(directory)
    wanted = {e.lower() for e in extensions}

    def on_error(exc: OSError) -> None:
        raise WalkError(f"Error walking directory {root}: {exc}") from exc

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if Path(name).suffix.lower() in wanted:
                files.append(os.path.join(dirpath, name))

    logger.debug("Found %d matching file(s) under %s", len(files), root)
    return files


def ensure_directory(path: str) -> str:
    """
    Create path (and parents) if it does not exist yet.

    Raises:
        DirectoryCreationError: If the directory cannot be created.
    """
    if os.path.isdir(path):
        return path

    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(
            f"Cannot create output directory {path}: {e}"
        ) from e

    logger.info("Created output directory: %s", path)
    return path


def resolve_output_path(
    input_path: str,
    output_dir: Optional[str],
    extension: str
) -> str:
    """
    Generate an output path for a converted file.

    The last extension of the input name is replaced by extension, so
    "talk.part1.mp4" becomes "talk.part1.mp3".

    Args:
        input_path: Path to the source file.
        output_dir: Optional output directory. Created if missing.
            When empty, the output sits next to the input.
        extension: New extension, with leading dot.

    Returns:
        Generated output path.

    Raises:
        DirectoryCreationError: If output_dir cannot be created.
    """
    source = Path(input_path)
    name = f"{source.stem}{extension}"

    if not output_dir:
        return str(source.parent / name)

    ensure_directory(output_dir)
    return str(Path(output_dir) / name)


def resolve_target(
    input_path: str,
    output_path: Optional[str],
    extension: str
) -> str:
    """
    Resolve the destination for a single-file job.

    An explicit output_path is used as the file name unless it names an
    existing directory or ends with a path separator, in which case the
    output goes inside it.
    """
    if not output_path:
        return resolve_output_path(input_path, None, extension)
    if is_directory(output_path) or output_path.endswith((os.sep, "/")):
        return resolve_output_path(input_path, output_path, extension)
    return output_path
