"""
Configuration manager for mediatr.

Reads mediatr.conf (INI format) into typed settings and checks that the
external tools the pipelines rely on are installed.
"""

import configparser
import logging
import platform
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from .errors import ConfigError, MissingDependencyError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
CONF_DIR = BASE_DIR / "conf"
CONF_FILE = CONF_DIR / "mediatr.conf"

ENCODINGS = ["MP3", "LINEAR16", "FLAC", "OGG_OPUS", "WEBM_OPUS"]

# Technical vocabulary boosted when the enhanced recognition profile is on.
DEFAULT_PHRASES = (
    "API",
    "backend",
    "frontend",
    "deploy",
    "pipeline",
    "Kubernetes",
    "Docker",
    "container",
    "cluster",
    "microsserviço",
    "banco de dados",
    "cloud",
    "DevOps",
    "Terraform",
    "GitHub",
    "pull request",
    "endpoint",
    "observabilidade",
    "machine learning",
    "Python",
    "Go",
)


@dataclass(frozen=True)
class TranscodeSettings:
    """Settings for the ffmpeg audio extraction step."""
    ffmpeg: str = "ffmpeg"
    audio_codec: str = "libmp3lame"
    bitrate: str = "192k"


@dataclass(frozen=True)
class StorageSettings:
    """Where audio is staged before recognition."""
    bucket: str = "platformlabs-audios"
    object_prefix: str = ""


@dataclass(frozen=True)
class RecognitionSettings:
    """
    Google Cloud Speech recognition settings.

    The enhanced profile adds automatic punctuation, speaker diarization
    and a boosted phrase list on top of the base language/encoding/rate.
    """
    language: str = "pt-BR"
    sample_rate: int = 16000
    encoding: str = "MP3"
    enhanced: bool = False
    punctuation: bool = True
    diarization: bool = True
    min_speakers: int = 1
    max_speakers: int = 2
    boost: float = 15.0
    phrases: Tuple[str, ...] = DEFAULT_PHRASES
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Settings:
    """Root mediatr configuration."""
    transcode: TranscodeSettings = field(default_factory=TranscodeSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    recognition: RecognitionSettings = field(default_factory=RecognitionSettings)


def _get_int(config: configparser.ConfigParser, section: str, key: str, default: int) -> int:
    try:
        return config.getint(section, key, fallback=default)
    except ValueError:
        raise ConfigError(f"[{section}] {key} must be an integer")


def _get_float(config: configparser.ConfigParser, section: str, key: str, default: float) -> float:
    try:
        return config.getfloat(section, key, fallback=default)
    except ValueError:
        raise ConfigError(f"[{section}] {key} must be a number")


def _get_bool(config: configparser.ConfigParser, section: str, key: str, default: bool) -> bool:
    try:
        return config.getboolean(section, key, fallback=default)
    except ValueError:
        raise ConfigError(f"[{section}] {key} must be true or false")


def _parse_phrases(raw: str) -> Tuple[str, ...]:
    """Split a phrase list on commas and newlines."""
    parts = raw.replace("\n", ",").split(",")
    return tuple(p.strip() for p in parts if p.strip())


def load_config(path: Optional[str] = None) -> configparser.ConfigParser:
    """
    Load the config file.

    An explicit path must exist. The default conf/mediatr.conf is optional.
    """
    config = configparser.ConfigParser()
    conf_file = Path(path) if path else CONF_FILE

    if path and not conf_file.exists():
        raise ConfigError(f"Configuration file not found: {conf_file}")

    if conf_file.exists():
        try:
            config.read(str(conf_file), encoding="utf-8")
        except configparser.Error as e:
            raise ConfigError(f"Invalid configuration file {conf_file}: {e}") from e
        logger.debug("Loaded configuration from %s", conf_file)

    return config


def parse_settings(config: configparser.ConfigParser) -> Settings:
    """Build Settings from a parsed config, falling back to defaults."""
    defaults = Settings()

    transcode = TranscodeSettings(
        ffmpeg=config.get("Transcode", "ffmpeg", fallback=defaults.transcode.ffmpeg),
        audio_codec=config.get("Transcode", "audio_codec", fallback=defaults.transcode.audio_codec),
        bitrate=config.get("Transcode", "bitrate", fallback=defaults.transcode.bitrate),
    )

    storage = StorageSettings(
        bucket=config.get("Storage", "bucket", fallback=defaults.storage.bucket),
        object_prefix=config.get("Storage", "object_prefix", fallback=defaults.storage.object_prefix),
    )
    if not storage.bucket:
        raise ConfigError("[Storage] bucket must not be empty")

    rec = defaults.recognition
    encoding = config.get("Recognition", "encoding", fallback=rec.encoding).upper()
    if encoding not in ENCODINGS:
        raise ConfigError(
            f"[Recognition] encoding must be one of: {', '.join(ENCODINGS)}"
        )

    sample_rate = _get_int(config, "Recognition", "sample_rate", rec.sample_rate)
    if sample_rate <= 0:
        raise ConfigError("[Recognition] sample_rate must be > 0")

    min_speakers = _get_int(config, "Recognition", "min_speakers", rec.min_speakers)
    max_speakers = _get_int(config, "Recognition", "max_speakers", rec.max_speakers)
    if min_speakers < 1 or max_speakers < min_speakers:
        raise ConfigError("[Recognition] speaker counts must satisfy 1 <= min_speakers <= max_speakers")

    raw_phrases = config.get("Recognition", "phrases", fallback=None)
    phrases = _parse_phrases(raw_phrases) if raw_phrases is not None else rec.phrases

    raw_timeout = config.get("Recognition", "timeout", fallback="").strip()
    timeout = None
    if raw_timeout:
        timeout = _get_float(config, "Recognition", "timeout", 0.0)
        if timeout <= 0:
            raise ConfigError("[Recognition] timeout must be > 0 when set")

    recognition = RecognitionSettings(
        language=config.get("Recognition", "language", fallback=rec.language),
        sample_rate=sample_rate,
        encoding=encoding,
        enhanced=_get_bool(config, "Recognition", "enhanced", rec.enhanced),
        punctuation=_get_bool(config, "Recognition", "punctuation", rec.punctuation),
        diarization=_get_bool(config, "Recognition", "diarization", rec.diarization),
        min_speakers=min_speakers,
        max_speakers=max_speakers,
        boost=_get_float(config, "Recognition", "boost", rec.boost),
        phrases=phrases,
        timeout=timeout,
    )

    return Settings(transcode=transcode, storage=storage, recognition=recognition)


def initialize_settings(
    path: Optional[str] = None,
    cli_language: Optional[str] = None,
    cli_bucket: Optional[str] = None,
    cli_enhanced: Optional[bool] = None
) -> Settings:
    """
    Full startup configuration flow.

    Returns settings loaded from the conf file. CLI args override conf values.
    """
    settings = parse_settings(load_config(path))

    recognition = settings.recognition
    if cli_language:
        recognition = replace(recognition, language=cli_language)
    if cli_enhanced is not None:
        recognition = replace(recognition, enhanced=cli_enhanced)

    storage = settings.storage
    if cli_bucket:
        storage = replace(storage, bucket=cli_bucket)

    return replace(settings, storage=storage, recognition=recognition)


def _install_hint() -> str:
    """Platform-specific instructions for installing ffmpeg."""
    system = platform.system().lower()
    if system == "darwin":
        return "Install with Homebrew:\n    brew install ffmpeg"
    if system == "linux":
        distro = ""
        try:
            with open("/etc/os-release") as f:
                for line in f:
                    if line.startswith("ID="):
                        distro = line.strip().split("=")[1].strip('"')
                        break
        except OSError:
            pass
        if distro in ("ubuntu", "debian"):
            return "Install with apt:\n    sudo apt update && sudo apt install ffmpeg"
        if distro in ("fedora", "rhel", "centos"):
            return "Install with dnf:\n    sudo dnf install ffmpeg"
        if distro in ("arch", "manjaro"):
            return "Install with pacman:\n    sudo pacman -S ffmpeg"
        return "Install ffmpeg using your package manager, e.g.:\n    sudo apt install ffmpeg"
    if system == "windows":
        return (
            "Download from: https://ffmpeg.org/download.html\n"
            "  Or install with: winget install ffmpeg"
        )
    return "Download from: https://ffmpeg.org/download.html"


def check_ffmpeg(binary: str = "ffmpeg") -> str:
    """
    Resolve the ffmpeg executable on PATH.

    Returns:
        Full path to the executable.

    Raises:
        MissingDependencyError: If ffmpeg is not installed.
    """
    resolved = shutil.which(binary)
    if resolved is not None:
        return resolved

    raise MissingDependencyError(
        f"{binary} is not installed or not found in PATH.\n  {_install_hint()}"
    )
