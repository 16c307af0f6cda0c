"""
Command-line interface for mediatr.

Converts videos to MP3 audio and transcribes MP3 audio to markdown.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import initialize_settings
from .errors import MediatrError
from .files import AUDIO_FORMATS, VIDEO_FORMATS, is_directory
from .logging_config import setup_logging
from .pipeline import BatchResult, TranscriptionPipeline, VideoPipeline

USAGE_EXAMPLES = """\b
Usage:
  Process a single video file:       mediatr -video path/to/video.mp4 [-output path/to/audio.mp3]
  Process all videos in a directory: mediatr -video path/to/videos/ [-output path/to/audios/]
  Transcribe a single audio file:    mediatr -audio path/to/audio.mp3 [-transcript path/to/transcript.md]
  Transcribe all audios in a dir:    mediatr -audio path/to/audios/ [-transcript path/to/transcripts/]
"""


def batch_callback(current: int, total: int, message: str):
    if current < total:
        click.echo(f"[{current + 1}/{total}] {message}")


def print_summary(result: BatchResult):
    """Print the per-file outcome of a batch run."""
    click.echo("")
    click.echo("=" * 50)
    click.echo("BATCH PROCESSING SUMMARY")
    click.echo("=" * 50)

    successful = result.succeeded
    failed = result.failed

    click.echo(f"Total: {len(result.items)}")
    click.echo(click.style(f"Successful: {len(successful)}", fg="green"))

    if failed:
        click.echo(click.style(f"Failed: {len(failed)}", fg="red"))
        click.echo("")
        click.echo("Failed files:")
        for r in failed:
            click.echo(f"  - {Path(r.input_path).name}: {r.error}")

    if successful:
        click.echo("")
        click.echo("Output files:")
        for r in successful:
            click.echo(f"  - {r.output_path}")


def run_job(label: str, pipeline, input_path: str, output: Optional[str]) -> BatchResult:
    """Run one pipeline over a file or directory and report the outcome."""
    click.echo(f"{label} from: {input_path}")
    batch = is_directory(input_path)
    if batch:
        click.echo("Directory mode: Processing all matching files in the directory")

    result = pipeline.run(input_path, output, batch_callback if batch else None)

    if batch:
        print_summary(result)
    else:
        click.echo(click.style("Completed successfully!", fg="green", bold=True)
                   + f" Output saved to {result.items[0].output_path}")
    return result


def fail(message: str):
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


@click.group(invoke_without_command=True, epilog=USAGE_EXAMPLES)
@click.version_option(version=__version__, prog_name="mediatr")
@click.option("-video", "--video", "video_path", type=str, default=None,
              help="Path to the input video file or directory.")
@click.option("-output", "--output", "output_path", type=str, default=None,
              help="Path for the output audio file or directory (optional).")
@click.option("-audio", "--audio", "audio_path", type=str, default=None,
              help="Path to the input audio file or directory for transcription.")
@click.option("-transcript", "--transcript", "transcript_path", type=str, default=None,
              help="Path for the output transcript file or directory (optional).")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Configuration file. Defaults to conf/mediatr.conf when present.")
@click.option("-l", "--language", type=str, default=None,
              help="Recognition language code (e.g. 'pt-BR'). Overrides mediatr.conf.")
@click.option("--bucket", type=str, default=None,
              help="Cloud Storage bucket used for staging audio. Overrides mediatr.conf.")
@click.option("--enhanced/--no-enhanced", default=None,
              help="Enable punctuation, diarization and phrase hints.")
@click.option("--fail-on-error", is_flag=True,
              help="Exit with status 1 if any file in a batch fails.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--log-json", is_flag=True, help="Emit log records as JSON.")
@click.pass_context
def main(
    ctx,
    video_path: Optional[str],
    output_path: Optional[str],
    audio_path: Optional[str],
    transcript_path: Optional[str],
    config_path: Optional[str],
    language: Optional[str],
    bucket: Optional[str],
    enhanced: Optional[bool],
    fail_on_error: bool,
    verbose: bool,
    log_json: bool
):
    """
    Media Processing Tool - Convert videos to audio and transcribe audio files.

    Video extraction runs first when both -video and -audio are given.
    """
    if ctx.invoked_subcommand is not None:
        return

    if not video_path and not audio_path:
        raise click.UsageError("Please provide either -video or -audio flag", ctx=ctx)

    setup_logging(verbose=verbose, json_output=log_json)

    try:
        settings = initialize_settings(
            config_path,
            cli_language=language,
            cli_bucket=bucket,
            cli_enhanced=enhanced,
        )
    except MediatrError as e:
        fail(str(e))

    results = []

    if video_path:
        try:
            results.append(run_job(
                "Processing video(s)", VideoPipeline(settings), video_path, output_path
            ))
        except MediatrError as e:
            fail(str(e))

    if audio_path:
        try:
            results.append(run_job(
                "Transcribing audio(s)", TranscriptionPipeline(settings), audio_path, transcript_path
            ))
        except MediatrError as e:
            fail(str(e))

    if fail_on_error and any(not r.ok for r in results):
        sys.exit(1)


@main.command()
def formats():
    """List supported input formats."""
    click.echo("Video formats (for -video):")
    for ext in sorted(VIDEO_FORMATS):
        click.echo(f"  {ext}")
    click.echo("")
    click.echo("Audio formats (for -audio):")
    for ext in sorted(AUDIO_FORMATS):
        click.echo(f"  {ext}")


if __name__ == "__main__":
    main()
