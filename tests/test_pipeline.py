from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import FakeSpeechClient, make_response
from mediatr.config import Settings
from mediatr.errors import (
    ClientError,
    MissingDependencyError,
    NoMatchingFilesError,
    NotFoundError,
    TranscodeError,
    TranscriptionError,
    UnsupportedFormatError,
    UploadError,
    WriteError,
)
from mediatr.extractor import AudioExtractor
from mediatr.pipeline import BatchResult, TranscriptionPipeline, VideoPipeline, run_batch


def _video_pipeline(fake_ffmpeg) -> VideoPipeline:
    extractor = AudioExtractor(runner=fake_ffmpeg, which=lambda name: f"/usr/bin/{name}")
    return VideoPipeline(Settings(), extractor=extractor)


def _transcription_pipeline(speech_client, storage_client) -> TranscriptionPipeline:
    return TranscriptionPipeline(
        Settings(),
        speech_client_factory=speech_client,
        storage_client_factory=storage_client,
    )


def test_run_batch_continues_past_failures(caplog: pytest.LogCaptureFixture) -> None:
    def process(path: str) -> str:
        if path == "bad":
            raise TranscodeError("broken")
        if path == "worse":
            raise ValueError("unexpected")
        return path + ".out"

    with caplog.at_level(logging.ERROR, logger="mediatr.pipeline"):
        result = run_batch(["a", "bad", "worse", "b"], process)

    assert [r.input_path for r in result.items] == ["a", "bad", "worse", "b"]
    assert [r.output_path for r in result.succeeded] == ["a.out", "b.out"]
    assert [r.error for r in result.failed] == ["broken", "Unexpected error: unexpected"]
    assert result.ok is False
    assert "Failed to process bad: broken" in caplog.text


def test_run_batch_reports_progress() -> None:
    calls = []

    run_batch(["x/a.mp4", "x/b.mp4"], lambda p: p, lambda i, n, m: calls.append((i, n, m)))

    assert calls == [
        (0, 2, "Processing: a.mp4"),
        (1, 2, "Processing: b.mp4"),
        (2, 2, "Batch processing complete!"),
    ]


def test_video_single_file_writes_next_to_input(tmp_path: Path, fake_ffmpeg) -> None:
    video = tmp_path / "talk.mp4"
    video.write_bytes(b"v")

    result = _video_pipeline(fake_ffmpeg).run(str(video))

    assert result.ok
    assert result.items[0].output_path == str(tmp_path / "talk.mp3")


def test_video_single_file_errors_propagate(tmp_path: Path, fake_ffmpeg) -> None:
    corrupt = tmp_path / "corrupt.mp4"
    corrupt.write_bytes(b"v")

    with pytest.raises(TranscodeError):
        _video_pipeline(fake_ffmpeg).run(str(corrupt))
    with pytest.raises(NotFoundError):
        _video_pipeline(fake_ffmpeg).run(str(tmp_path / "missing.mp4"))


def test_video_batch_isolates_corrupt_file(tmp_path: Path, fake_ffmpeg, caplog: pytest.LogCaptureFixture) -> None:
    videos = tmp_path / "videos"
    (videos / "day2").mkdir(parents=True)
    for name in ["a.mp4", "b.MKV", "day2/c.mov", "corrupt.avi"]:
        (videos / name).write_bytes(b"v")
    (videos / "notes.txt").write_text("skip me")
    out = tmp_path / "audios"

    with caplog.at_level(logging.ERROR):
        result = _video_pipeline(fake_ffmpeg).run(str(videos), str(out))

    assert isinstance(result, BatchResult)
    assert len(result.items) == 4
    assert sorted(Path(r.output_path).name for r in result.succeeded) == ["a.mp3", "b.mp3", "c.mp3"]
    assert all(Path(r.output_path).exists() for r in result.succeeded)
    assert [Path(r.input_path).name for r in result.failed] == ["corrupt.avi"]
    assert not (out / "corrupt.mp3").exists()
    assert "corrupt.avi" in caplog.text


def test_video_batch_without_output_dir_writes_beside_inputs(tmp_path: Path, fake_ffmpeg) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "a.flv").write_bytes(b"v")

    result = _video_pipeline(fake_ffmpeg).run(str(tmp_path))

    assert result.items[0].output_path == str(tmp_path / "sub" / "a.mp3")


def test_video_batch_without_ffmpeg_fails_before_any_file(tmp_path: Path, fake_ffmpeg) -> None:
    (tmp_path / "a.mp4").write_bytes(b"v")
    (tmp_path / "b.mkv").write_bytes(b"v")

    def missing(name: str) -> str:
        raise MissingDependencyError(f"{name} is not installed")

    pipeline = VideoPipeline(Settings(), extractor=AudioExtractor(runner=fake_ffmpeg, which=missing))

    with pytest.raises(MissingDependencyError):
        pipeline.run(str(tmp_path), str(tmp_path / "out"))
    assert fake_ffmpeg.calls == []


def test_video_batch_empty_directory_raises_no_matching_files(tmp_path: Path, fake_ffmpeg) -> None:
    (tmp_path / "a.mp3").write_bytes(b"audio, not video")

    with pytest.raises(NoMatchingFilesError):
        _video_pipeline(fake_ffmpeg).run(str(tmp_path))
    assert fake_ffmpeg.calls == []


def test_transcribe_single_file_end_to_end(tmp_path: Path, speech_client, storage_client) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")
    speech_client.response = make_response(["Bom dia."], ["Vamos começar."])

    output = _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert output == str(tmp_path / "meeting.md")
    assert Path(output).read_text(encoding="utf-8") == (
        "# Audio Transcription\n\nBom dia.\n\nVamos começar.\n\n"
    )
    bucket, name, _, _ = storage_client.uploads[0]
    assert bucket == "platformlabs-audios"
    assert speech_client.requests[0][1].uri == f"gs://{bucket}/{name}"
    assert storage_client.deletes == [(bucket, name)]
    assert storage_client.objects == {}
    assert storage_client.closed == 1
    assert speech_client.closed == 1


def test_transcribe_rejects_non_mp3_without_uploading(tmp_path: Path, speech_client, storage_client) -> None:
    audio = tmp_path / "meeting.wav"
    audio.write_bytes(b"wav")

    with pytest.raises(UnsupportedFormatError):
        _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert storage_client.opened == 0
    assert storage_client.uploads == []
    assert speech_client.requests == []


def test_transcribe_missing_file_raises_not_found(tmp_path: Path, speech_client, storage_client) -> None:
    with pytest.raises(NotFoundError):
        _transcription_pipeline(speech_client, storage_client).transcribe(str(tmp_path / "x.mp3"))


def test_transcribe_accepts_uppercase_extension(tmp_path: Path, speech_client, storage_client) -> None:
    audio = tmp_path / "LOUD.MP3"
    audio.write_bytes(b"mp3")

    output = _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert output == str(tmp_path / "LOUD.md")


def test_transcribe_recognition_failure_cleans_up_and_writes_nothing(tmp_path: Path, storage_client) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")
    speech_client = FakeSpeechClient(error=RuntimeError("DEADLINE_EXCEEDED"))

    with pytest.raises(TranscriptionError):
        _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert not (tmp_path / "meeting.md").exists()
    assert len(storage_client.deletes) == 1
    assert storage_client.closed == 1
    assert speech_client.closed == 1


def test_transcribe_upload_failure_closes_sessions(tmp_path: Path, speech_client, storage_client) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")
    storage_client.fail_upload = True

    with pytest.raises(UploadError):
        _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert speech_client.requests == []
    assert storage_client.deletes == []
    assert storage_client.closed == 1
    assert speech_client.closed == 1


def test_transcribe_delete_failure_does_not_fail_job(
    tmp_path: Path, speech_client, storage_client, caplog: pytest.LogCaptureFixture
) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")
    storage_client.fail_delete = True

    with caplog.at_level(logging.WARNING):
        output = _transcription_pipeline(speech_client, storage_client).transcribe(str(audio))

    assert Path(output).exists()
    assert "Failed to delete temporary object" in caplog.text


def test_transcribe_write_failure_raises_write_error(
    tmp_path: Path, speech_client, storage_client
) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")
    blocker = tmp_path / "blocker"
    blocker.write_text("file")

    with pytest.raises(WriteError):
        _transcription_pipeline(speech_client, storage_client).transcribe(
            str(audio), str(blocker / "out.md")
        )

    assert len(storage_client.deletes) == 1


def test_transcription_batch_over_empty_directory(tmp_path: Path, speech_client, storage_client) -> None:
    (tmp_path / "clip.mp4").write_bytes(b"v")
    out = tmp_path / "transcripts"

    with pytest.raises(NoMatchingFilesError):
        _transcription_pipeline(speech_client, storage_client).run(str(tmp_path), str(out))

    assert not out.exists()
    assert list(tmp_path.rglob("*.md")) == []
    assert storage_client.uploads == []


def test_transcription_batch_writes_into_output_dir(tmp_path: Path, speech_client, storage_client) -> None:
    audios = tmp_path / "audios"
    (audios / "b").mkdir(parents=True)
    (audios / "a.mp3").write_bytes(b"mp3")
    (audios / "b" / "c.mp3").write_bytes(b"mp3")
    out = tmp_path / "transcripts"

    result = _transcription_pipeline(speech_client, storage_client).run(str(audios), str(out))

    assert result.ok
    assert sorted(p.name for p in out.iterdir()) == ["a.md", "c.md"]
    assert len(storage_client.uploads) == 2
    assert len({name for _, name, _, _ in storage_client.uploads}) == 2
    assert len(storage_client.deletes) == 2


def test_transcription_batch_continues_after_upload_failure(tmp_path: Path, speech_client, storage_client) -> None:
    (tmp_path / "a.mp3").write_bytes(b"mp3")
    (tmp_path / "b.mp3").write_bytes(b"mp3")
    storage_client.fail_upload = True

    result = _transcription_pipeline(speech_client, storage_client).run(str(tmp_path))

    assert len(result.failed) == 2
    assert result.succeeded == []


def test_transcribe_without_credentials_raises_client_error(tmp_path: Path, storage_client) -> None:
    audio = tmp_path / "meeting.mp3"
    audio.write_bytes(b"mp3")

    def no_credentials() -> FakeSpeechClient:
        raise RuntimeError("Your default credentials were not found")

    with pytest.raises(ClientError, match="speech client"):
        _transcription_pipeline(no_credentials, storage_client).transcribe(str(audio))

    assert storage_client.uploads == []
    assert not (tmp_path / "meeting.md").exists()
