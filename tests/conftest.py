from __future__ import annotations

import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest


class FakeFfmpeg:
    """Stands in for subprocess.run; fails for inputs containing 'corrupt'."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        input_path = cmd[cmd.index("-i") + 1]
        if "corrupt" in Path(input_path).name:
            raise subprocess.CalledProcessError(
                1, cmd, output="", stderr=f"{input_path}: Invalid data found when processing input"
            )
        Path(cmd[-1]).write_bytes(b"ID3 fake mp3")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


class FakeBlob:
    def __init__(self, store: "FakeStorageClient", bucket: str, name: str) -> None:
        self._store = store
        self._bucket = bucket
        self.name = name

    def upload_from_filename(self, filename: str, content_type: str | None = None) -> None:
        if self._store.fail_upload:
            raise RuntimeError("403 Forbidden")
        self._store.objects[(self._bucket, self.name)] = Path(filename).read_bytes()
        self._store.uploads.append((self._bucket, self.name, filename, content_type))

    def delete(self) -> None:
        self._store.deletes.append((self._bucket, self.name))
        if self._store.fail_delete:
            raise RuntimeError("503 Service Unavailable")
        self._store.objects.pop((self._bucket, self.name), None)


class FakeBucket:
    def __init__(self, store: "FakeStorageClient", name: str) -> None:
        self._store = store
        self.name = name

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self._store, self.name, name)


class FakeStorageClient:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[tuple[str, str, str, str | None]] = []
        self.deletes: list[tuple[str, str]] = []
        self.fail_upload = False
        self.fail_delete = False
        self.opened = 0
        self.closed = 0

    def __call__(self) -> "FakeStorageClient":
        self.opened += 1
        return self

    def bucket(self, name: str) -> FakeBucket:
        return FakeBucket(self, name)

    def close(self) -> None:
        self.closed += 1


class FakeOperation:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.timeouts: list[float | None] = []

    def result(self, timeout: float | None = None) -> Any:
        self.timeouts.append(timeout)
        if self._error is not None:
            raise self._error
        return self._response


def make_response(*utterances: list[str]) -> SimpleNamespace:
    results = [
        SimpleNamespace(
            alternatives=[SimpleNamespace(transcript=text, confidence=0.9) for text in alts]
        )
        for alts in utterances
    ]
    return SimpleNamespace(results=results)


class FakeSpeechClient:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response if response is not None else make_response(["olá mundo"])
        self.error = error
        self.requests: list[tuple[Any, Any]] = []
        self.operations: list[FakeOperation] = []
        self.closed = 0
        self.transport = SimpleNamespace(close=self._close)

    def __call__(self) -> "FakeSpeechClient":
        return self

    def _close(self) -> None:
        self.closed += 1

    def long_running_recognize(self, config: Any, audio: Any) -> FakeOperation:
        self.requests.append((config, audio))
        operation = FakeOperation(self.response, self.error)
        self.operations.append(operation)
        return operation


@pytest.fixture
def fake_ffmpeg() -> FakeFfmpeg:
    return FakeFfmpeg()


@pytest.fixture
def storage_client() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def speech_client() -> FakeSpeechClient:
    return FakeSpeechClient()
