import asyncio

import pytest

from config import Settings
from services.jobs import _JOBS
from services.process import ProcessOutcome


class FakeHandle:
    def __init__(self, stdout=(), stderr=(), exit_code=0, launch_error=None, stdout_hangs=False):
        self._stdout = list(stdout)
        self._stderr = list(stderr)
        self._exit_code = exit_code
        self._stdout_hangs = stdout_hangs
        self.launch_error = launch_error
        self.pid = None if launch_error else 4242
        self.waited = 0
        self.terminated = 0
        self.stdout_cancelled = False

    async def _iter(self, chunks, hang=False):
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk
        if hang:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.stdout_cancelled = True
                raise

    def stdout_chunks(self):
        return self._iter(self._stdout, self._stdout_hangs)

    def stderr_chunks(self):
        return self._iter(self._stderr)

    def terminate(self):
        self.terminated += 1

    async def wait(self):
        self.waited += 1
        if self.launch_error is not None:
            return ProcessOutcome(launch_error=self.launch_error)
        return ProcessOutcome(exit_code=self._exit_code)


class FakeRunner:
    """Stands in for ProcessRunner and replays scripted process output."""

    def __init__(self, **handle_kwargs):
        self.handle_kwargs = handle_kwargs
        self.calls = []
        self.handles = []

    async def start(self, command, args=()):
        self.calls.append((command, list(args)))
        handle = FakeHandle(**self.handle_kwargs)
        self.handles.append(handle)
        return handle


@pytest.fixture
def settings(tmp_path):
    return Settings(
        INPUT_DIR=tmp_path / "input",
        OUTPUT_DIR=tmp_path / "output",
        MODELS_DIR=tmp_path / "models",
        SEPARATOR_RUNNER="docker",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def input_file(settings):
    def _make(name="song.mp3", data=b"ID3fake"):
        settings.INPUT_DIR.mkdir(parents=True, exist_ok=True)
        path = settings.INPUT_DIR / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture(autouse=True)
def clear_jobs():
    _JOBS.clear()
    yield
    _JOBS.clear()
