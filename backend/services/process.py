import asyncio
import codecs
import logging
import re
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Sequence


logger = logging.getLogger(__name__)

_READ_SIZE = 4096
# progress bars redraw in place with "\r", so both line endings split segments
_SEGMENT_RE = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class ProcessOutcome:
    exit_code: Optional[int] = None
    launch_error: Optional[OSError] = None

    @property
    def launch_failed(self) -> bool:
        return self.launch_error is not None

    @property
    def succeeded(self) -> bool:
        return self.launch_error is None and self.exit_code == 0


class ProcessHandle:
    """One spawned process: its two output streams and its exit.

    Each stream can be iterated once. Both streams should be drained while
    waiting, otherwise a chatty process can block on a full pipe.
    """

    def __init__(self, process: Optional[asyncio.subprocess.Process] = None, launch_error: Optional[OSError] = None):
        self._process = process
        self._launch_error = launch_error
        self._outcome: Optional[ProcessOutcome] = None
        self._consumed = set()

    @property
    def launch_error(self) -> Optional[OSError]:
        return self._launch_error

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def stdout_chunks(self) -> AsyncIterator[str]:
        return self._chunks("stdout")

    def stderr_chunks(self) -> AsyncIterator[str]:
        return self._chunks("stderr")

    async def wait(self) -> ProcessOutcome:
        if self._outcome is None:
            if self._process is None:
                self._outcome = ProcessOutcome(launch_error=self._launch_error)
            else:
                code = await self._process.wait()
                self._outcome = ProcessOutcome(exit_code=code)
        return self._outcome

    def terminate(self) -> None:
        """Kill the process if it is still running. No-op after exit or a failed launch."""
        if self._process is None or self._process.returncode is not None:
            return
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    def _chunks(self, name: str) -> AsyncIterator[str]:
        if name in self._consumed:
            raise RuntimeError(f"{name} of this process was already consumed")
        self._consumed.add(name)
        stream = getattr(self._process, name) if self._process else None
        return _iter_text(stream)


async def _iter_text(stream: Optional[asyncio.StreamReader]) -> AsyncIterator[str]:
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
    pending = ""
    while True:
        data = await stream.read(_READ_SIZE)
        if not data:
            break
        pending += decoder.decode(data)
        *segments, pending = _SEGMENT_RE.split(pending)
        for segment in segments:
            if segment.strip():
                yield segment
    pending += decoder.decode(b"", final=True)
    if pending.strip():
        yield pending


class ProcessRunner:
    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.env = env

    async def start(self, command: str, args: Sequence[str] = ()) -> ProcessHandle:
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
            )
        except OSError as e:
            logger.error("Failed to start %s: %s", command, e)
            return ProcessHandle(launch_error=e)
        logger.info("Started %s (pid %s)", command, process.pid)
        return ProcessHandle(process)
