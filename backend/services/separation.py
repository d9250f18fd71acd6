import asyncio
from typing import AsyncIterator, Dict

from services.broadcaster import ProgressBroadcaster
from services.demucs import build_demucs_command
from services.errors import (
    InputNotFound,
    JobAlreadyRunning,
    LaunchFailure,
    RuntimeFailure,
    SeparationError,
)
from services.files import (
    check_processed_files_exist,
    ensure_directories_exist,
    get_processed_file_paths,
    validate_file_exists,
)
from services.jobs import SeparationJob, job_claim, job_pop
from services.logger import job_logger
from services.process import ProcessRunner
from services.progress import parse_progress


class SeparationService:
    """Runs demucs for one uploaded file and reports progress to subscribers."""

    def __init__(self, settings, broadcaster: ProgressBroadcaster, runner: ProcessRunner = None):
        self.settings = settings
        self.paths = settings.path_resolver()
        self.broadcaster = broadcaster
        self.runner = runner or ProcessRunner()

    async def run(self, filename: str) -> Dict[str, str]:
        log = job_logger(__name__, filename)
        # raises InvalidFilename before anything touches the disk or is published
        output_dir = self.paths.output_dir_for(filename)
        if not validate_file_exists(self.paths, filename):
            raise InputNotFound("Input file not found")

        job = SeparationJob(filename, self.broadcaster.publish)
        if not job_claim(filename, job):
            raise JobAlreadyRunning(f"Separation already running for {filename}")
        try:
            return await self._run_job(job, output_dir, log)
        finally:
            job_pop(filename)

    async def _run_job(self, job: SeparationJob, output_dir, log) -> Dict[str, str]:
        filename = job.filename
        handle = None
        pumps = []
        try:
            ensure_directories_exist(self.settings.INPUT_DIR, self.settings.OUTPUT_DIR, self.settings.MODELS_DIR)
            job.start()
            log.info("Input: %s", self.paths.input_path(filename))
            log.info("Output directory: %s", output_dir)

            command, args = build_demucs_command(self.settings, self.paths, filename)
            handle = await self.runner.start(command, args)
            if handle.launch_error is not None:
                raise LaunchFailure(f"Failed to start process: {handle.launch_error}")
            log.info("Demucs running (pid %s)", handle.pid)

            pumps = [
                asyncio.ensure_future(self._pump(handle.stdout_chunks(), job, log)),
                asyncio.ensure_future(self._pump(handle.stderr_chunks(), job, log)),
            ]
            await asyncio.gather(*pumps)
            outcome = await handle.wait()
        except SeparationError as e:
            self._stop(handle, pumps)
            if not job.is_terminal:
                job.error(e.message)
            raise
        except asyncio.CancelledError:
            self._stop(handle, pumps)
            if not job.is_terminal:
                job.error("Separation interrupted")
            raise
        except Exception as e:
            log.exception("Separation failed")
            self._stop(handle, pumps)
            if not job.is_terminal:
                job.error(str(e))
            raise SeparationError(f"Failed to process audio: {e}") from e

        log.info("Process exited with code %s", outcome.exit_code)
        if not outcome.succeeded:
            job.fail(outcome.exit_code)
            raise RuntimeFailure(f"Process exited with code {outcome.exit_code}", outcome.exit_code)

        if not check_processed_files_exist(self.paths, filename):
            log.warning("Demucs exited cleanly but stems are missing under %s", output_dir)
        files = get_processed_file_paths(self.paths, filename)
        job.complete(files)
        log.info("Separation completed: %s", files)
        return files

    @staticmethod
    def _stop(handle, pumps) -> None:
        for task in pumps:
            task.cancel()
        if handle is not None:
            handle.terminate()

    @staticmethod
    async def _pump(chunks: AsyncIterator[str], job: SeparationJob, log) -> None:
        async for chunk in chunks:
            log.debug("demucs: %s", chunk.rstrip())
            percent = parse_progress(chunk)
            if percent is not None:
                job.advance(percent)
