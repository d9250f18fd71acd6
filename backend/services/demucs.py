import shlex
import shutil
import sys
from typing import List, Tuple

from services.paths import PathResolver, check_filename


_CONTAINER_INPUT = "/data/input"
_CONTAINER_OUTPUT = "/data/output"
_CONTAINER_MODELS = "/data/models"


def demucs_flags(settings) -> List[str]:
    return [
        "-d", settings.DEMUCS_DEVICE,
        "--mp3",
        "--mp3-bitrate", str(settings.MP3_BITRATE),
        "-n", settings.DEMUCS_MODEL,
        "--two-stems=vocals",
        "--clip-mode", "rescale",
        "--overlap", "0.25",
    ]


def build_demucs_command(settings, paths: PathResolver, filename: str) -> Tuple[str, List[str]]:
    """Command and arguments that separate `filename` into vocals / no_vocals.

    `docker` runs the published demucs image with the storage dirs mounted,
    `local` runs the demucs module of this interpreter against the host paths.
    """
    check_filename(filename)
    runner = settings.SEPARATOR_RUNNER.lower()
    if runner == "docker":
        inner = " ".join(
            ["python3", "-m", "demucs.separate"]
            + demucs_flags(settings)
            + [shlex.quote(f"{_CONTAINER_INPUT}/{filename}"), "-o", shlex.quote(_CONTAINER_OUTPUT)]
        )
        docker_exe = shutil.which(settings.DOCKER_EXE) or settings.DOCKER_EXE
        args = [
            "run", "--rm",
            "-v", f"{settings.INPUT_DIR}:{_CONTAINER_INPUT}",
            "-v", f"{settings.OUTPUT_DIR}:{_CONTAINER_OUTPUT}",
            "-v", f"{settings.MODELS_DIR}:{_CONTAINER_MODELS}",
            settings.DEMUCS_IMAGE,
            inner,
        ]
        return docker_exe, args
    if runner == "local":
        args = ["-m", "demucs.separate"] + demucs_flags(settings) + [
            str(paths.input_path(filename)),
            "-o", str(settings.OUTPUT_DIR),
        ]
        return sys.executable, args
    raise ValueError(f"Unknown SEPARATOR_RUNNER: {settings.SEPARATOR_RUNNER!r}")
