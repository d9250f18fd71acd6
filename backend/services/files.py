import random
import time
from pathlib import Path, PurePath
from typing import Dict

from services.errors import UploadTooLarge
from services.paths import INSTRUMENTAL_STEM, VOCALS_STEM, PathResolver


_CHUNK_SIZE = 1024 * 1024


def validate_file_exists(paths: PathResolver, filename: str) -> bool:
    return paths.input_path(filename).is_file()


def ensure_directories_exist(*dirs: Path) -> None:
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)


def get_processed_file_paths(paths: PathResolver, filename: str) -> Dict[str, str]:
    return {
        "vocals": paths.output_url(filename, VOCALS_STEM),
        "instrumental": paths.output_url(filename, INSTRUMENTAL_STEM),
    }


def check_processed_files_exist(paths: PathResolver, filename: str) -> bool:
    return all(p.is_file() for p in paths.output_paths(filename).values())


def make_stored_filename(original_name: str, fieldname: str = "audio") -> str:
    # audio-1712345678901-123456789.mp3
    suffix = PurePath(original_name or "").suffix
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9 - 1)}"
    return f"{fieldname}-{unique}{suffix}"


async def write_upload_to(path: Path, upload, max_bytes: int) -> int:
    written = 0
    try:
        with path.open("wb") as f:
            while True:
                chunk = await upload.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLarge(max_bytes)
                f.write(chunk)
    except BaseException:
        safe_unlink(path)
        raise
    return written


def safe_unlink(path: Path) -> None:
    try:
        if path.exists():
            path.unlink()
    except OSError:
        pass
