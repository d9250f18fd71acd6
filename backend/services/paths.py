from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Dict

from services.errors import InvalidFilename


VOCALS_STEM = "vocals"
INSTRUMENTAL_STEM = "no_vocals"
STEMS = (VOCALS_STEM, INSTRUMENTAL_STEM)


def check_filename(filename: str) -> str:
    """Return `filename` unchanged if it names a single plain file.

    Filenames come straight from request paths, so anything that could step
    outside the storage directories is refused.
    """
    if not isinstance(filename, str) or not filename.strip():
        raise InvalidFilename("Filename must not be empty")
    if filename in (".", "..") or any(ch in filename for ch in ("/", "\\", "\x00")):
        raise InvalidFilename(f"Invalid filename: {filename!r}")
    return filename


def base_name(filename: str) -> str:
    # "song.mp3" -> "song", "a.b.mp3" -> "a.b"
    stem = PurePath(check_filename(filename)).stem
    if stem.strip(".") == "":
        raise InvalidFilename(f"Invalid filename: {filename!r}")
    return stem


@dataclass(frozen=True)
class PathResolver:
    input_dir: Path
    output_dir: Path
    model_name: str = "htdemucs"
    url_prefix: str = "/output"

    def input_path(self, filename: str) -> Path:
        return self.input_dir / check_filename(filename)

    def output_dir_for(self, filename: str) -> Path:
        return self.output_dir / self.model_name / base_name(filename)

    def output_path(self, filename: str, stem: str) -> Path:
        return self.output_dir_for(filename) / f"{_check_stem(stem)}.mp3"

    def output_paths(self, filename: str) -> Dict[str, Path]:
        return {
            "vocals": self.output_path(filename, VOCALS_STEM),
            "instrumental": self.output_path(filename, INSTRUMENTAL_STEM),
        }

    def output_url(self, filename: str, stem: str) -> str:
        prefix = self.url_prefix.rstrip("/")
        return f"{prefix}/{self.model_name}/{base_name(filename)}/{_check_stem(stem)}.mp3"


def _check_stem(stem: str) -> str:
    if stem not in STEMS:
        raise InvalidFilename(f"Unknown stem: {stem!r}")
    return stem
