from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from services.paths import PathResolver


_BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings.

    Values come from environment variables or a `.env` file next to the
    working directory. Every field has a default so the server starts without
    any configuration.
    """

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    # app
    APP_NAME: str = "Vocal Separation Backend"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["*"]

    # storage
    INPUT_DIR: Path = _BASE_DIR / "input"
    OUTPUT_DIR: Path = _BASE_DIR / "output"
    MODELS_DIR: Path = _BASE_DIR / "models"
    OUTPUT_URL_PREFIX: str = "/output"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    # demucs
    SEPARATOR_RUNNER: str = "docker"  # docker | local
    DOCKER_EXE: str = "docker"
    DEMUCS_IMAGE: str = "xserrat/facebook-demucs:latest"
    DEMUCS_MODEL: str = "htdemucs"
    DEMUCS_DEVICE: str = "cpu"
    MP3_BITRATE: int = 320

    # logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    def path_resolver(self) -> PathResolver:
        return PathResolver(
            input_dir=Path(self.INPUT_DIR),
            output_dir=Path(self.OUTPUT_DIR),
            model_name=self.DEMUCS_MODEL,
            url_prefix=self.OUTPUT_URL_PREFIX,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
