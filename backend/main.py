# backend/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, get_settings
from routers import audio, separation
from services.broadcaster import ProgressBroadcaster
from services.files import ensure_directories_exist
from services.logger import setup_logging
from services.process import ProcessRunner
from services.separation import SeparationService


logger = logging.getLogger(__name__)


def create_app(settings: Settings = None, runner: ProcessRunner = None) -> FastAPI:
	settings = settings or get_settings()
	setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

	# one progress channel for the whole process, shared by every job
	broadcaster = ProgressBroadcaster()

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		ensure_directories_exist(settings.INPUT_DIR, settings.OUTPUT_DIR, settings.MODELS_DIR)
		logger.info("Server running at http://%s:%s", settings.APP_HOST, settings.APP_PORT)
		yield
		broadcaster.close()

	app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)
	app.state.settings = settings
	app.state.broadcaster = broadcaster
	app.state.separation = SeparationService(settings, broadcaster, runner)

	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.CORS_ORIGINS,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.include_router(audio.router, prefix="/api")
	app.include_router(separation.router, prefix="/api")
	app.include_router(audio.output_router)

	@app.get("/api/status")
	def get_status():
		return {"status": "ok", "message": "Backend is running!"}

	return app


app = create_app()


if __name__ == "__main__":
	import uvicorn

	_settings = get_settings()
	uvicorn.run(app, host=_settings.APP_HOST, port=_settings.APP_PORT)
