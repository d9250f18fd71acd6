import logging
from pathlib import Path

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse

from services.errors import InvalidFilename, UploadTooLarge
from services.files import ensure_directories_exist, make_stored_filename, write_upload_to
from services.paths import check_filename


logger = logging.getLogger(__name__)

router = APIRouter()
output_router = APIRouter()


@router.post("/upload")
async def upload_audio(request: Request, audio: UploadFile = File(...)):
	settings = request.app.state.settings
	if not (audio.content_type or "").startswith("audio/"):
		return JSONResponse({"error": "Only audio files are allowed!"}, status_code=400)

	ensure_directories_exist(settings.INPUT_DIR)
	stored = make_stored_filename(Path(audio.filename or "").name)
	input_path = Path(settings.INPUT_DIR) / stored
	try:
		size = await write_upload_to(input_path, audio, settings.MAX_UPLOAD_SIZE)
	except UploadTooLarge as e:
		return JSONResponse({"error": str(e)}, status_code=413)
	except OSError:
		logger.exception("Error handling upload")
		return JSONResponse({"error": "Failed to upload file"}, status_code=500)

	logger.info("Uploaded %s (%d bytes, %s) as %s", audio.filename, size, audio.content_type, stored)
	return {
		"message": "Audio file uploaded successfully",
		"file": {
			"name": audio.filename,
			"size": size,
			"mimetype": audio.content_type,
			"storedFilename": stored,
		},
	}


@output_router.get("/output/{model}/{name}/{stem}.mp3")
def processed_audio(request: Request, model: str, name: str, stem: str):
	paths = request.app.state.separation.paths
	not_found = JSONResponse({"error": "Audio file not found"}, status_code=404)
	if model != paths.model_name:
		return not_found
	try:
		check_filename(name)
		# output files are keyed by the input base name, any extension resolves the same dir
		file_path = paths.output_path(f"{name}.mp3", stem)
	except InvalidFilename:
		return not_found
	if not file_path.is_file():
		return not_found
	return FileResponse(path=str(file_path), media_type="audio/mpeg", filename=f"{name}_{stem}.mp3")
