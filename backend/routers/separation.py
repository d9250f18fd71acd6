import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from services.broadcaster import ProgressBroadcaster, Subscription
from services.errors import (
	InputNotFound,
	InvalidFilename,
	JobAlreadyRunning,
	SeparationError,
)
from services.jobs import job_get, job_list
from services.paths import check_filename


logger = logging.getLogger(__name__)

router = APIRouter()

PROGRESS_EVENT = "separation-progress"


@router.post("/separate/{filename}")
async def separate(filename: str, request: Request):
	service = request.app.state.separation
	try:
		files = await service.run(filename)
	except InvalidFilename as e:
		return JSONResponse({"error": e.message}, status_code=400)
	except InputNotFound as e:
		return JSONResponse({"error": e.message}, status_code=404)
	except JobAlreadyRunning as e:
		return JSONResponse({"error": e.message}, status_code=409)
	except SeparationError as e:
		logger.warning("Separation of %s failed: %s", filename, e.message)
		return JSONResponse({"error": e.message}, status_code=500)
	return {"message": "Audio separation completed", "files": files}


@router.get("/separate/{filename}/progress")
def separation_progress(filename: str):
	try:
		check_filename(filename)
	except InvalidFilename as e:
		return JSONResponse({"error": e.message}, status_code=400)
	job = job_get(filename)
	event = job.snapshot() if job else None
	if event is None:
		return JSONResponse({"error": "job not found"}, status_code=404)
	return event.model_dump(exclude_none=True, mode="json")


async def progress_events(broadcaster: ProgressBroadcaster, subscription: Subscription):
	try:
		async for event in subscription:
			yield {"event": PROGRESS_EVENT, "data": event.to_json()}
	finally:
		broadcaster.unsubscribe(subscription)


@router.get("/stream")
async def stream(request: Request):
	"""Server-sent events for every separation job, from the moment of connecting."""
	broadcaster = request.app.state.broadcaster
	subscription = broadcaster.subscribe()
	logger.info("SSE client connected (%d live)", broadcaster.subscriber_count)
	return EventSourceResponse(progress_events(broadcaster, subscription))


@router.get("/jobs")
def active_jobs():
	return [
		{"filename": job.filename, **job.snapshot().model_dump(exclude_none=True, mode="json")}
		for job in job_list()
		if job.snapshot() is not None
	]
