import pytest

from services.errors import JobStateError
from services.jobs import JobStatus, SeparationJob, job_claim, job_get, job_list, job_pop


FILES = {"vocals": "/output/htdemucs/song/vocals.mp3", "instrumental": "/output/htdemucs/song/no_vocals.mp3"}


@pytest.fixture
def events():
    return []


@pytest.fixture
def job(events):
    return SeparationJob("song.mp3", events.append)


def test_happy_path_publishes_one_event_per_transition(job, events):
    job.start()
    job.advance(10)
    job.advance(55)
    job.complete(FILES)

    assert [(e.status, e.progress) for e in events] == [
        (JobStatus.started, 0),
        (JobStatus.processing, 10),
        (JobStatus.processing, 55),
        (JobStatus.completed, 100),
    ]
    assert events[-1].files.vocals == FILES["vocals"]
    assert job.is_terminal
    assert job.snapshot() is events[-1]


def test_lower_percentage_is_ignored(job, events):
    job.start()
    job.advance(60)
    assert job.advance(30) is None
    job.advance(60)
    assert [e.progress for e in events] == [0, 60, 60]
    assert job.progress == 60


def test_fail_and_error_reset_progress(events):
    failed = SeparationJob("a.mp3", events.append)
    failed.start()
    failed.advance(40)
    event = failed.fail(1)
    assert event.status == JobStatus.failed
    assert event.progress == -1
    assert "1" in event.message

    errored = SeparationJob("b.mp3", events.append)
    errored.start()
    event = errored.error("docker: not found")
    assert event.status == JobStatus.error
    assert event.progress == -1
    assert event.message == "Error: docker: not found"


def test_only_one_terminal_state(job):
    job.start()
    job.fail(2)
    with pytest.raises(JobStateError):
        job.complete(FILES)
    with pytest.raises(JobStateError):
        job.error("late")
    with pytest.raises(JobStateError):
        job.advance(99)


def test_must_start_first(job, events):
    with pytest.raises(JobStateError):
        job.advance(10)
    with pytest.raises(JobStateError):
        job.complete(FILES)
    assert events == []


def test_event_json_omits_missing_files(job):
    assert job.start().to_json() == '{"status":"started","message":"Starting audio separation","progress":0}'


def test_registry_claims_once(job, events):
    other = SeparationJob("song.mp3", events.append)
    assert job_claim("song.mp3", job)
    assert not job_claim("song.mp3", other)
    assert job_get("song.mp3") is job
    assert job_list() == [job]
    assert job_pop("song.mp3") is job
    assert job_get("song.mp3") is None
    assert job_claim("song.mp3", other)
