import pytest

from conftest import FakeEngine
from mediashrink.errors import MEMORY_ERROR_MESSAGE, BusyError, EngineError, ProcessingError, ValidationError
from mediashrink.models import JobState, JobStatus
from mediashrink.session import CompressionSession

JPEG_MEDIUM = {"quality": "medium", "format": "jpeg", "resolution": "original"}


def _session(engine):
    session = CompressionSession(engine)
    states, results = [], []
    session.state_changed.connect(states.append)
    session.result_ready.connect(results.append)
    return session, states, results


def test_first_job_loads_engine_then_completes(engine, small_png, synchronous_workers):
    session, states, results = _session(engine)

    token = session.start("image", ("photo.png", small_png), JPEG_MEDIUM)

    assert token == 1
    assert [s.status for s in states] == [
        JobStatus.LOADING,
        JobStatus.IDLE,
        JobStatus.PROCESSING,
        JobStatus.PROCESSING,
        JobStatus.PROCESSING,
        JobStatus.PROCESSING,
        JobStatus.COMPLETED,
    ]
    assert [s.progress for s in states if s.status is JobStatus.PROCESSING] == [0.0, 0.25, 0.5, 1.0]
    assert session.state == JobState(JobStatus.COMPLETED, 1.0, None)
    assert len(results) == 1
    assert session.result is results[0]
    assert session.result.mime_type == "image/jpeg"


def test_second_job_skips_loading(loaded_engine, small_png, synchronous_workers):
    session, states, _ = _session(loaded_engine)
    session.start("image", ("a.png", small_png), JPEG_MEDIUM)
    states.clear()

    session.start("image", ("b.png", small_png), JPEG_MEDIUM)

    assert JobStatus.LOADING not in [s.status for s in states]
    assert states[0].status is JobStatus.IDLE          # implicit reset from completed
    assert states[1].status is JobStatus.PROCESSING
    assert session.state.status is JobStatus.COMPLETED
    assert session.token == 2


def test_start_while_processing_is_rejected(loaded_engine, small_png):
    session, _, _ = _session(loaded_engine)
    session._machine.begin_processing()

    with pytest.raises(BusyError):
        session.start("image", ("a.png", small_png), JPEG_MEDIUM)
    assert session.token == 0


def test_invalid_settings_fail_before_engine(engine, small_png, synchronous_workers):
    session, states, _ = _session(engine)

    with pytest.raises(ValidationError):
        session.start("image", ("a.png", small_png), {"quality": "ultra", "format": "jpeg"})

    assert session.state.status is JobStatus.ERROR
    assert "ultra" in session.state.error
    assert engine.calls == []


def test_unreadable_image_fails_without_loading_engine(engine, synchronous_workers):
    session, states, _ = _session(engine)

    with pytest.raises(ValidationError, match="image dimensions"):
        session.start("image", ("a.png", b"not an image"), JPEG_MEDIUM)

    assert [s.status for s in states] == [JobStatus.ERROR]
    assert engine.calls == []
    assert not engine.loaded


def test_video_format_rejected_for_image(engine, small_png):
    session, _, _ = _session(engine)
    with pytest.raises(ValidationError, match="not valid for image"):
        session.start("image", ("a.png", small_png), {"quality": "low", "format": "mp4"})


def test_load_failure_surfaces_verbatim(small_png, synchronous_workers):
    engine = FakeEngine(load_error=EngineError("Engine binaries unavailable: Binary not found: ffmpeg"))
    session, states, results = _session(engine)

    session.start("image", ("a.png", small_png), JPEG_MEDIUM)

    assert [s.status for s in states] == [JobStatus.LOADING, JobStatus.ERROR]
    assert session.state.error == "Engine binaries unavailable: Binary not found: ffmpeg"
    assert results == []


def test_memory_failure_gets_remediation_message(small_png, synchronous_workers):
    engine = FakeEngine(preloaded=True,
                        execute_error=ProcessingError("RangeError: memory access out of bounds"))
    session, _, _ = _session(engine)

    session.start("image", ("a.png", small_png), JPEG_MEDIUM)

    assert session.state.status is JobStatus.ERROR
    assert session.state.error == MEMORY_ERROR_MESSAGE


def test_other_failures_pass_message_through(small_png, synchronous_workers):
    engine = FakeEngine(preloaded=True, execute_error=ProcessingError("Invalid data found"))
    session, _, _ = _session(engine)

    session.start("image", ("a.png", small_png), JPEG_MEDIUM)

    assert session.state.error == "Invalid data found"


def test_retry_after_error_starts_fresh(small_png, synchronous_workers):
    engine = FakeEngine(preloaded=True, execute_error=ProcessingError("flaky"))
    session, _, _ = _session(engine)
    session.start("image", ("a.png", small_png), JPEG_MEDIUM)
    assert session.state.status is JobStatus.ERROR

    engine.execute_error = None
    session.start("image", ("a.png", small_png), JPEG_MEDIUM)

    assert session.state == JobState(JobStatus.COMPLETED, 1.0, None)


def test_reset_during_job_discards_its_results(loaded_engine, small_png, synchronous_workers):
    session, states, results = _session(loaded_engine)
    # Reset from inside the engine call, as a user would while it runs.
    loaded_engine.before_finish = session.reset

    session.start("image", ("a.png", small_png), JPEG_MEDIUM)

    assert session.state == JobState(JobStatus.IDLE, 0.0, None)
    assert results == []
    assert session.result is None
    assert states[-1].status is JobStatus.IDLE


def test_stale_events_are_ignored(loaded_engine):
    session, states, _ = _session(loaded_engine)
    session._token = 5
    session._machine.begin_processing()
    states.clear()

    session._on_progress(4, 0.9)
    session._on_failed(4, "old failure")
    session._on_succeeded(4, object())

    assert states == []
    assert session.state == JobState(JobStatus.PROCESSING, 0.0, None)


def test_reset_clears_error(engine):
    session, _, _ = _session(engine)
    session._machine.fail("boom")

    session.reset()

    assert session.state == JobState(JobStatus.IDLE, 0.0, None)


def test_missing_file_is_a_validation_error(engine, tmp_path):
    session, _, _ = _session(engine)
    with pytest.raises(ValidationError, match="Could not read"):
        session.start("video", tmp_path / "missing.mp4", {"format": "mp4"})
    assert session.state.status is JobStatus.ERROR


def test_reads_input_from_path(engine, tmp_path, synchronous_workers):
    clip = tmp_path / "clip.mov"
    clip.write_bytes(b"\x00" * 64)
    session, _, results = _session(engine)

    session.start("video", clip, {"quality": "speed", "format": "mp4"})

    assert results[0].mime_type == "video/mp4"
    assert engine.executed[0][:2] == ["-i", "input-1.mov"]


def test_job_runs_on_worker_thread(loaded_engine, small_png, qapp):
    session, _, results = _session(loaded_engine)

    session.start("image", ("a.png", small_png), JPEG_MEDIUM)
    for worker in list(session._workers.values()):
        assert worker.wait(5000)
    qapp.processEvents()

    assert session.state == JobState(JobStatus.COMPLETED, 1.0, None)
    assert len(results) == 1
