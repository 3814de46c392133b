"""
mediashrink.pipeline
~~~~~~~~~~~~~~~~~~~~
One compression job from input bytes to output bytes, run synchronously on
the calling thread (the worker thread, in the app).

    plan:    validate → [probe + govern (images)]
    compress: load engine → compile → stage input → execute
              → read output → release staged names

Planning never touches the engine, so anything it rejects is rejected before
the engine is loaded. No Qt here: progress goes out through a plain callback
so this is easy to drive from tests with a fake engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from mediashrink import governor
from mediashrink.command_builder import build_directives, directives_as_string
from mediashrink.engine import Engine
from mediashrink.errors import CompressionError, ProcessingError, classify_failure, is_memory_failure
from mediashrink.models import Assessment, CompressionResult, CompressionSettings, MediaKind
from mediashrink.probe import probe_image_geometry
from mediashrink.validation import validate_input

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobPlan:
    settings: CompressionSettings            # effective, after the governor
    assessment: Assessment | None = None


def plan_job(kind: MediaKind, data: bytes, settings: CompressionSettings) -> JobPlan:
    """
    Everything that can reject a job without the engine: the size ceiling,
    image probing and the memory-safety governor.

    Raises:
        ValidationError  – bad input, un-probeable image, degenerate downscale
    """
    validate_input(kind, data)
    if kind is not MediaKind.IMAGE:
        return JobPlan(settings)
    geometry = probe_image_geometry(data)
    effective, verdict = governor.apply(kind, settings, geometry)
    return JobPlan(effective, verdict)


def staged_names(job_id: int, input_ext: str, output_format: str) -> tuple[str, str]:
    """Job-scoped names so a superseded job can never clobber the current one."""
    return f"input-{job_id}.{input_ext}", f"output-{job_id}.{output_format}"


def compress(
    engine: Engine,
    kind: MediaKind,
    data: bytes,
    input_ext: str,
    settings: CompressionSettings,
    *,
    job_id: int = 0,
    on_progress: Callable[[float], None] | None = None,
    plan: JobPlan | None = None,
) -> CompressionResult:
    """
    Compress *data* with *settings* and return the output artifact.

    *settings* must already be validated for *kind*. Pass the *plan* from
    plan_job() when the caller has already made one.

    Raises:
        ValidationError  – bad input, un-probeable image, degenerate downscale
        EngineError      – the engine failed to load
        ProcessingError  – the engine failed while executing
    """
    started = time.monotonic()
    if plan is None:
        plan = plan_job(kind, data, settings)

    engine.load()

    effective, verdict = plan.settings, plan.assessment

    input_name, output_name = staged_names(job_id, input_ext, effective.output_format)
    directives = build_directives(kind, effective, input_name, output_name)
    log.info("Job %d: compressing %s (%d bytes) → %s",
             job_id, kind.value, len(data), effective.output_format)
    log.info("Job %d directives: %s", job_id, directives_as_string(directives))

    def _forward(fraction: float) -> None:
        if on_progress is not None:
            on_progress(min(max(float(fraction), 0.0), 1.0))

    with engine.lock:
        try:
            engine.write_input(input_name, data)
            engine.execute(directives, _forward)
            output = engine.read_output(output_name)
        except ProcessingError as exc:
            if exc.memory_related or not is_memory_failure(str(exc)):
                raise
            raise classify_failure(str(exc)) from exc
        except CompressionError:
            raise
        except Exception as exc:
            raise classify_failure(str(exc) or exc.__class__.__name__) from exc
        finally:
            engine.delete_file(input_name)
            engine.delete_file(output_name)

    elapsed = time.monotonic() - started
    log.info("Job %d finished in %.2fs: %d → %d bytes",
             job_id, elapsed, len(data), len(output))

    return CompressionResult(
        kind=kind,
        data=output,
        output_format=effective.output_format,
        original_size=len(data),
        elapsed_seconds=elapsed,
        directives=directives,
        downscaled_to=verdict.safe_resolution if verdict and verdict.needs_downscale else None,
    )
