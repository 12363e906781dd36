"""Batch orchestrator for the rendition pipeline.

Fans an ordered file list out to a bounded thread pool. Each worker runs one
file through the whole pipeline:

    QUEUED -> METADATA_EXTRACTED -> RENDITIONS_GENERATED -> TAGS_RECONCILED -> DONE
                       (any step) -> FAILED

Key properties:
- Indexes are assigned before dispatch and every worker writes only its own
  result slot, so the result list matches input order whatever the completion
  order is.
- A failing file stores its exception in its slot; siblings keep running.
- Sources sharing a base name would share rendition files, so every one
  after the first in input order fails with FileExistsError before dispatch.
- The teaser flag is the only state shared between workers and goes through
  TeaserSelector's locked check-and-set.
"""

import concurrent.futures
import logging
import shutil
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union
from vcat.config.models import AppConfig, resolve_worker_count
from vcat.domain.errors import InvalidDimensions
from vcat.domain.events import (
    BatchFinished, BatchStarted, JobCompleted, JobFailed, JobStarted, JobStatusChanged, TeaserSelected,
)
from vcat.domain.models import JobStatus, RenditionInfo, RenditionJob, RenditionKind, VideoMetadata
from vcat.infrastructure.event_bus import EventBus
from vcat.infrastructure.exif_tool import ExifToolAdapter
from vcat.infrastructure.ffmpeg import FFmpegAdapter
from vcat.infrastructure.ffprobe import FFprobeAdapter
from vcat.infrastructure.image_tool import ImageResizer
from vcat.pipeline.planner import RenditionPlanner, RenditionTarget
from vcat.pipeline.reconciler import MetadataReconciler
from vcat.pipeline.teaser import TeaserSelector

SlotResult = Union[VideoMetadata, Exception]


class Orchestrator:
    """Runs the per-file rendition pipeline over a batch of source videos.

    Args:
        config: AppConfig (threads, teaser policy, rendition settings).
        event_bus: EventBus receiving job lifecycle events.
        ffprobe_adapter: probe collaborator (metadata + corrected duration).
        ffmpeg_adapter: transcoding and frame extraction collaborator.
        exif_adapter: tag-reading collaborator.
        image_resizer: thumbnail resize collaborator.
        planner: RenditionPlanner bound to the run's video dir, web root and year.
        reconciler: MetadataReconciler (a default instance when omitted).
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        ffprobe_adapter: FFprobeAdapter,
        ffmpeg_adapter: FFmpegAdapter,
        exif_adapter: ExifToolAdapter,
        image_resizer: ImageResizer,
        planner: RenditionPlanner,
        reconciler: Optional[MetadataReconciler] = None,
    ):
        self.config = config
        self.event_bus = event_bus
        self.ffprobe_adapter = ffprobe_adapter
        self.ffmpeg_adapter = ffmpeg_adapter
        self.exif_adapter = exif_adapter
        self.image_resizer = image_resizer
        self.planner = planner
        self.reconciler = reconciler or MetadataReconciler()
        self.logger = logging.getLogger(__name__)

        self.max_workers = resolve_worker_count(config.general.threads)
        # Per-batch state, recreated by run()
        self.teaser = TeaserSelector()
        self._shutdown_event = threading.Event()

    def _advance(self, job: RenditionJob, status: JobStatus):
        job.status = status
        if self.config.general.debug:
            self.logger.debug(f"JOB_STATUS: {job.source_path.name} -> {status.value}")
        self.event_bus.publish(JobStatusChanged(job=job, status=status))

    def _thumbnail_seconds(self, duration: Optional[float]) -> float:
        seconds = self.config.renditions.thumbnail_seconds
        if not duration or duration < seconds:
            return 0.0
        return seconds

    def _claim_teaser(self, job: RenditionJob) -> bool:
        if job.metadata is None or not self.teaser.claim(job.index):
            return False
        job.metadata.is_teaser = True
        self.logger.info(f"TEASER: {job.source_path.name} (index {job.index})")
        self.event_bus.publish(TeaserSelected(job=job))
        return True

    def _move_to_raw(self, source_path: Path) -> Path:
        raw_path = self.planner.local_path(RenditionKind.RAW, source_path.name)
        if raw_path.exists():
            raise FileExistsError(f"Raw file already exists: {raw_path}")
        raw_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source_path), str(raw_path))
        return raw_path

    def _render_video(self, source: Path, target: RenditionTarget, info: RenditionInfo):
        info.height = target.height
        info.width = target.width
        info.path = target.web_path
        self.ffmpeg_adapter.convert(source, target.local_path, target.width, target.height)
        info.size = target.local_path.stat().st_size

    def _render_image(self, frame: Path, target: RenditionTarget, info: RenditionInfo):
        info.path = target.web_path
        if frame != target.local_path:
            shutil.copyfile(frame, target.local_path)
        info.height, info.width = self.image_resizer.resize(
            target.local_path, target.width, target.height, target.resize_mode
        )
        info.size = target.local_path.stat().st_size

    def _process_file(self, job: RenditionJob) -> VideoMetadata:
        """Runs one file through every pipeline step. Raises on failure."""
        filename = job.source_path.name
        start_time = time.monotonic()
        self.logger.info(f"PROCESS_START: {filename} (thread {threading.get_ident()})")
        self.event_bus.publish(JobStarted(job=job))

        # 1. Move into the raw holding directory
        raw_path = self._move_to_raw(job.source_path)
        raw_size = raw_path.stat().st_size

        # 2. Probe + tags -> reconciled metadata
        probe_data = self.ffprobe_adapter.get_probe_data(raw_path)
        tag_data = self.exif_adapter.read_tags(raw_path)
        metadata = self.reconciler.reconcile(probe_data, tag_data, source=filename)
        metadata.raw.size = raw_size
        metadata.raw.path = self.planner.web_path(RenditionKind.RAW, filename)
        job.metadata = metadata
        self._advance(job, JobStatus.METADATA_EXTRACTED)

        if not metadata.raw.height or not metadata.raw.width:
            raise InvalidDimensions(f"{filename}: probe reported no usable frame size")

        # 3. Video renditions
        plan = self.planner.plan(filename, metadata.raw.height, metadata.raw.width)
        self._render_video(raw_path, plan.full, metadata.full)

        # Some sources report bad durations; the freshly encoded full rendition doesn't
        corrected = self.ffprobe_adapter.get_duration(plan.full.local_path)
        if corrected > 0:
            metadata.duration = corrected
        else:
            self.logger.warning(
                f"{filename}: full rendition reported no duration, keeping source value {metadata.duration}"
            )

        self._render_video(raw_path, plan.scaled, metadata.scaled)

        # 4. Image renditions (one frame; square is cut before the thumbnail is resized in place)
        seconds = self._thumbnail_seconds(metadata.duration)
        frame = plan.thumbnail.local_path
        self.ffmpeg_adapter.extract_frame(raw_path, frame, seconds)
        self._render_image(frame, plan.thumbnail_sq, metadata.thumbnail_sq)
        self._render_image(frame, plan.thumbnail, metadata.thumbnail)
        self._advance(job, JobStatus.RENDITIONS_GENERATED)

        # 5. Tag enrichment (GPS, creation-time fallback)
        self.reconciler.merge_tags(metadata, tag_data, source=filename)
        self._advance(job, JobStatus.TAGS_RECONCILED)

        job.status = JobStatus.DONE
        if self.config.general.teaser_selection == "first_completed":
            self._claim_teaser(job)
        self.event_bus.publish(JobCompleted(job=job))

        elapsed = time.monotonic() - start_time
        self.logger.info(f"PROCESS_END: {filename} status=done elapsed={elapsed:.2f}s")
        return metadata

    def _fail_slot(self, job: RenditionJob, results: List[Optional[SlotResult]], error: Exception):
        job.status = JobStatus.FAILED
        job.error_message = f"{type(error).__name__}: {error}"
        results[job.index] = error
        self.logger.error(f"PROCESS_END: {job.source_path.name} status=failed error={job.error_message}")
        self.event_bus.publish(JobFailed(job=job, error_message=job.error_message))

    def _run_slot(self, job: RenditionJob, results: List[Optional[SlotResult]]):
        """Worker entry point; always fills results[job.index]."""
        if self._shutdown_event.is_set():
            return
        try:
            results[job.index] = self._process_file(job)
        except Exception as e:
            self._fail_slot(job, results, e)

    def _claim_output_names(self, jobs: List[RenditionJob], results: List[Optional[SlotResult]]) -> List[RenditionJob]:
        """Fails every job whose rendition files an earlier job already owns."""
        owners = {}
        runnable = []
        for job in jobs:
            stem = self.planner.output_stem(job.source_path.name)
            owner = owners.setdefault(stem, job)
            if owner is job:
                runnable.append(job)
                continue
            self._fail_slot(job, results, FileExistsError(
                f"Rendition name {stem!r} is already used by {owner.source_path.name}"
            ))
        return runnable

    def _select_teaser_in_input_order(self, jobs: List[RenditionJob]):
        for job in jobs:
            if job.status == JobStatus.DONE and self._claim_teaser(job):
                return

    def run(self, files: Sequence[Path]) -> List[SlotResult]:
        """Processes files in parallel; result i belongs to files[i]."""
        jobs = [RenditionJob(index=i, source_path=Path(p)) for i, p in enumerate(files)]
        results: List[Optional[SlotResult]] = [None] * len(jobs)

        self.teaser = TeaserSelector()
        self._shutdown_event = threading.Event()

        self.logger.info(f"Batch started: files={len(jobs)}, workers={self.max_workers}")
        self.event_bus.publish(BatchStarted(files_count=len(jobs), workers=self.max_workers))
        runnable = self._claim_output_names(jobs, results)

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="vcat-worker"
        ) as executor:
            futures = [executor.submit(self._run_slot, job, results) for job in runnable]
            try:
                for future in concurrent.futures.as_completed(futures):
                    future.result()
            except KeyboardInterrupt:
                self.logger.info("Ctrl+C detected - cancelling queued files, waiting for active ones...")
                self._shutdown_event.set()
                executor.shutdown(wait=False, cancel_futures=True)
                raise

        if self.config.general.teaser_selection == "input_order":
            self._select_teaser_in_input_order(jobs)

        completed = sum(1 for r in results if isinstance(r, VideoMetadata))
        failed = len(results) - completed
        self.logger.info(f"Batch finished: completed={completed}, failed={failed}")
        self.event_bus.publish(BatchFinished(completed=completed, failed=failed))
        return results
