from io import StringIO
from pathlib import Path
from rich.console import Console
from vcat.domain.events import BatchFinished, BatchStarted, JobCompleted, JobFailed, TeaserSelected
from vcat.domain.models import RenditionInfo, RenditionJob, VideoMetadata
from vcat.infrastructure.event_bus import EventBus
from vcat.ui.reporter import ConsoleReporter


def make_reporter():
    bus = EventBus()
    console = Console(file=StringIO(), width=160, color_system=None)
    return bus, ConsoleReporter(bus, console=console), console


def output_of(console):
    return console.file.getvalue()


def test_progress_lines_from_events():
    bus, reporter, console = make_reporter()
    job_a = RenditionJob(index=0, source_path=Path("a.mp4"))
    job_b = RenditionJob(index=1, source_path=Path("b.mp4"))

    bus.publish(BatchStarted(files_count=2, workers=3))
    bus.publish(JobCompleted(job=job_a))
    bus.publish(TeaserSelected(job=job_a))
    bus.publish(JobFailed(job=job_b, error_message="ffmpeg failed: boom"))
    bus.publish(BatchFinished(completed=1, failed=1))

    text = output_of(console)
    assert "Processing 2 file(s) with 3 worker(s)" in text
    assert "[1/2] a.mp4" in text
    assert "teaser: a.mp4" in text
    assert "[2/2] b.mp4: ffmpeg failed: boom" in text
    assert "Finished: 1 completed, 1 failed" in text


def test_summary_table_rows():
    _, reporter, console = make_reporter()
    done = VideoMetadata(
        duration=75.0,
        is_teaser=True,
        raw=RenditionInfo(height=1080, width=1920, size=10),
        full=RenditionInfo(height=480, width=854, size=8),
        scaled=RenditionInfo(height=240, width=426, size=2048),
    )
    files = [Path("a.mp4"), Path("b.mp4")]

    reporter.print_summary(files, [done, RuntimeError("broken")])

    text = output_of(console)
    assert "1920x1080" in text
    assert "426x240 (2.0 KB)" in text
    assert "1:15" in text
    assert "failed" in text
    assert "b.mp4: broken" in text
