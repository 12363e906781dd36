import threading
from pathlib import Path
from typing import List, Optional, Sequence, Union
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from vcat.domain.events import (
    BatchFinished, BatchStarted, JobCompleted, JobFailed, JobStarted, TeaserSelected,
)
from vcat.domain.models import VideoMetadata
from vcat.infrastructure.event_bus import EventBus


def _format_size(size: Optional[int]) -> str:
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _format_duration(seconds: Optional[float]) -> str:
    if seconds is None:
        return "-"
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class ConsoleReporter:
    """Subscribes to EventBus and prints per-file progress plus a final summary."""

    def __init__(self, bus: EventBus, console: Optional[Console] = None):
        self.bus = bus
        self.console = console or Console()
        self.total = 0
        self.finished = 0
        self._lock = threading.Lock()
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(BatchStarted, self.on_batch_started)
        self.bus.subscribe(JobStarted, self.on_job_started)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(JobFailed, self.on_job_failed)
        self.bus.subscribe(TeaserSelected, self.on_teaser_selected)
        self.bus.subscribe(BatchFinished, self.on_batch_finished)

    def _next_position(self) -> str:
        with self._lock:
            self.finished += 1
            return f"[{self.finished}/{self.total}]"

    def on_batch_started(self, event: BatchStarted):
        self.total = event.files_count
        self.console.print(
            f"[bold]Processing {event.files_count} file(s)[/bold] with {event.workers} worker(s)"
        )

    def on_job_started(self, event: JobStarted):
        self.console.print(f"[dim]  started  {escape(event.job.source_path.name)}[/dim]")

    def on_job_completed(self, event: JobCompleted):
        position = self._next_position()
        self.console.print(f"[green]✓[/green] {position} {escape(event.job.source_path.name)}")

    def on_job_failed(self, event: JobFailed):
        position = self._next_position()
        self.console.print(
            f"[red]✗[/red] {position} {escape(event.job.source_path.name)}: [red]{escape(event.error_message)}[/red]"
        )

    def on_teaser_selected(self, event: TeaserSelected):
        self.console.print(f"[cyan]★[/cyan] teaser: {escape(event.job.source_path.name)}")

    def on_batch_finished(self, event: BatchFinished):
        color = "red" if event.failed else "green"
        self.console.print(
            f"[{color}]Finished: {event.completed} completed, {event.failed} failed[/{color}]"
        )

    def render_summary(self, files: Sequence[Path], results: Sequence[Union[VideoMetadata, Exception]]) -> Table:
        table = Table(title="Rendition summary")
        table.add_column("#", justify="right")
        table.add_column("File")
        table.add_column("Status")
        table.add_column("Raw", justify="right")
        table.add_column("Full", justify="right")
        table.add_column("Scaled", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("GPS")

        for index, (path, result) in enumerate(zip(files, results), start=1):
            if isinstance(result, VideoMetadata):
                status = "[green]done[/green]" + (" ★" if result.is_teaser else "")
                gps = "yes" if result.latitude is not None else ""
                table.add_row(
                    str(index),
                    escape(Path(path).name),
                    status,
                    f"{result.raw.width}x{result.raw.height}",
                    f"{result.full.width}x{result.full.height}",
                    f"{result.scaled.width}x{result.scaled.height} ({_format_size(result.scaled.size)})",
                    _format_duration(result.duration),
                    gps,
                )
            else:
                table.add_row(str(index), escape(Path(path).name), "[red]failed[/red]", "", "", "", "", "")
        return table

    def print_summary(self, files: Sequence[Path], results: Sequence[Union[VideoMetadata, Exception]]):
        self.console.print(self.render_summary(files, results))
        failures: List[str] = [
            f"{Path(path).name}: {result}"
            for path, result in zip(files, results)
            if not isinstance(result, VideoMetadata)
        ]
        for line in failures:
            self.console.print(f"[red]  {escape(line)}[/red]")
