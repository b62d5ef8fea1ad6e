"""
Rich-based progress display for matching and export runs.

RichProgressProvider is a progress callback: pass it as ``on_progress`` to
BatchMatcher, PlaylistExporter, FavoritesExporter or the incremental update
orchestrator. Each run phase gets its own bar on a single shared Rich
Progress instance.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from spotidrome.application.utilities.progress import ProgressEvent, RunPhase

PHASE_LABELS = {
    RunPhase.PREPARING: "Preparing",
    RunPhase.MATCHING: "Matching tracks",
    RunPhase.EXPORTING: "Exporting to Navidrome",
}


class RichProgressProvider:
    """Render ProgressEvents as Rich progress bars.

    Use as a context manager so the live display is started and stopped
    around the run.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._tasks: dict[RunPhase, TaskID] = {}
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=self.console,
            transient=False,
        )

    def __enter__(self) -> "RichProgressProvider":
        self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._progress.stop()

    def __call__(self, event: ProgressEvent) -> None:
        if event.phase is RunPhase.COMPLETED:
            self._finish_all("green", "✓")
            return
        if event.phase is RunPhase.FAILED:
            self._finish_all("red", "✗", event.message)
            return

        label = PHASE_LABELS[event.phase]
        description = f"[cyan]{label}[/cyan]"
        if event.current_track:
            description = f"[cyan]{label}[/cyan] [dim]{event.current_track}[/dim]"

        task_id = self._tasks.get(event.phase)
        if task_id is None:
            self._tasks[event.phase] = self._progress.add_task(
                description=description,
                total=event.total or None,
                completed=event.current,
            )
            return
        self._progress.update(
            task_id,
            description=description,
            completed=event.current,
            total=event.total or None,
        )

    def _finish_all(self, style: str, mark: str, message: str | None = None) -> None:
        for phase, task_id in self._tasks.items():
            task = self._progress.tasks[task_id]
            if task.finished:
                continue
            suffix = f" [dim]{message}[/dim]" if message else ""
            self._progress.update(
                task_id,
                description=f"[{style}]{mark} {PHASE_LABELS[phase]}[/{style}]{suffix}",
                completed=task.total if style == "green" and task.total else task.completed,
            )
