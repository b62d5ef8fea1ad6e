"""Tests for rendering run progress events as Rich progress bars."""

import io

from rich.console import Console

from spotidrome.application.utilities.progress import ProgressEvent, RunPhase
from spotidrome.infrastructure.cli.progress_provider import RichProgressProvider


def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False)


class TestRichProgressProvider:
    """One task per phase, finished on completion or failure."""

    def test_creates_one_task_per_phase(self):
        with RichProgressProvider(quiet_console()) as provider:
            provider(ProgressEvent(RunPhase.PREPARING))
            provider(ProgressEvent(RunPhase.EXPORTING, current=0, total=4))
            provider(ProgressEvent(RunPhase.EXPORTING, current=2, total=4))

            tasks = provider._progress.tasks
            assert len(tasks) == 2
            assert tasks[1].completed == 2
            assert tasks[1].total == 4

    def test_completion_fills_open_tasks(self):
        with RichProgressProvider(quiet_console()) as provider:
            provider(ProgressEvent(RunPhase.EXPORTING, current=1, total=4))
            provider(ProgressEvent(RunPhase.COMPLETED, current=4, total=4))

            task = provider._progress.tasks[0]
            assert task.completed == 4
            assert "✓" in task.description

    def test_failure_marks_tasks(self):
        with RichProgressProvider(quiet_console()) as provider:
            provider(ProgressEvent(RunPhase.MATCHING, current=1, total=3))
            provider(ProgressEvent(RunPhase.FAILED, message="HTTP 500"))

            task = provider._progress.tasks[0]
            assert task.completed == 1
            assert "✗" in task.description
            assert "HTTP 500" in task.description
