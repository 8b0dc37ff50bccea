"""Background execution of blocking calls with results delivered on the GUI thread."""
from __future__ import annotations

import traceback
from typing import Any, Callable

from loguru import logger
from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal


class TaskSignals(QObject):
    """Signals emitted from a worker thread; queued to the receiver's thread."""

    finished = pyqtSignal(object)
    failed = pyqtSignal(object)


class FunctionTask(QRunnable):
    """Wrap a callable for execution in the Qt thread pool.

    ``failed`` carries the exception instance so callers can react to its
    type rather than parse a message.
    """

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = TaskSignals()

    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Task {} raised:\n{}", getattr(self.fn, "__name__", self.fn), traceback.format_exc())
            self.signals.failed.emit(exc)
        else:
            self.signals.finished.emit(result)


class TaskRunner:
    """Submit tasks and keep them referenced until they report back."""

    def __init__(self, max_threads: int | None = None) -> None:
        self._pool = QThreadPool.globalInstance()
        if max_threads is not None:
            self._pool.setMaxThreadCount(max_threads)
        self._active: set[FunctionTask] = set()

    def submit(
        self,
        task: FunctionTask,
        on_success: Callable[[Any], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        self._active.add(task)
        task.signals.finished.connect(lambda result, t=task: self._finish(t, on_success, result))
        task.signals.failed.connect(lambda exc, t=task: self._finish(t, on_failure, exc))
        self._pool.start(task)

    def _finish(self, task: FunctionTask, handler: Callable[[Any], None], payload: Any) -> None:
        self._active.discard(task)
        handler(payload)
