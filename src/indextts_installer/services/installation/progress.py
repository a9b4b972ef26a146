"""Shared installation progress record."""

import threading
import uuid

from indextts_installer.models.installation import ErrorKind, InstallProgress, InstallStep


class ProgressTracker:
    """
    Lock-protected holder of the current InstallProgress.

    One tracker is created per installer instance and handed to both the API
    layer and the background run. Updates replace the whole record under the
    lock, so a poll never sees a new percentage with an old message.
    """

    def __init__(self, ready_message: str = "Ready to install") -> None:
        self._lock = threading.Lock()
        self._ready_message = ready_message
        self._record = InstallProgress(step="idle", progress=0, message=ready_message)

    def snapshot(self) -> InstallProgress:
        """Return a copy of the current record."""
        with self._lock:
            return self._record.model_copy()

    def update(
        self,
        step: InstallStep,
        progress: int,
        message: str,
        *,
        is_complete: bool = False,
        has_error: bool = False,
        error_kind: ErrorKind | None = None,
        run_id: str | None = None,
    ) -> None:
        """Replace every field of the record at once."""
        record = InstallProgress(
            step=step,
            progress=progress,
            message=message,
            is_complete=is_complete,
            has_error=has_error,
            error_kind=error_kind,
            run_id=run_id,
        )
        with self._lock:
            self._record = record

    def begin_run(self) -> str:
        """
        Allocate an identifier for a new run and stamp it onto an idle record.

        From here on a poll never sees the previous run's terminal state under
        the new run's id.
        """
        run_id = uuid.uuid4().hex
        record = InstallProgress(step="idle", progress=0, message=self._ready_message, run_id=run_id)
        with self._lock:
            self._record = record
        return run_id

    def reset(self) -> None:
        self.update("idle", 0, self._ready_message)
