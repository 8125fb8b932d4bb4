from typing import Any, Optional

from models import TaskStatus
from schemas import WorkspaceTaskOut


def apply_status(
    task: WorkspaceTaskOut, status: TaskStatus, now: int
) -> dict[str, Any]:
    """Return the field changes for moving ``task`` to ``status``.

    Any status may follow any other. ``started_at`` and ``completed_at`` are
    stamped the first time they apply and are never overwritten afterwards;
    completing a task that was never started stamps both with ``now``.
    """
    changes: dict[str, Any] = {"status": status}
    if status == TaskStatus.working and task.started_at is None:
        changes["started_at"] = now
    if status == TaskStatus.completed:
        if task.completed_at is None:
            changes["completed_at"] = now
        if task.started_at is None:
            changes["started_at"] = now
    return changes


def duration_ms(task: WorkspaceTaskOut) -> Optional[int]:
    if task.started_at is None or task.completed_at is None:
        return None
    return task.completed_at - task.started_at
