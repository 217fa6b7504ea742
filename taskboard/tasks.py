"""
Task lifecycle operations, always scoped to the owning user.

A task is pending while both flags are false, completed once
``completestatus`` is set, and archived (hidden from both views) while
``currentstatus`` is set. Rows are never deleted.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from taskboard.db import DbClient, TaskRecord
from taskboard.errors import NotFoundError, ValidationError

REMINDER_WINDOW = timedelta(minutes=30)
REMINDER_LIMIT = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskService:
    def __init__(self, db: DbClient, *, clock: Callable[[], datetime] = _utcnow):
        self._db = db
        self._clock = clock

    def create_task(
        self,
        user_id: int,
        *,
        task: Optional[str],
        type: Optional[str],
        remindertime: Optional[datetime],
        timeofentry: Optional[datetime] = None,
        completestatus: Optional[bool] = None,
        currentstatus: Optional[bool] = None,
    ) -> TaskRecord:
        if not task or not type or not remindertime:
            raise ValidationError("Task, type, and remindertime are required")
        return self._db.create_task(
            user_id,
            task=task,
            type=type,
            timeofentry=timeofentry or self._clock(),
            remindertime=remindertime,
            completestatus=bool(completestatus),
            currentstatus=bool(currentstatus),
        )

    def list_pending(self, user_id: int) -> list[TaskRecord]:
        return self._db.list_tasks(user_id, completestatus=False, currentstatus=False)

    def list_completed(self, user_id: int) -> list[TaskRecord]:
        return self._db.list_tasks(user_id, completestatus=True, currentstatus=False)

    def list_upcoming_reminders(self, user_id: int) -> list[TaskRecord]:
        """
        Tasks whose reminder fires within the next 30 minutes, newest entry first.

        There is no lower bound: reminders already in the past also qualify.
        Archived and completed tasks are not filtered out.
        """
        cutoff = self._clock() + REMINDER_WINDOW
        return self._db.list_tasks_reminding_before(user_id, cutoff, REMINDER_LIMIT)

    def set_status(
        self,
        user_id: int,
        task_id: int,
        *,
        completestatus: Optional[bool],
        currentstatus: Optional[bool],
    ) -> TaskRecord:
        """Overwrite both lifecycle flags (mark done, archive and undo all use this)."""
        task = self._db.update_task_status(
            user_id,
            task_id,
            completestatus=bool(completestatus),
            currentstatus=bool(currentstatus),
        )
        if task is None:
            raise NotFoundError("Task not found or unauthorized")
        return task

    def edit_content(
        self,
        user_id: int,
        task_id: int,
        *,
        editedtask: Optional[str],
        editedtype: Optional[str] = None,
    ) -> TaskRecord:
        if not editedtask:
            raise ValidationError("Task content is required")
        task = self._db.update_task_content(
            user_id, task_id, task=editedtask, type=editedtype or ""
        )
        if task is None:
            raise NotFoundError("Task not found or unauthorized")
        return task
