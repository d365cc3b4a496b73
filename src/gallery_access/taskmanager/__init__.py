"""Task manager — periodic background jobs.

Provides ``TaskManager`` for recurring tasks such as the access key
retention purge and metrics calculation.
"""

from __future__ import annotations

from gallery_access.taskmanager.manager import CronJob, TaskManager

__all__ = ["CronJob", "TaskManager"]
