from .events import (
    TaskEventType,
    publish_task_event,
    publish_task_created,
    publish_task_updated,
    publish_task_deleted,
    publish_task_status_changed,
    publish_task_assigned,
    publish_task_rescheduled,
    publish_comment_added,
    publish_comment_updated,
    publish_comment_deleted,
)

__all__ = [
    "TaskEventType",
    "publish_task_event",
    "publish_task_created",
    "publish_task_updated",
    "publish_task_deleted",
    "publish_task_status_changed",
    "publish_task_assigned",
    "publish_task_rescheduled",
    "publish_comment_added",
    "publish_comment_updated",
    "publish_comment_deleted",
]
