import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events.publishing import publish_domain_event
from apps.common.kafka.config import TASK_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class TaskEventType(Enum):
    """Task event types"""
    # Task lifecycle
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"

    # Task changes
    TASK_STATUS_CHANGED = "task_status_changed"
    TASK_ASSIGNED = "task_assigned"
    TASK_RESCHEDULED = "task_rescheduled"

    # Task comments
    TASK_COMMENT_ADDED = "task_comment_added"
    TASK_COMMENT_UPDATED = "task_comment_updated"
    TASK_COMMENT_DELETED = "task_comment_deleted"


def publish_task_event(
    event_type: TaskEventType,
    user_id,
    task_id,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish task event, partitioned by task

    Args:
        event_type: Type of task event
        user_id: ID of the user performing the action
        task_id: ID of the task the event belongs to
        data: Event-specific data (should include task-related info)
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    data = {'task_id': str(task_id), **data}
    return publish_domain_event(TASK_EVENTS_TOPIC, event_type, user_id, data, key=str(task_id), metadata=metadata)

# Convenience functions for specific events

def publish_task_created(user_id, task_id, title: str, project_id, priority: str = None):
    """Publishes task creation event"""
    data = {
        'title': title,
        'project_id': str(project_id),
        'priority': priority,
        'action': 'create'
    }
    return publish_task_event(TaskEventType.TASK_CREATED, user_id, task_id, data)

def publish_task_updated(user_id, task_id, title: str, changes: Dict[str, Any]):
    """Publishes task update event"""
    data = {
        'title': title,
        'changes': changes,
        'action': 'update'
    }
    return publish_task_event(TaskEventType.TASK_UPDATED, user_id, task_id, data)

def publish_task_deleted(user_id, task_id, title: str):
    """Publishes task deletion event"""
    data = {
        'title': title,
        'action': 'delete'
    }
    return publish_task_event(TaskEventType.TASK_DELETED, user_id, task_id, data)

def publish_task_status_changed(user_id, task_id, title: str, old_status: str, new_status: str):
    """Publishes task status change event"""
    data = {
        'title': title,
        'old_status': old_status,
        'new_status': new_status,
        'action': 'status_change'
    }
    return publish_task_event(TaskEventType.TASK_STATUS_CHANGED, user_id, task_id, data)

def publish_task_assigned(user_id, task_id, title: str, assignee_id, allocated_entries: int = 0):
    """Publishes task assignment event"""
    data = {
        'title': title,
        'assignee_id': str(assignee_id),
        'allocated_entries': allocated_entries,
        'action': 'assign'
    }
    return publish_task_event(TaskEventType.TASK_ASSIGNED, user_id, task_id, data)

def publish_task_rescheduled(user_id, task_id, title: str, start_date: str, end_date: str):
    """Publishes timeline change event"""
    data = {
        'title': title,
        'start_date': start_date,
        'end_date': end_date,
        'action': 'reschedule'
    }
    return publish_task_event(TaskEventType.TASK_RESCHEDULED, user_id, task_id, data)

def publish_comment_added(user_id, task_id, comment_id):
    """Publishes comment creation event"""
    data = {
        'comment_id': str(comment_id),
        'action': 'add_comment'
    }
    return publish_task_event(TaskEventType.TASK_COMMENT_ADDED, user_id, task_id, data)

def publish_comment_updated(user_id, task_id, comment_id):
    """Publishes comment edit event"""
    data = {
        'comment_id': str(comment_id),
        'action': 'edit_comment'
    }
    return publish_task_event(TaskEventType.TASK_COMMENT_UPDATED, user_id, task_id, data)

def publish_comment_deleted(user_id, task_id, comment_id):
    """Publishes comment deletion event"""
    data = {
        'comment_id': str(comment_id),
        'action': 'delete_comment'
    }
    return publish_task_event(TaskEventType.TASK_COMMENT_DELETED, user_id, task_id, data)
