import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events.publishing import publish_domain_event
from apps.common.kafka.config import WORKLOAD_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class WorkloadEventType(Enum):
    """Workload event types"""
    WORKLOAD_ALLOCATED = "workload_allocated"
    WORKLOAD_UPDATED = "workload_updated"
    WORKLOAD_DELETED = "workload_deleted"


def publish_workload_event(
    event_type: WorkloadEventType,
    user_id,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish workload event using the abstraction layer

    Args:
        event_type: Type of workload event
        user_id: ID of the user performing the action
        data: Event-specific data (entry ids, owner and hours)
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    return publish_domain_event(WORKLOAD_EVENTS_TOPIC, event_type, user_id, data, metadata=metadata)

# Convenience functions for specific events

def _entry_data(entry) -> Dict[str, Any]:
    return {
        'entry_id': str(entry.id),
        'user_id': str(entry.user_id),
        'project_id': str(entry.project_id),
        'task_id': str(entry.task_id),
        'date': entry.date.isoformat(),
        'allocated_hours': float(entry.allocated_hours),
    }

def publish_workload_allocated(user_id, entries):
    """Publishes one event for a batch of allocated entries"""
    data = {
        'entries': [_entry_data(entry) for entry in entries],
        'total_hours': sum(float(entry.allocated_hours) for entry in entries),
        'action': 'allocate'
    }
    return publish_workload_event(WorkloadEventType.WORKLOAD_ALLOCATED, user_id, data)

def publish_workload_updated(user_id, entry):
    """Publishes workload entry update event"""
    data = {
        **_entry_data(entry),
        'actual_hours': float(entry.actual_hours) if entry.actual_hours is not None else None,
        'action': 'update'
    }
    return publish_workload_event(WorkloadEventType.WORKLOAD_UPDATED, user_id, data)

def publish_workload_deleted(user_id, entry_id):
    """Publishes workload entry deletion event"""
    data = {
        'entry_id': str(entry_id),
        'action': 'delete'
    }
    return publish_workload_event(WorkloadEventType.WORKLOAD_DELETED, user_id, data)
