import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events.publishing import publish_domain_event
from apps.common.kafka.config import PROJECT_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class ProjectEventType(Enum):
    """Project event types"""
    # Project lifecycle
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"

    # Membership
    PROJECT_MEMBER_ADDED = "project_member_added"
    PROJECT_MEMBER_REMOVED = "project_member_removed"
    PROJECT_MEMBER_ROLE_CHANGED = "project_member_role_changed"


def publish_project_event(
    event_type: ProjectEventType,
    user_id,
    project_id,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish project event, partitioned by project so a project's history stays ordered

    Args:
        event_type: Type of project event
        user_id: ID of the user performing the action
        project_id: ID of the project the event belongs to
        data: Event-specific data
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    data = {'project_id': str(project_id), **data}
    return publish_domain_event(
        PROJECT_EVENTS_TOPIC, event_type, user_id, data, key=str(project_id), metadata=metadata
    )

# Convenience functions for specific events

def publish_project_created(user_id, project_id, name: str, status: str):
    """Publishes project creation event"""
    data = {
        'name': name,
        'status': status,
        'action': 'create'
    }
    return publish_project_event(ProjectEventType.PROJECT_CREATED, user_id, project_id, data)

def publish_project_updated(user_id, project_id, name: str, changes: Dict[str, Any]):
    """Publishes project update event"""
    data = {
        'name': name,
        'changes': changes,
        'action': 'update'
    }
    return publish_project_event(ProjectEventType.PROJECT_UPDATED, user_id, project_id, data)

def publish_project_deleted(user_id, project_id, name: str):
    """Publishes project deletion event"""
    data = {
        'name': name,
        'action': 'delete'
    }
    return publish_project_event(ProjectEventType.PROJECT_DELETED, user_id, project_id, data)

def publish_project_member_added(user_id, project_id, member_id, role: str):
    """Publishes project member addition event"""
    data = {
        'member_id': str(member_id),
        'role': role,
        'action': 'add_member'
    }
    return publish_project_event(ProjectEventType.PROJECT_MEMBER_ADDED, user_id, project_id, data)

def publish_project_member_removed(user_id, project_id, member_id):
    """Publishes project member removal event"""
    data = {
        'member_id': str(member_id),
        'action': 'remove_member'
    }
    return publish_project_event(ProjectEventType.PROJECT_MEMBER_REMOVED, user_id, project_id, data)

def publish_project_member_role_changed(user_id, project_id, member_id, role: str):
    """Publishes project member role change event"""
    data = {
        'member_id': str(member_id),
        'role': role,
        'action': 'change_role'
    }
    return publish_project_event(ProjectEventType.PROJECT_MEMBER_ROLE_CHANGED, user_id, project_id, data)
