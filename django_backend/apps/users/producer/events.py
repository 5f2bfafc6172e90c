import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events.publishing import publish_domain_event
from apps.common.kafka.config import USER_ACTIVITIES_TOPIC

logger = logging.getLogger(__name__)


class UserEventType(Enum):
    """User and team event types"""
    # Directory
    USER_PROFILE_UPDATED = "user_profile_updated"
    USER_SYNCED = "user_synced"

    # Teams
    TEAM_CREATED = "team_created"
    TEAM_UPDATED = "team_updated"
    TEAM_DELETED = "team_deleted"
    TEAM_MEMBER_ADDED = "team_member_added"
    TEAM_MEMBER_REMOVED = "team_member_removed"
    TEAM_MEMBER_ROLE_CHANGED = "team_member_role_changed"
    TEAM_MEMBER_LEFT = "team_member_left"
    TEAM_ADDED_TO_PROJECT = "team_added_to_project"
    TEAM_REMOVED_FROM_PROJECT = "team_removed_from_project"


def publish_user_event(
    event_type: UserEventType,
    user_id,
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish user activity event, partitioned by the acting user

    Args:
        event_type: Type of user event
        user_id: ID of the user performing the action
        data: Event-specific data
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    return publish_domain_event(USER_ACTIVITIES_TOPIC, event_type, user_id, data, metadata=metadata)

# Convenience functions for specific events

def publish_user_synced(user_id, email: str, name: str):
    """Publishes identity sync event"""
    data = {
        'email': email,
        'name': name,
    }
    return publish_user_event(UserEventType.USER_SYNCED, user_id, data)

def publish_user_profile_updated(user_id, changes: Dict[str, Any]):
    """Publishes profile update event"""
    data = {
        'changes': changes,
        'action': 'update'
    }
    return publish_user_event(UserEventType.USER_PROFILE_UPDATED, user_id, data)

def publish_team_created(user_id, team_id, team_name: str, team_description: str = None):
    """Publishes team creation event"""
    data = {
        'team_id': str(team_id),
        'team_name': team_name,
        'team_description': team_description,
        'action': 'create'
    }
    return publish_user_event(UserEventType.TEAM_CREATED, user_id, data)

def publish_team_updated(user_id, team_id, team_name: str, changes: Dict[str, Any]):
    """Publishes team update event"""
    data = {
        'team_id': str(team_id),
        'team_name': team_name,
        'changes': changes,
        'action': 'update'
    }
    return publish_user_event(UserEventType.TEAM_UPDATED, user_id, data)

def publish_team_deleted(user_id, team_id, team_name: str):
    """Publishes team deletion event"""
    data = {
        'team_id': str(team_id),
        'team_name': team_name,
        'action': 'delete'
    }
    return publish_user_event(UserEventType.TEAM_DELETED, user_id, data)

def publish_team_member_added(admin_user_id, team_id, new_member_id, role: str):
    """Publishes team member addition event"""
    data = {
        'team_id': str(team_id),
        'new_member_id': str(new_member_id),
        'role': role,
        'action': 'add_member'
    }
    return publish_user_event(UserEventType.TEAM_MEMBER_ADDED, admin_user_id, data)

def publish_team_member_removed(admin_user_id, team_id, removed_member_id):
    """Publishes team member removal event, or a leave event when members remove themselves"""
    data = {
        'team_id': str(team_id),
        'removed_member_id': str(removed_member_id),
    }
    if str(admin_user_id) == str(removed_member_id):
        data['action'] = 'leave_team'
        return publish_user_event(UserEventType.TEAM_MEMBER_LEFT, admin_user_id, data)
    data['action'] = 'remove_member'
    return publish_user_event(UserEventType.TEAM_MEMBER_REMOVED, admin_user_id, data)

def publish_team_member_role_changed(admin_user_id, team_id, member_id, role: str):
    """Publishes team member role change event"""
    data = {
        'team_id': str(team_id),
        'member_id': str(member_id),
        'role': role,
        'action': 'change_role'
    }
    return publish_user_event(UserEventType.TEAM_MEMBER_ROLE_CHANGED, admin_user_id, data)

def publish_team_project_link(user_id, team_id, project_id, linked: bool):
    """Publishes team association or detachment from a project"""
    data = {
        'team_id': str(team_id),
        'project_id': str(project_id),
    }
    event_type = UserEventType.TEAM_ADDED_TO_PROJECT if linked else UserEventType.TEAM_REMOVED_FROM_PROJECT
    return publish_user_event(event_type, user_id, data)
