from .events import (
    UserEventType,
    publish_user_event,
    publish_user_synced,
    publish_user_profile_updated,
    publish_team_created,
    publish_team_updated,
    publish_team_deleted,
    publish_team_member_added,
    publish_team_member_removed,
    publish_team_member_role_changed,
    publish_team_project_link,
)

__all__ = [
    "UserEventType",
    "publish_user_event",
    "publish_user_synced",
    "publish_user_profile_updated",
    "publish_team_created",
    "publish_team_updated",
    "publish_team_deleted",
    "publish_team_member_added",
    "publish_team_member_removed",
    "publish_team_member_role_changed",
    "publish_team_project_link",
]
