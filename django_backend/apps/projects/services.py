"""
Project store: project CRUD, direct membership and the project access rule.

A user can access a project when they own it, are a direct member, or belong
to a team associated with it. Every project-scoped operation elsewhere in the
code base (tasks, comments, workload) funnels its access check through
``get_project``.
"""
import logging
from typing import Any, Dict, Iterable

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.common.db import exists, first_or_none, get_or_none, same_id, unique_by_id
from apps.common.errors import (
    AccessDenied,
    NotFound,
    PermissionDenied,
    ServiceError,
    ValidationFailed,
)
from apps.projects.models import Project, ProjectMember, ProjectRole, ProjectStatus, ProjectTeam

logger = logging.getLogger(__name__)

User = get_user_model()

PROJECT_MANAGER_ROLES = {
    ProjectRole.OWNER: True,
    ProjectRole.ADMIN: True,
    ProjectRole.MEMBER: False,
    ProjectRole.VIEWER: False,
}


def user_has_project_access(user_id, project_id) -> bool:
    project = get_or_none(Project, pk=project_id)
    if project is None or user_id is None:
        return False
    if same_id(project.owner_id, user_id):
        return True
    if exists(ProjectMember, project_id=project.id, user_id=user_id):
        return True
    return exists(ProjectTeam, project_id=project.id, team__memberships__user_id=user_id)


def _require_project(project_id) -> Project:
    project = get_or_none(Project, pk=project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


def get_project(project_id, requester_id) -> Project:
    project = _require_project(project_id)
    if not user_has_project_access(requester_id, project.id):
        raise AccessDenied("Access denied")
    return project


def create_project(data: Dict[str, Any]) -> Project:
    project = Project.objects.create(
        name=data["name"],
        description=data.get("description"),
        owner_id=data["owner_id"],
        start_date=data.get("start_date") or timezone.now(),
        end_date=data.get("end_date"),
        status=data.get("status") or ProjectStatus.PLANNING,
    )
    logger.info(f"Project {project.id} created by {project.owner_id}")

    # The project stands even if the owner membership cannot be written.
    try:
        with transaction.atomic():
            add_project_member(project.id, project.owner_id, ProjectRole.OWNER, project.owner_id)
    except (ServiceError, DatabaseError):
        logger.exception(f"Failed to add owner {project.owner_id} as member of project {project.id}")

    return project


def create_project_with_team(data: Dict[str, Any], members: Iterable[Dict[str, Any]] = ()) -> Project:
    project = create_project(data)

    for member in members:
        try:
            with transaction.atomic():
                add_project_member(project.id, member["user_id"], member["role"], project.owner_id)
        except (ServiceError, DatabaseError):
            logger.exception(f"Failed to add member {member.get('user_id')} to project {project.id}")

    return project


def update_project(project_id, patch: Dict[str, Any], requester_id) -> Project:
    project = get_project(project_id, requester_id)

    if patch.get("name"):
        project.name = patch["name"]
    if "description" in patch:
        project.description = patch["description"]
    if patch.get("start_date"):
        project.start_date = patch["start_date"]
    if "end_date" in patch:
        project.end_date = patch["end_date"]
    if patch.get("status"):
        project.status = patch["status"]

    project.save()
    return project


def delete_project(project_id, requester_id) -> None:
    project = get_project(project_id, requester_id)
    if not same_id(project.owner_id, requester_id):
        raise PermissionDenied("Only project owner can delete the project")

    # Tasks, comments and workload entries are left in place.
    project.delete()
    logger.info(f"Project {project_id} deleted by {requester_id}")


def list_projects_for_user(user_id):
    owned = Project.objects.filter(owner_id=user_id)
    membered = Project.objects.filter(members__user_id=user_id)
    return unique_by_id([*owned, *membered])


def list_projects_for_user_including_teams(user_id):
    via_teams = Project.objects.filter(team_links__team__memberships__user_id=user_id)
    return unique_by_id([*list_projects_for_user(user_id), *via_teams])


# Direct membership

def get_project_member(project_id, user_id):
    return first_or_none(ProjectMember, project_id=project_id, user_id=user_id)


def can_manage_project_members(project_id, user_id) -> bool:
    project = get_or_none(Project, pk=project_id)
    if project is not None and same_id(project.owner_id, user_id):
        return True
    member = get_project_member(project_id, user_id)
    return member is not None and PROJECT_MANAGER_ROLES[ProjectRole(member.role)]


def add_project_member(project_id, user_id, role, added_by) -> ProjectMember:
    if get_project_member(project_id, user_id) is not None:
        raise ValidationFailed("User is already a member of this project")

    if get_or_none(User, pk=user_id) is None:
        raise NotFound("User not found")

    member = ProjectMember.objects.create(project_id=project_id, user_id=user_id, role=role)
    logger.info(f"User {user_id} added to project {project_id} as {role} by {added_by}")
    return member


def remove_project_member(project_id, user_id, removed_by) -> None:
    member = get_project_member(project_id, user_id)
    if member is None:
        raise ValidationFailed("User is not a member of this project")

    member.delete()
    logger.info(f"User {user_id} removed from project {project_id} by {removed_by}")


def update_project_member_role(project_id, user_id, role, updated_by) -> ProjectMember:
    member = get_project_member(project_id, user_id)
    if member is None:
        raise ValidationFailed("User is not a member of this project")

    member.role = role
    member.save(update_fields=["role"])
    logger.info(f"User {user_id} role in project {project_id} set to {role} by {updated_by}")
    return member


def list_project_members(project_id):
    """Members with their user attached. Members whose user vanished are skipped."""
    members = []
    for member in ProjectMember.objects.filter(project_id=project_id).order_by("joined_at"):
        user = get_or_none(User, pk=member.user_id)
        if user is None:
            logger.warning(f"User not found for member {member.id} (userId: {member.user_id})")
            continue
        member.member_user = user
        members.append(member)
    return members


def list_project_team_members(project_id, requester_id):
    """Access-checked membership listing used by the API"""
    get_project(project_id, requester_id)
    return list_project_members(project_id)
