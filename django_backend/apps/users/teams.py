"""
Team store: teams, team membership roles and team-to-project associations.

Management operations need an OWNER or ADMIN membership on the team. Two
exemptions exist: a member may always remove themself, and the creator of a
team is enrolled as its OWNER without any prior membership. A team always
keeps at least one OWNER.
"""
import logging

from django.db import DatabaseError, transaction
from django.db.models import Q

from apps.common.db import first_or_none, get_or_none, same_id
from apps.common.errors import NotFound, PermissionDenied, ValidationFailed
from apps.projects import services as project_services
from apps.projects.models import ProjectTeam
from apps.users.models import TEAM_MANAGER_ROLES, Team, TeamMember, TeamRole
from apps.users.services import get_user

logger = logging.getLogger(__name__)


def require_team(team_id) -> Team:
    team = get_or_none(Team, pk=team_id)
    if team is None:
        raise NotFound("Team not found")
    return team


def get_team(team_id):
    return get_or_none(Team, pk=team_id)


def get_team_member(team_id, user_id):
    return first_or_none(TeamMember, team_id=team_id, user_id=user_id)


def can_manage_team(team_id, user_id) -> bool:
    member = get_team_member(team_id, user_id)
    return member is not None and TEAM_MANAGER_ROLES[TeamRole(member.role)]


def _owner_count(team_id) -> int:
    return TeamMember.objects.filter(team_id=team_id, role=TeamRole.OWNER).count()


def create_team(name: str, description: str, owner_id) -> Team:
    team = Team.objects.create(name=name, description=description or "", owner_id=owner_id)
    add_team_member(team.id, owner_id, TeamRole.OWNER, owner_id)
    logger.info(f"Team {team.id} created by {owner_id}")
    return team


def update_team(team_id, updates, updated_by) -> Team:
    team = require_team(team_id)
    if not can_manage_team(team.id, updated_by):
        raise PermissionDenied("Insufficient permissions to update team")

    if updates.get("name"):
        team.name = updates["name"]
    if "description" in updates:
        team.description = updates["description"] or ""
    team.save()
    return team


def delete_team(team_id, deleted_by) -> None:
    team = require_team(team_id)
    if not can_manage_team(team.id, deleted_by):
        raise PermissionDenied("Insufficient permissions to delete team")

    # Each removal stands alone; the last-owner rule does not apply here.
    for member in TeamMember.objects.filter(team_id=team.id):
        try:
            with transaction.atomic():
                member.delete()
        except DatabaseError:
            logger.exception(f"Failed to remove member {member.user_id} while deleting team {team.id}")

    for link in ProjectTeam.objects.filter(team_id=team.id):
        try:
            with transaction.atomic():
                link.delete()
        except DatabaseError:
            logger.exception(f"Failed to detach team {team.id} from project {link.project_id}")

    team.delete()
    logger.info(f"Team {team_id} deleted by {deleted_by}")


def list_user_teams(user_id):
    """Teams the user belongs to, each carrying the user's role as ``user_role``"""
    teams = []
    for membership in TeamMember.objects.filter(user_id=user_id).order_by("joined_at"):
        team = get_team(membership.team_id)
        if team is None:
            logger.warning(f"Team {membership.team_id} not found for membership {membership.id}")
            continue
        team.user_role = membership.role
        teams.append(team)
    return teams


# Membership

def add_team_member(team_id, user_id, role, added_by) -> TeamMember:
    if get_team_member(team_id, user_id) is not None:
        raise ValidationFailed("User is already a member of this team")

    get_user(user_id)

    bootstrapping_owner = same_id(added_by, user_id) and role == TeamRole.OWNER
    if not bootstrapping_owner and not can_manage_team(team_id, added_by):
        raise PermissionDenied("Insufficient permissions to add team members")

    member = TeamMember.objects.create(team_id=team_id, user_id=user_id, role=role)
    logger.info(f"User {user_id} added to team {team_id} as {role} by {added_by}")
    return member


def remove_team_member(team_id, user_id, removed_by) -> None:
    member = get_team_member(team_id, user_id)
    if member is None:
        raise ValidationFailed("User is not a member of this team")

    if not same_id(removed_by, user_id) and not can_manage_team(team_id, removed_by):
        raise PermissionDenied("Insufficient permissions to remove team members")

    if member.role == TeamRole.OWNER and _owner_count(team_id) <= 1:
        raise ValidationFailed("Cannot remove the last owner of the team")

    member.delete()
    logger.info(f"User {user_id} removed from team {team_id} by {removed_by}")


def update_team_member_role(team_id, user_id, role, updated_by) -> TeamMember:
    member = get_team_member(team_id, user_id)
    if member is None:
        raise ValidationFailed("User is not a member of this team")

    if not can_manage_team(team_id, updated_by):
        raise PermissionDenied("Insufficient permissions to update team member roles")

    if member.role == TeamRole.OWNER and role != TeamRole.OWNER and _owner_count(team_id) <= 1:
        raise ValidationFailed("Cannot remove the last owner of the team")

    member.role = role
    member.save(update_fields=["role"])
    logger.info(f"User {user_id} role in team {team_id} set to {role} by {updated_by}")
    return member


def list_team_members(team_id):
    """Members with their user attached as ``member_user``; dangling members are skipped"""
    members = []
    for member in TeamMember.objects.filter(team_id=team_id).order_by("joined_at"):
        try:
            member.member_user = get_user(member.user_id)
        except NotFound:
            logger.warning(f"User not found for team member {member.id} (userId: {member.user_id})")
            continue
        members.append(member)
    return members


# Project association

def get_project_team(project_id, team_id):
    return first_or_none(ProjectTeam, project_id=project_id, team_id=team_id)


def add_team_to_project(project_id, team_id, added_by) -> ProjectTeam:
    if get_project_team(project_id, team_id) is not None:
        raise ValidationFailed("Team is already associated with this project")

    team = require_team(team_id)
    project_services.get_project(project_id, added_by)
    if not can_manage_team(team.id, added_by):
        raise PermissionDenied("Insufficient permissions to add team to project")

    link = ProjectTeam.objects.create(project_id=project_id, team_id=team.id)
    logger.info(f"Team {team.id} associated with project {project_id} by {added_by}")
    return link


def remove_team_from_project(project_id, team_id, removed_by) -> None:
    link = get_project_team(project_id, team_id)
    if link is None:
        raise ValidationFailed("Team is not associated with this project")

    project_services.get_project(project_id, removed_by)
    if not can_manage_team(team_id, removed_by):
        raise PermissionDenied("Insufficient permissions to remove team from project")

    link.delete()
    logger.info(f"Team {team_id} detached from project {project_id} by {removed_by}")


def list_project_teams(project_id):
    """Project associations with the team attached as ``linked_team``"""
    links = []
    for link in ProjectTeam.objects.filter(project_id=project_id).order_by("added_at"):
        team = get_team(link.team_id)
        if team is None:
            logger.warning(f"Team {link.team_id} not found for project {project_id}")
            continue
        link.linked_team = team
        links.append(link)
    return links


def list_team_projects(team_id):
    return list(ProjectTeam.objects.filter(team_id=team_id).order_by("added_at"))


def search_teams(query: str, user_id=None):
    if not query:
        return []
    teams = Team.objects.filter(Q(name__icontains=query) | Q(description__icontains=query))
    if user_id is not None:
        teams = teams.filter(memberships__user_id=user_id)
    return list(teams.distinct())
