from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.errors import PermissionDenied
from apps.projects import services
from apps.projects.producer import (
    publish_project_created,
    publish_project_deleted,
    publish_project_member_added,
    publish_project_member_removed,
    publish_project_member_role_changed,
    publish_project_updated,
)
from apps.users import teams as team_services
from .serializers import (
    MemberAddSerializer,
    MemberRoleSerializer,
    ProjectMemberSerializer,
    ProjectSerializer,
    ProjectTeamSerializer,
    ProjectWriteSerializer,
)


class ProjectViewSet(viewsets.ViewSet):
    """
    Projects visible to the caller: owned, directly membered, or reachable
    through one of the caller's teams.
    """
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = "[0-9a-fA-F-]+"

    def list(self, request):
        projects = services.list_projects_for_user_including_teams(request.user.id)
        return Response(ProjectSerializer(projects, many=True).data)

    def create(self, request):
        serializer = ProjectWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        members = data.pop("members", [])
        data["owner_id"] = request.user.id

        project = services.create_project_with_team(data, members)
        publish_project_created(request.user.id, project.id, project.name, project.status)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        project = services.get_project(pk, request.user.id)
        return Response(ProjectSerializer(project).data)

    def update(self, request, pk=None):
        serializer = ProjectWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        patch = dict(serializer.validated_data)
        patch.pop("members", None)

        project = services.update_project(pk, patch, request.user.id)
        publish_project_updated(request.user.id, project.id, project.name, {k: str(v) for k, v in patch.items()})
        return Response(ProjectSerializer(project).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        project = services.get_project(pk, request.user.id)
        services.delete_project(project.id, request.user.id)
        publish_project_deleted(request.user.id, project.id, project.name)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # Membership

    def _require_manager(self, project_id, user_id):
        services.get_project(project_id, user_id)
        if not services.can_manage_project_members(project_id, user_id):
            raise PermissionDenied("Insufficient permissions to manage project members")

    @action(detail=True, methods=["get", "post"])
    def members(self, request, pk=None):
        if request.method == "GET":
            members = services.list_project_team_members(pk, request.user.id)
            return Response(ProjectMemberSerializer(members, many=True).data)

        self._require_manager(pk, request.user.id)
        serializer = MemberAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]
        role = serializer.validated_data["role"]

        member = services.add_project_member(pk, user_id, role, request.user.id)
        publish_project_member_added(request.user.id, pk, user_id, role)
        return Response(ProjectMemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"members/(?P<user_id>[0-9a-fA-F-]+)")
    def remove_member(self, request, pk=None, user_id=None):
        self._require_manager(pk, request.user.id)
        services.remove_project_member(pk, user_id, request.user.id)
        publish_project_member_removed(request.user.id, pk, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"], url_path=r"members/(?P<user_id>[0-9a-fA-F-]+)/role")
    def member_role(self, request, pk=None, user_id=None):
        self._require_manager(pk, request.user.id)
        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data["role"]

        member = services.update_project_member_role(pk, user_id, role, request.user.id)
        publish_project_member_role_changed(request.user.id, pk, user_id, role)
        return Response(ProjectMemberSerializer(member).data)

    @action(detail=True, methods=["get"])
    def teams(self, request, pk=None):
        services.get_project(pk, request.user.id)
        links = team_services.list_project_teams(pk)
        return Response(ProjectTeamSerializer(links, many=True).data)
