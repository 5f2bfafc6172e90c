from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.errors import AccessDenied, ValidationFailed
from apps.projects.api.serializers import ProjectTeamSerializer
from apps.users import services, teams
from apps.users.models import TeamRole
from .serializers import (
    SyncUserSerializer,
    TeamMemberAddSerializer,
    TeamMemberRoleSerializer,
    TeamMemberSerializer,
    TeamSerializer,
    TeamWriteSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

# Import Kafka event publishers
from ..producer import (
    publish_team_created,
    publish_team_deleted,
    publish_team_member_added,
    publish_team_member_removed,
    publish_team_member_role_changed,
    publish_team_project_link,
    publish_team_updated,
    publish_user_profile_updated,
    publish_user_synced,
)

UUID_PATTERN = "[0-9a-fA-F-]+"


class SyncUserAPIView(APIView):
    """Refresh the caller's directory record from the identity provider's claims"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = SyncUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        claims = request.auth if isinstance(request.auth, dict) else {}
        email = serializer.validated_data.get("email") or claims.get("email")
        name = serializer.validated_data.get("name") or claims.get("name")

        user = services.sync_user(request.user.external_subject, email, name)
        publish_user_synced(user.id, user.email, user.name)
        return Response(UserSerializer(user).data)


class MeAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=["get", "put", "patch"])
    def me(self, request):
        if request.method == "GET":
            return Response(UserSerializer(request.user).data)

        serializer = UserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changes = serializer.validated_data

        user = services.update_user(request.user.id, name=changes.get("name"), email=changes.get("email"))
        publish_user_profile_updated(user.id, dict(changes))
        return Response(UserSerializer(user).data)

    @action(detail=False, methods=["get"])
    def search(self, request):
        query = request.query_params.get("q", "").strip()
        if not query:
            raise ValidationFailed("Search query is required")
        return Response(UserSerializer(services.search_users(query), many=True).data)


class TeamViewSet(viewsets.ViewSet):
    """Teams the caller belongs to, their members and project associations"""
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = UUID_PATTERN

    def _serialize(self, team):
        return TeamSerializer(team, context={"request": self.request}).data

    def _visible_team(self, team_id, user_id):
        team = teams.require_team(team_id)
        if teams.get_team_member(team.id, user_id) is None:
            raise AccessDenied("Access denied")
        return team

    def list(self, request):
        return Response(TeamSerializer(teams.list_user_teams(request.user.id), many=True, context={"request": request}).data)

    def create(self, request):
        serializer = TeamWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        team = teams.create_team(data["name"], data.get("description"), request.user.id)
        publish_team_created(request.user.id, team.id, team.name, team.description)
        return Response(self._serialize(team), status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(self._serialize(self._visible_team(pk, request.user.id)))

    def update(self, request, pk=None):
        serializer = TeamWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        team = teams.update_team(pk, serializer.validated_data, request.user.id)
        publish_team_updated(request.user.id, team.id, team.name, dict(serializer.validated_data))
        return Response(self._serialize(team))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        team = teams.require_team(pk)
        teams.delete_team(team.id, request.user.id)
        publish_team_deleted(request.user.id, team.id, team.name)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def search(self, request):
        query = request.query_params.get("q", "").strip()
        if not query:
            raise ValidationFailed("Search query is required")
        results = teams.search_teams(query, request.user.id)
        return Response(TeamSerializer(results, many=True, context={"request": request}).data)

    # Membership

    @action(detail=True, methods=["get", "post"])
    def members(self, request, pk=None):
        if request.method == "GET":
            team = self._visible_team(pk, request.user.id)
            return Response(TeamMemberSerializer(teams.list_team_members(team.id), many=True).data)

        team = teams.require_team(pk)
        serializer = TeamMemberAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]
        role = serializer.validated_data["role"]

        member = teams.add_team_member(team.id, user_id, TeamRole(role), request.user.id)
        publish_team_member_added(request.user.id, team.id, user_id, role)
        return Response(TeamMemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=rf"members/(?P<user_id>{UUID_PATTERN})")
    def remove_member(self, request, pk=None, user_id=None):
        team = teams.require_team(pk)
        teams.remove_team_member(team.id, user_id, request.user.id)
        publish_team_member_removed(request.user.id, team.id, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"], url_path=rf"members/(?P<user_id>{UUID_PATTERN})/role")
    def member_role(self, request, pk=None, user_id=None):
        team = teams.require_team(pk)
        serializer = TeamMemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data["role"]

        member = teams.update_team_member_role(team.id, user_id, TeamRole(role), request.user.id)
        publish_team_member_role_changed(request.user.id, team.id, user_id, role)
        return Response(TeamMemberSerializer(member).data)

    # Project association

    @action(detail=True, methods=["get"])
    def projects(self, request, pk=None):
        team = self._visible_team(pk, request.user.id)
        return Response(ProjectTeamSerializer(teams.list_team_projects(team.id), many=True).data)

    @action(detail=True, methods=["post", "delete"], url_path=rf"projects/(?P<project_id>{UUID_PATTERN})")
    def project_link(self, request, pk=None, project_id=None):
        if request.method == "DELETE":
            teams.remove_team_from_project(project_id, pk, request.user.id)
            publish_team_project_link(request.user.id, pk, project_id, linked=False)
            return Response(status=status.HTTP_204_NO_CONTENT)

        link = teams.add_team_to_project(project_id, pk, request.user.id)
        publish_team_project_link(request.user.id, pk, project_id, linked=True)
        return Response(ProjectTeamSerializer(link).data, status=status.HTTP_201_CREATED)
