from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.projects.models import Project, ProjectMember, ProjectRole, ProjectStatus, ProjectTeam

User = get_user_model()


class ProjectSerializer(serializers.ModelSerializer):
    owner_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "name",
            "description",
            "owner_id",
            "start_date",
            "end_date",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InitialMemberSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=ProjectRole.choices, default=ProjectRole.MEMBER)


class ProjectWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_null=True, allow_blank=True, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(allow_null=True, required=False)
    status = serializers.ChoiceField(choices=ProjectStatus.choices, required=False)
    members = InitialMemberSerializer(many=True, required=False)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class MemberUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "name", "email"]


class ProjectMemberSerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = ProjectMember
        fields = ["id", "project_id", "user_id", "role", "joined_at", "user"]

    def get_user(self, obj):
        user = getattr(obj, "member_user", None)
        return MemberUserSerializer(user).data if user is not None else None


class MemberAddSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=ProjectRole.choices, default=ProjectRole.MEMBER)


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ProjectRole.choices)


class ProjectTeamSerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    team_id = serializers.UUIDField(read_only=True)
    team = serializers.SerializerMethodField()

    class Meta:
        model = ProjectTeam
        fields = ["id", "project_id", "team_id", "added_at", "team"]

    def get_team(self, obj):
        team = getattr(obj, "linked_team", None)
        if team is None:
            return None
        return {"id": str(team.id), "name": team.name, "description": team.description}
