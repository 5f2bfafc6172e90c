from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.users.models import Team, TeamMember, TeamRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "name", "external_subject", "created_at", "updated_at"]
        read_only_fields = fields


class UserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class SyncUserSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)


class TeamSerializer(serializers.ModelSerializer):
    owner_id = serializers.UUIDField(read_only=True)
    member_count = serializers.ReadOnlyField()
    user_role = serializers.SerializerMethodField()
    can_manage = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            "id",
            "name",
            "description",
            "owner_id",
            "member_count",
            "user_role",
            "can_manage",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _requester_id(self):
        request = self.context.get("request")
        if request and request.user.is_authenticated:
            return request.user.id
        return None

    def get_user_role(self, obj):
        if hasattr(obj, "user_role"):
            return obj.user_role
        member = obj.memberships.filter(user_id=self._requester_id()).first()
        return member.role if member else None

    def get_can_manage(self, obj):
        requester_id = self._requester_id()
        return requester_id is not None and obj.can_manage(requester_id)


class TeamWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    description = serializers.CharField(allow_blank=True, allow_null=True, required=False)


class TeamMemberSerializer(serializers.ModelSerializer):
    team_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user = serializers.SerializerMethodField()

    class Meta:
        model = TeamMember
        fields = ["id", "team_id", "user_id", "role", "joined_at", "user"]

    def get_user(self, obj):
        user = getattr(obj, "member_user", None)
        return {"id": str(user.id), "name": user.name, "email": user.email} if user is not None else None


class TeamMemberAddSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.ChoiceField(choices=TeamRole.choices, default=TeamRole.MEMBER)


class TeamMemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=TeamRole.choices)
