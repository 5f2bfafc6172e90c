import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Directory user. The identity provider's subject is the stable external
    key; ``username`` mirrors it so Django's auth machinery keeps working.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150, blank=True, default="")
    external_subject = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name or self.username


class TeamRole(models.TextChoices):
    OWNER = "owner", "Owner"
    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


TEAM_MANAGER_ROLES = {
    TeamRole.OWNER: True,
    TeamRole.ADMIN: True,
    TeamRole.MEMBER: False,
}


class Team(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="teams_owned",
        help_text="Creator of the team",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def is_member(self, user_id):
        """Check if user is a member of the team"""
        return self.memberships.filter(user_id=user_id).exists()

    def can_manage(self, user_id):
        """Check if user holds a managing role (owner or admin) on the team"""
        member = self.memberships.filter(user_id=user_id).first()
        return member is not None and TEAM_MANAGER_ROLES[TeamRole(member.role)]

    @property
    def member_count(self):
        """Get the number of members in the team"""
        return self.memberships.count()


class TeamMember(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey(
        Team,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="team_memberships",
    )
    role = models.CharField(max_length=16, choices=TeamRole.choices, default=TeamRole.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="uq_team_user")
        ]
        indexes = [models.Index(fields=["user"], name="team_member_user_idx")]

    def __str__(self):
        return f"{self.user_id} in {self.team_id} ({self.role})"
