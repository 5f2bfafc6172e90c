from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.common.kafka.config import USER_ACTIVITIES_TOPIC
from apps.common.testing import clear_published_events, make_access_token, make_user, published_events
from apps.projects import services as project_services
from apps.users import teams
from apps.users.models import TeamRole


class AuthenticatedTestCase(APITestCase):

    def setUp(self):
        """Set up test data"""
        self.client = APIClient()
        self.user = make_user("alice", name="Alice Smith")
        self.authenticate()
        clear_published_events()

    def authenticate(self, user=None):
        """Helper method to authenticate a user"""
        if user is None:
            user = self.user
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_access_token(user)}")


class UserAPITest(AuthenticatedTestCase):
    """Test cases for the directory endpoints"""

    def test_me(self):
        response = self.client.get("/api/users/me/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["name"], "Alice Smith")
        self.assertEqual(response.data["external_subject"], "sub-alice")

    def test_update_me_publishes_event(self):
        response = self.client.patch("/api/users/me/", {"name": "Alice S."}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["name"], "Alice S.")
        event_types = [event["event_type"] for event in published_events(USER_ACTIVITIES_TOPIC)]
        self.assertIn("user_profile_updated", event_types)

    def test_search_requires_query(self):
        response = self.client.get("/api/users/search/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Search query is required"})

    def test_search(self):
        make_user("bob", name="Bob Jones")

        response = self.client.get("/api/users/search/", {"q": "bob"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u["name"] for u in response.data], ["Bob Jones"])

    def test_sync_user_refreshes_profile(self):
        response = self.client.post("/api/auth/sync-user/", {"email": "alice@corp.example"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "alice@corp.example")
        self.assertEqual(response.data["id"], str(self.user.id))


class TeamAPITest(AuthenticatedTestCase):
    """Test cases for the team endpoints"""

    def setUp(self):
        super().setUp()
        self.bob = make_user("bob")
        self.team = teams.create_team("Platform", "", self.user.id)

    def test_create_team(self):
        response = self.client.post("/api/teams/", {"name": "Design", "description": "UX"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "Design")
        self.assertEqual(response.data["member_count"], 1)
        self.assertTrue(response.data["can_manage"])

    def test_list_teams(self):
        response = self.client.get("/api/teams/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["name"] for t in response.data], ["Platform"])
        self.assertEqual(response.data[0]["user_role"], TeamRole.OWNER)

    def test_retrieve_requires_membership(self):
        self.authenticate(self.bob)

        response = self.client.get(f"/api/teams/{self.team.id}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_team(self):
        response = self.client.get("/api/teams/4b0c3c0e-0000-4000-8000-000000000000/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Team not found"})

    def test_add_and_list_members(self):
        response = self.client.post(
            f"/api/teams/{self.team.id}/members/",
            {"user_id": str(self.bob.id), "role": "member"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f"/api/teams/{self.team.id}/members/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual({m["user"]["name"] for m in response.data}, {"Alice Smith", "Bob"})

    def test_removing_last_owner_is_rejected(self):
        response = self.client.delete(f"/api/teams/{self.team.id}/members/{self.user.id}/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Cannot remove the last owner of the team"})

    def test_change_member_role(self):
        teams.add_team_member(self.team.id, self.bob.id, TeamRole.MEMBER, self.user.id)

        response = self.client.put(
            f"/api/teams/{self.team.id}/members/{self.bob.id}/role/", {"role": "admin"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], "admin")

    def test_link_team_to_project(self):
        project = project_services.create_project({"name": "Relaunch", "owner_id": self.user.id})

        response = self.client.post(f"/api/teams/{self.team.id}/projects/{project.id}/")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f"/api/teams/{self.team.id}/projects/")
        self.assertEqual(len(response.data), 1)

        response = self.client.delete(f"/api/teams/{self.team.id}/projects/{project.id}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_team_by_member_forbidden(self):
        teams.add_team_member(self.team.id, self.bob.id, TeamRole.MEMBER, self.user.id)
        self.authenticate(self.bob)

        response = self.client.delete(f"/api/teams/{self.team.id}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_team(self):
        response = self.client.delete(f"/api/teams/{self.team.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIsNone(teams.get_team(self.team.id))
