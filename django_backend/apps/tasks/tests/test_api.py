from datetime import timedelta

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from apps.common.kafka.config import TASK_EVENTS_TOPIC
from apps.common.testing import clear_published_events, make_access_token, make_user, published_events
from apps.projects import services as project_services
from apps.projects.models import ProjectRole
from apps.tasks import comments, services
from apps.tasks.models import Task, TaskPriority, TaskStatus


class TaskAPITestCase(APITestCase):

    def setUp(self):
        """Set up test data"""
        self.client = APIClient()
        self.owner = make_user("owner")
        self.member = make_user("member")
        self.outsider = make_user("outsider")
        self.project = project_services.create_project({"name": "Relaunch", "owner_id": self.owner.id})
        project_services.add_project_member(self.project.id, self.member.id, ProjectRole.MEMBER, self.owner.id)
        self.task = services.create_task({
            "project_id": self.project.id,
            "title": "Test Task",
            "priority": TaskPriority.HIGH,
        }, self.owner.id)
        self.authenticate()
        clear_published_events()

    def authenticate(self, user=None):
        """Helper method to authenticate a user"""
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_access_token(user or self.owner)}")

    def event_types(self):
        return [event["event_type"] for event in published_events(TASK_EVENTS_TOPIC)]


class TaskAPITest(TaskAPITestCase):
    """Test cases for Task API endpoints"""

    def test_task_list_requires_authentication(self):
        self.client.credentials()

        response = self.client.get("/api/tasks/", {"project_id": str(self.project.id)})

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_requires_project(self):
        response = self.client.get("/api/tasks/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_filter(self):
        services.create_task({"project_id": self.project.id, "title": "Low one", "priority": TaskPriority.LOW}, self.owner.id)

        response = self.client.get("/api/tasks/", {"project_id": str(self.project.id), "priority": "high"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["title"] for t in response.data], ["Test Task"])

    def test_search(self):
        services.create_task({"project_id": self.project.id, "title": "Checkout flow"}, self.owner.id)

        response = self.client.get("/api/tasks/", {"project_id": str(self.project.id), "search": "checkout"})

        self.assertEqual([t["title"] for t in response.data], ["Checkout flow"])

    def test_outsider_cannot_list(self):
        self.authenticate(self.outsider)

        response = self.client.get("/api/tasks/", {"project_id": str(self.project.id)})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_task(self):
        start = timezone.now()
        response = self.client.post("/api/tasks/", {
            "project_id": str(self.project.id),
            "title": "New API Task",
            "status": TaskStatus.TODO,
            "priority": TaskPriority.URGENT,
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=2)).isoformat(),
            "estimated_hours": "12.50",
            "dependencies": [str(self.task.id)],
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["estimated_hours"], 12.5)
        self.assertEqual(response.data["dependencies"], [str(self.task.id)])
        self.assertIn("task_created", self.event_types())

    def test_create_rejects_reversed_dates(self):
        response = self.client.post("/api/tasks/", {
            "project_id": str(self.project.id),
            "title": "Backwards",
            "start_date": "2030-01-10T00:00:00Z",
            "end_date": "2030-01-01T00:00:00Z",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_task_detail(self):
        response = self.client.get(f"/api/tasks/{self.task.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["title"], "Test Task")
        self.assertEqual(response.data["project_id"], str(self.project.id))

    def test_unknown_task(self):
        response = self.client.get("/api/tasks/4b0c3c0e-0000-4000-8000-000000000000/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Task not found"})

    def test_status_change_publishes_event(self):
        response = self.client.patch(f"/api/tasks/{self.task.id}/", {"status": "done"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "done")
        self.assertEqual(self.event_types(), ["task_status_changed", "task_updated"])

    def test_update_cannot_move_project(self):
        other = project_services.create_project({"name": "Other", "owner_id": self.owner.id})

        self.client.patch(f"/api/tasks/{self.task.id}/", {"project_id": str(other.id)}, format="json")

        self.assertEqual(Task.objects.get(pk=self.task.pk).project_id, self.project.id)

    def test_delete(self):
        response = self.client.delete(f"/api/tasks/{self.task.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.filter(pk=self.task.pk).exists())
        self.assertIn("task_deleted", self.event_types())

    def test_mine(self):
        services.update_task(self.task.id, {"assignee_id": self.member.id}, self.owner.id)
        self.authenticate(self.member)

        response = self.client.get("/api/tasks/mine/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["id"] for t in response.data], [str(self.task.id)])


class CommentAPITest(TaskAPITestCase):
    """Test cases for comment endpoints"""

    def test_add_and_list(self):
        url = f"/api/tasks/{self.task.id}/comments/"

        response = self.client.post(url, {"content": "  Ship it  "}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["content"], "Ship it")
        self.assertEqual(response.data["author"]["name"], "Owner")

        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["comments"]), 1)
        self.assertFalse(response.data["has_more"])
        self.assertIn("task_comment_added", self.event_types())

    def test_blank_comment_rejected(self):
        response = self.client.post(f"/api/tasks/{self.task.id}/comments/", {"content": "   "}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_overlong_comment_rejected(self):
        response = self.client.post(f"/api/tasks/{self.task.id}/comments/", {"content": "x" * 1001}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_author_edits(self):
        comment = comments.create_comment(self.task.id, "mine", self.member.id)

        response = self.client.put(f"/api/comments/{comment.id}/", {"content": "yours"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.authenticate(self.member)
        response = self.client.put(f"/api/comments/{comment.id}/", {"content": "edited"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["content"], "edited")
        self.assertEqual(self.event_types(), ["task_comment_updated"])

    def test_delete(self):
        comment = comments.create_comment(self.task.id, "bye", self.owner.id)

        response = self.client.delete(f"/api/comments/{comment.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIn("task_comment_deleted", self.event_types())


class GanttAPITest(TaskAPITestCase):
    """Test cases for timeline endpoints"""

    def test_project_gantt(self):
        response = self.client.get(f"/api/gantt/projects/{self.project.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]["name"], "Test Task")
        self.assertEqual(response.data[0]["assignee"], "Unassigned")

    def test_multi_project_requires_ids(self):
        response = self.client.get("/api/gantt/projects/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_multi_project(self):
        other = project_services.create_project({"name": "Other", "owner_id": self.owner.id})
        services.create_task({"project_id": other.id, "title": "Other task"}, self.owner.id)

        response = self.client.get("/api/gantt/projects/", {"project_ids": f"{self.project.id},{other.id}"})

        self.assertEqual({item["name"] for item in response.data}, {"Test Task", "Other task"})

    def test_timeline_violation(self):
        day = timezone.now()
        blocker = services.create_task({
            "project_id": self.project.id,
            "title": "Blocker",
            "start_date": day,
            "end_date": day + timedelta(days=5),
        }, self.owner.id)
        services.update_task(self.task.id, {"dependencies": [blocker.id]}, self.owner.id)

        response = self.client.put(f"/api/gantt/tasks/{self.task.id}/timeline/", {
            "start_date": (day + timedelta(days=1)).isoformat(),
            "end_date": (day + timedelta(days=3)).isoformat(),
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Timeline update would violate task dependencies"})

    def test_timeline_update(self):
        day = timezone.now()

        response = self.client.put(f"/api/gantt/tasks/{self.task.id}/timeline/", {
            "start_date": day.isoformat(),
            "end_date": (day + timedelta(days=3)).isoformat(),
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("task_rescheduled", self.event_types())
