from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.common.errors import NotFound, ValidationFailed
from apps.common.testing import make_user
from apps.projects import services as project_services
from apps.tasks import services as task_services
from apps.workload import services
from apps.workload.models import WorkloadEntry


class WorkloadServiceTest(TestCase):
    """Test cases for workload entries and their aggregation"""

    def setUp(self):
        """Set up test data"""
        self.alice = make_user("alice", name="Alice")
        self.bob = make_user("bob", name="Bob")
        self.site = project_services.create_project({"name": "Site", "owner_id": self.alice.id})
        self.app = project_services.create_project({"name": "App", "owner_id": self.alice.id})
        self.site_task = task_services.create_task({"project_id": self.site.id, "title": "Hero"}, self.alice.id)
        self.app_task = task_services.create_task({"project_id": self.app.id, "title": "Login"}, self.alice.id)
        self.day = date(2030, 5, 6)

    def allocate(self, user, task, day, hours, **extra):
        return services.allocate_workload({
            "user_id": user.id,
            "project_id": task.project_id,
            "task_id": task.id,
            "date": day,
            "allocated_hours": Decimal(str(hours)),
            **extra,
        })

    def test_allocate_defaults(self):
        entry = services.allocate_workload({
            "user_id": self.alice.id,
            "project_id": self.site.id,
            "task_id": self.site_task.id,
        })

        self.assertEqual(entry.allocated_hours, services.DEFAULT_ALLOCATED_HOURS)
        self.assertEqual(entry.date, timezone.localdate())

    def test_allocate_upserts_by_id(self):
        entry = self.allocate(self.alice, self.site_task, self.day, 4)

        again = self.allocate(self.alice, self.site_task, self.day, 6, id=entry.id)

        self.assertEqual(again.id, entry.id)
        self.assertEqual(WorkloadEntry.objects.count(), 1)
        self.assertEqual(WorkloadEntry.objects.get().allocated_hours, Decimal("6.00"))

    def test_allocate_with_unknown_id_creates(self):
        self.allocate(self.alice, self.site_task, self.day, 4, id="4b0c3c0e-0000-4000-8000-000000000000")

        self.assertEqual(WorkloadEntry.objects.count(), 1)

    def test_user_summary_groups_by_project(self):
        self.allocate(self.alice, self.site_task, self.day, 4)
        self.allocate(self.alice, self.site_task, self.day + timedelta(days=1), 3, actual_hours=Decimal("2"))
        self.allocate(self.alice, self.app_task, self.day, 5)
        self.allocate(self.alice, self.app_task, self.day + timedelta(days=10), 99)

        summary = services.get_user_workload_summary(self.alice.id, self.day, self.day + timedelta(days=6))

        self.assertEqual(summary["user_name"], "Alice")
        self.assertEqual(summary["total_allocated_hours"], 12.0)
        self.assertEqual(summary["total_actual_hours"], 2.0)
        by_project = {p["project_name"]: p["allocated_hours"] for p in summary["projects"]}
        self.assertEqual(by_project, {"Site": 7.0, "App": 5.0})

    def test_unknown_user_summary(self):
        summary = services.get_user_workload_summary("4b0c3c0e-0000-4000-8000-000000000000", self.day, self.day)

        self.assertEqual(summary["user_name"], services.UNKNOWN_USER)
        self.assertEqual(summary["total_allocated_hours"], 0.0)
        self.assertEqual(summary["projects"], [])

    def test_unknown_project_name(self):
        WorkloadEntry.objects.create(
            user_id=self.alice.id,
            project_id="4b0c3c0e-0000-4000-8000-000000000000",
            task_id=self.site_task.id,
            date=self.day,
            allocated_hours=Decimal("1"),
        )

        summary = services.get_user_workload_summary(self.alice.id, self.day, self.day)

        self.assertEqual(summary["projects"][0]["project_name"], services.UNKNOWN_PROJECT)

    def test_team_workload(self):
        self.allocate(self.alice, self.site_task, self.day, 4)
        self.allocate(self.bob, self.site_task, self.day, 6)
        self.allocate(self.bob, self.app_task, self.day, 2)

        team = services.get_team_workload(self.site.id, self.day, self.day)
        everyone = services.get_all_projects_team_workload(self.day, self.day)

        self.assertEqual({s["user_name"]: s["total_allocated_hours"] for s in team}, {"Alice": 4.0, "Bob": 6.0})
        self.assertEqual({s["user_name"]: s["total_allocated_hours"] for s in everyone}, {"Alice": 4.0, "Bob": 8.0})

    def test_daily_workload(self):
        self.allocate(self.bob, self.site_task, self.day, 6)
        self.allocate(self.bob, self.app_task, self.day, 2)
        self.allocate(self.bob, self.site_task, self.day + timedelta(days=1), 1)

        daily = services.get_all_projects_daily_workload(self.day, self.day + timedelta(days=1))
        site_only = services.get_team_daily_workload(self.site.id, self.day, self.day)

        self.assertEqual(daily, {str(self.bob.id): {"2030-05-06": 8.0, "2030-05-07": 1.0}})
        self.assertEqual(site_only, {str(self.bob.id): {"2030-05-06": 6.0}})

    def test_distribution(self):
        today = timezone.localdate()
        self.allocate(self.alice, self.site_task, today - timedelta(days=3), 10)

        distribution = services.get_workload_distribution(self.alice.id)

        self.assertEqual(distribution["allocated"], 10.0)
        self.assertEqual(distribution["available"], 30.0)
        self.assertEqual(distribution["projects"][0]["percentage"], 25.0)

    def test_entries_queries(self):
        self.allocate(self.alice, self.site_task, self.day, 4)
        self.allocate(self.alice, self.site_task, self.day + timedelta(days=3), 4)

        self.assertEqual(len(services.get_workload_entries(self.alice.id, self.day, self.day)), 1)
        self.assertEqual(len(services.get_task_workload_entries(self.site_task.id, self.day, self.day + timedelta(days=3))), 2)
        self.assertEqual(len(services.get_task_entries(self.site_task.id)), 2)

    def test_update_and_delete_entry(self):
        entry = self.allocate(self.alice, self.site_task, self.day, 4)

        services.update_workload_actual_hours(entry.id, Decimal("3.5"))
        updated = services.update_workload_entry(entry.id, {"allocated_hours": Decimal("5"), "date": None})

        self.assertEqual(updated.actual_hours, Decimal("3.5"))
        self.assertEqual(updated.allocated_hours, Decimal("5"))
        self.assertEqual(updated.date, self.day)

        services.delete_workload_entry(entry.id)
        with self.assertRaisesMessage(NotFound, "Workload entry not found"):
            services.get_workload_entry(entry.id)

    def test_invalid_date(self):
        with self.assertRaises(ValidationFailed):
            services.as_date("next tuesday")
