"""
Test cases for hour distributions, task assignment with allocation,
capacity and assignment suggestions.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from apps.common.testing import make_user
from apps.projects import services as project_services
from apps.projects.models import ProjectRole
from apps.tasks import services as task_services
from apps.workload import allocation, services
from apps.workload.allocation import DistributionStrategy
from apps.workload.models import WorkloadEntry


def noon(day: date) -> datetime:
    return timezone.make_aware(datetime(day.year, day.month, day.day, 12, 0))


class DistributionTest(SimpleTestCase):
    """Test cases for the pure distribution helpers"""

    def test_even(self):
        hours = allocation.daily_hours(40, 5, DistributionStrategy.EVEN)

        self.assertEqual(hours, [Decimal("8.00")] * 5)

    def test_front_loaded(self):
        hours = allocation.daily_hours(40, 5, DistributionStrategy.FRONT_LOADED)

        self.assertEqual(hours, [Decimal(h) for h in ("12.80", "10.40", "8.00", "5.60", "3.20")])

    def test_back_loaded(self):
        hours = allocation.daily_hours(40, 5, DistributionStrategy.BACK_LOADED)

        self.assertEqual(hours, [Decimal(h) for h in ("3.20", "5.60", "8.00", "10.40", "12.80")])

    def test_distributions_sum_to_estimate(self):
        for strategy in (DistributionStrategy.EVEN, DistributionStrategy.FRONT_LOADED, DistributionStrategy.BACK_LOADED):
            for total, days in ((10, 3), (7.5, 4), (1, 7), (100, 1), (33.33, 9)):
                with self.subTest(strategy=strategy, total=total, days=days):
                    hours = allocation.daily_hours(total, days, strategy)
                    self.assertEqual(len(hours), days)
                    self.assertEqual(sum(hours), Decimal(str(total)).quantize(allocation.CENT))

    def test_long_spans_never_go_negative(self):
        for strategy in (DistributionStrategy.EVEN, DistributionStrategy.FRONT_LOADED, DistributionStrategy.BACK_LOADED):
            for total, days in ((1, 200), (10, 365), (0.05, 30), (2.5, 366)):
                with self.subTest(strategy=strategy, total=total, days=days):
                    hours = allocation.daily_hours(total, days, strategy)
                    self.assertTrue(all(h >= 0 for h in hours))
                    self.assertEqual(sum(hours), Decimal(str(total)).quantize(allocation.CENT))

    def test_cents_go_to_earliest_days_on_ties(self):
        hours = allocation.daily_hours(1, 200, DistributionStrategy.EVEN)

        self.assertEqual(hours[:100], [Decimal("0.01")] * 100)
        self.assertEqual(hours[100:], [Decimal("0.00")] * 100)

    def test_uneven_split_differs_by_at_most_one_cent(self):
        hours = allocation.daily_hours(7.5, 4, DistributionStrategy.EVEN)

        self.assertEqual(hours, [Decimal("1.88"), Decimal("1.88"), Decimal("1.87"), Decimal("1.87")])

    def test_custom_uses_given_hours(self):
        hours = allocation.daily_hours(40, 3, DistributionStrategy.CUSTOM, [1, 2.5, 3, 99])

        self.assertEqual(hours, [Decimal("1.00"), Decimal("2.50"), Decimal("3.00")])

    def test_custom_without_array_falls_back_to_even(self):
        hours = allocation.daily_hours(9, 3, DistributionStrategy.CUSTOM)

        self.assertEqual(hours, [Decimal("3.00")] * 3)

    def test_no_days(self):
        self.assertEqual(allocation.daily_hours(8, 0, DistributionStrategy.EVEN), [])

    def test_span_is_inclusive(self):
        self.assertEqual(allocation.span_days(date(2030, 3, 4), date(2030, 3, 8)), 5)
        self.assertEqual(allocation.span_days(date(2030, 3, 4), date(2030, 3, 4)), 1)

    def test_period_capacity(self):
        self.assertEqual(allocation.period_capacity(7), 40)
        self.assertAlmostEqual(allocation.period_capacity(5), 28.5714, places=3)

    def test_recommendation_score(self):
        self.assertEqual(allocation.recommendation_score(0.0), 100)
        self.assertAlmostEqual(allocation.recommendation_score(0.5), 70)
        self.assertAlmostEqual(allocation.recommendation_score(0.9), 26)
        self.assertEqual(allocation.recommendation_score(1.5), 0)

    def test_reason_bands(self):
        self.assertEqual(allocation.suggestion_reason(0.2), "Low current workload, good availability")
        self.assertEqual(allocation.suggestion_reason(0.6), "Moderate workload, good fit")
        self.assertEqual(allocation.suggestion_reason(0.9), "High workload but still available")
        self.assertEqual(allocation.suggestion_reason(1.2), "Over-allocated, may cause delays")


class AllocationTestCase(TestCase):

    def setUp(self):
        """Set up test data"""
        self.owner = make_user("owner", name="Olivia")
        self.dev = make_user("dev", name="Dev")
        self.busy = make_user("busy", name="Busy")
        self.project = project_services.create_project({"name": "Relaunch", "owner_id": self.owner.id})
        for user in (self.dev, self.busy):
            project_services.add_project_member(self.project.id, user.id, ProjectRole.MEMBER, self.owner.id)

        self.first_day = date(2030, 3, 4)
        self.last_day = self.first_day + timedelta(days=4)
        self.task = task_services.create_task({
            "project_id": self.project.id,
            "title": "Build checkout",
            "estimated_hours": Decimal("40"),
            "start_date": noon(self.first_day),
            "end_date": noon(self.last_day),
        }, self.owner.id)


class AssignTaskTest(AllocationTestCase):
    """Test cases for assignment with automatic allocation"""

    def test_even_forty_hours_over_five_days(self):
        result = allocation.assign_task_with_workload(self.task.id, self.dev.id, self.owner.id)

        self.assertEqual(result["task"].assignee_id, self.dev.id)
        entries = result["workload_entries"]
        self.assertEqual(len(entries), 5)
        self.assertEqual([e.date for e in entries], [self.first_day + timedelta(days=i) for i in range(5)])
        self.assertTrue(all(e.allocated_hours == Decimal("8.00") for e in entries))
        self.assertTrue(all(e.user_id == self.dev.id and e.project_id == self.project.id for e in entries))

    def test_front_loaded_entries(self):
        result = allocation.assign_task_with_workload(
            self.task.id, self.dev.id, self.owner.id, DistributionStrategy.FRONT_LOADED
        )

        hours = [e.allocated_hours for e in result["workload_entries"]]
        self.assertEqual(hours[0], Decimal("12.80"))
        self.assertEqual(sum(hours), Decimal("40.00"))

    def assign_long_task(self, estimate, days, strategy=DistributionStrategy.EVEN):
        task = task_services.create_task({
            "project_id": self.project.id,
            "title": f"{estimate}h over {days} days",
            "estimated_hours": Decimal(estimate),
            "start_date": noon(self.first_day),
            "end_date": noon(self.first_day + timedelta(days=days - 1)),
        }, self.owner.id)
        allocation.assign_task_with_workload(task.id, self.dev.id, self.owner.id, strategy)
        return list(WorkloadEntry.objects.filter(task_id=task.id))

    def test_persisted_entries_add_up_over_long_spans(self):
        for strategy in (DistributionStrategy.EVEN, DistributionStrategy.FRONT_LOADED, DistributionStrategy.BACK_LOADED):
            for estimate, days in (("10", 365), ("1", 200)):
                with self.subTest(strategy=strategy, estimate=estimate, days=days):
                    entries = self.assign_long_task(estimate, days, strategy)
                    self.assertTrue(all(e.allocated_hours > 0 for e in entries))
                    self.assertEqual(sum(e.allocated_hours for e in entries), Decimal(estimate))

    def test_long_span_round_trips_through_summary(self):
        self.assign_long_task("10", 365)

        summary = services.get_user_workload_summary(
            self.dev.id, self.first_day, self.first_day + timedelta(days=364)
        )

        self.assertAlmostEqual(summary["total_allocated_hours"], 10.0)

    def test_zero_hour_days_get_no_entry(self):
        result = allocation.assign_task_with_workload(
            self.task.id, self.dev.id, self.owner.id, DistributionStrategy.CUSTOM, [10, 0, 10, 0, 20]
        )

        self.assertEqual(len(result["workload_entries"]), 3)

    def test_without_auto_allocate(self):
        result = allocation.assign_task_with_workload(
            self.task.id, self.dev.id, self.owner.id, auto_allocate=False
        )

        self.assertEqual(result["workload_entries"], [])
        self.assertFalse(WorkloadEntry.objects.exists())

    def test_unscheduled_task_allocates_nothing(self):
        task = task_services.create_task({"project_id": self.project.id, "title": "Someday"}, self.owner.id)

        result = allocation.assign_task_with_workload(task.id, self.dev.id, self.owner.id)

        self.assertEqual(result["task"].assignee_id, self.dev.id)
        self.assertEqual(result["workload_entries"], [])

    def test_assignment_then_summary_round_trip(self):
        allocation.assign_task_with_workload(self.task.id, self.dev.id, self.owner.id)

        summary = services.get_user_workload_summary(self.dev.id, self.first_day, self.last_day)

        self.assertEqual(summary["total_allocated_hours"], 40.0)
        self.assertEqual(summary["projects"][0]["project_name"], "Relaunch")


class CapacityTest(AllocationTestCase):
    """Test cases for capacity and over-allocation"""

    def test_free_user(self):
        info = allocation.get_user_capacity_info(self.dev.id, self.first_day, self.last_day)

        self.assertAlmostEqual(info["total_capacity"], 5 / 7 * 40)
        self.assertEqual(info["allocated_hours"], 0.0)
        self.assertEqual(info["utilization_rate"], 0.0)
        self.assertFalse(info["is_over_allocated"])

    def test_utilization_grows_with_allocation(self):
        rates = []
        for hours in (0, 10, 15, 15):
            if hours:
                services.allocate_workload({
                    "user_id": self.dev.id,
                    "project_id": self.project.id,
                    "task_id": self.task.id,
                    "date": self.first_day,
                    "allocated_hours": Decimal(hours),
                })
            info = allocation.get_user_capacity_info(self.dev.id, self.first_day, self.last_day)
            rates.append(info["utilization_rate"])
            self.assertEqual(info["is_over_allocated"], info["utilization_rate"] > allocation.OVER_ALLOCATION_THRESHOLD)

        self.assertEqual(rates, sorted(rates))
        self.assertLess(rates[0], rates[-1])

    def test_forty_hours_in_five_days_is_over_allocated(self):
        allocation.assign_task_with_workload(self.task.id, self.dev.id, self.owner.id)

        info = allocation.get_user_capacity_info(self.dev.id, self.first_day, self.last_day)

        self.assertAlmostEqual(info["utilization_rate"], 40 / (5 / 7 * 40))
        self.assertTrue(info["is_over_allocated"])
        self.assertEqual(info["available_hours"], 0.0)

    def test_unknown_user(self):
        info = allocation.get_user_capacity_info("4b0c3c0e-0000-4000-8000-000000000000", self.first_day, self.last_day)

        self.assertEqual(info["user_name"], "Unknown User")
        self.assertEqual(info["total_capacity"], 0.0)


class SuggestionTest(AllocationTestCase):
    """Test cases for assignment suggestions and impact"""

    def test_suggestions_prefer_free_users(self):
        other = task_services.create_task({
            "project_id": self.project.id,
            "title": "Other work",
            "estimated_hours": Decimal("20"),
            "start_date": noon(self.first_day),
            "end_date": noon(self.last_day),
        }, self.owner.id)
        allocation.assign_task_with_workload(other.id, self.busy.id, self.owner.id)

        suggestions = allocation.get_assignment_suggestions(
            self.task.id, self.owner.id, [self.busy.id, self.dev.id, "4b0c3c0e-0000-4000-8000-000000000000"]
        )

        self.assertEqual([s["user_name"] for s in suggestions], ["Dev", "Busy"])
        self.assertEqual(suggestions[0]["recommendation_score"], 100)
        self.assertEqual(suggestions[0]["reason"], "Low current workload, good availability")
        self.assertAlmostEqual(suggestions[1]["current_capacity"], 20.0)

    def test_unscheduled_task_gives_neutral_suggestions(self):
        task = task_services.create_task({"project_id": self.project.id, "title": "Someday"}, self.owner.id)

        suggestions = allocation.get_assignment_suggestions(task.id, self.owner.id, [self.dev.id, self.busy.id])

        self.assertEqual([s["user_name"] for s in suggestions], ["Busy", "Dev"])
        self.assertTrue(all(s["recommendation_score"] == allocation.NEUTRAL_SCORE for s in suggestions))
        self.assertTrue(all(s["available_capacity"] == 40.0 for s in suggestions))

    def test_impact(self):
        impact = allocation.get_workload_impact(self.task.id, self.dev.id, self.owner.id)

        self.assertEqual(impact["current_workload"], 0.0)
        self.assertEqual(impact["new_workload"], 40.0)
        self.assertAlmostEqual(impact["capacity_utilization"], 1.4)
        self.assertTrue(impact["is_over_allocated"])
        self.assertEqual(impact["affected_dates"][0], "2030-03-04")
        self.assertEqual(len(impact["affected_dates"]), 5)

    def test_impact_of_unscheduled_task(self):
        task = task_services.create_task({"project_id": self.project.id, "title": "Someday"}, self.owner.id)

        impact = allocation.get_workload_impact(task.id, self.dev.id, self.owner.id)

        self.assertEqual(impact["affected_dates"], [])
        self.assertFalse(impact["is_over_allocated"])
