"""
Task assignment with workload allocation.

Assigning a scheduled task (estimate plus start and end date) spreads its
estimated hours over every calendar day of its span, one workload entry per
day with hours. Capacity is a nominal 40 hours per week, prorated over the
period; utilization above 110% counts as over-allocation. Over-allocation is
reported, never refused.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from django.utils import timezone

from apps.common.errors import NotFound
from apps.tasks.models import Task
from apps.tasks.services import get_task, update_task
from apps.users.services import get_user
from apps.workload import services as workload_services
from apps.workload.services import UNKNOWN_USER, WEEKLY_CAPACITY_HOURS, as_date

logger = logging.getLogger(__name__)

OVER_ALLOCATION_THRESHOLD = 1.1
TAPER_FACTOR = 1.5
CENT = Decimal("0.01")

NEUTRAL_SCORE = 50
INCOMPLETE_SCHEDULE_REASON = "Task scheduling information incomplete"


class DistributionStrategy(Enum):
    EVEN = "even"
    FRONT_LOADED = "front_loaded"
    BACK_LOADED = "back_loaded"
    CUSTOM = "custom"


def day_of(value) -> date:
    """Calendar day of a task timestamp in the current time zone"""
    if isinstance(value, datetime) and timezone.is_aware(value):
        return timezone.localdate(value)
    return as_date(value)


def span_days(start, end) -> int:
    """Number of calendar days from start to end, both included"""
    return (day_of(end) - day_of(start)).days + 1


def period_capacity(days: int) -> float:
    return days / 7 * WEEKLY_CAPACITY_HOURS


# Distributions

def distribute_evenly(total: float, days: int) -> List[float]:
    return [total / days] * days


def _tapered(total: float, days: int, weight) -> List[float]:
    distribution = []
    remaining = total
    for i in range(days):
        hours = min(remaining, total / days * weight(i) * TAPER_FACTOR)
        distribution.append(hours)
        remaining -= hours

    if remaining > 0:
        extra = remaining / days
        distribution = [hours + extra for hours in distribution]
    return distribution


def distribute_front_loaded(total: float, days: int) -> List[float]:
    return _tapered(total, days, lambda i: (days - i) / days)


def distribute_back_loaded(total: float, days: int) -> List[float]:
    return _tapered(total, days, lambda i: (i + 1) / days)


def settle_to_cents(hours: Sequence[float], total) -> List[Decimal]:
    """
    Largest-remainder rounding: every day is floored to whole cents, then the
    missing cents go one each to the days with the largest remainders (earlier
    days first on ties). No day goes negative and the days add up to
    ``total`` rounded to cents.
    """
    if not hours:
        return []

    exact = [Decimal(str(h)) / CENT for h in hours]
    cents = [int(value.to_integral_value(rounding=ROUND_FLOOR)) for value in exact]
    target = int((Decimal(str(total)) / CENT).to_integral_value(rounding=ROUND_HALF_UP))

    by_remainder = sorted(range(len(cents)), key=lambda i: (-(exact[i] - cents[i]), i))
    missing = target - sum(cents)
    for i in by_remainder[:max(missing, 0)]:
        cents[i] += 1
    # Float noise can overshoot the target; take the excess back from the smallest remainders.
    for i in reversed(by_remainder):
        if missing >= 0:
            break
        if cents[i] > 0:
            cents[i] -= 1
            missing += 1

    return [Decimal(c) * CENT for c in cents]


DISTRIBUTORS = {
    DistributionStrategy.EVEN: distribute_evenly,
    DistributionStrategy.FRONT_LOADED: distribute_front_loaded,
    DistributionStrategy.BACK_LOADED: distribute_back_loaded,
    DistributionStrategy.CUSTOM: distribute_evenly,
}


def daily_hours(total, days: int, strategy: DistributionStrategy,
                custom_distribution: Optional[Sequence] = None) -> List[Decimal]:
    if days <= 0:
        return []
    if strategy is DistributionStrategy.CUSTOM and custom_distribution:
        return [Decimal(str(h)).quantize(CENT, rounding=ROUND_HALF_UP) for h in custom_distribution[:days]]
    return settle_to_cents(DISTRIBUTORS[strategy](float(total), days), total)


def create_workload_entries(task: Task, assignee_id, strategy: DistributionStrategy,
                            custom_distribution: Optional[Sequence] = None):
    if not task.has_schedule:
        return []

    first_day = day_of(task.start_date)
    days = span_days(task.start_date, task.end_date)
    entries = []
    for offset, hours in enumerate(daily_hours(task.estimated_hours, days, strategy, custom_distribution)):
        if hours <= 0:
            continue
        entries.append(workload_services.allocate_workload({
            "user_id": assignee_id,
            "project_id": task.project_id,
            "task_id": task.id,
            "date": first_day + timedelta(days=offset),
            "allocated_hours": hours,
        }))
    return entries


def assign_task_with_workload(task_id, assignee_id, requester_id,
                              strategy: DistributionStrategy = DistributionStrategy.EVEN,
                              custom_distribution: Optional[Sequence] = None,
                              auto_allocate: bool = True) -> Dict[str, Any]:
    task = update_task(task_id, {"assignee_id": assignee_id}, requester_id)

    entries = []
    if auto_allocate and task.has_schedule:
        entries = create_workload_entries(task, assignee_id, strategy, custom_distribution)
        logger.info(f"Task {task.id} assigned to {assignee_id} with {len(entries)} workload entries ({strategy.value})")

    return {"task": task, "workload_entries": entries}


# Capacity and suggestions

def get_user_capacity_info(user_id, start, end) -> Dict[str, Any]:
    try:
        user = get_user(user_id)
    except NotFound:
        return {
            "user_id": str(user_id),
            "user_name": UNKNOWN_USER,
            "total_capacity": 0.0,
            "allocated_hours": 0.0,
            "available_hours": 0.0,
            "utilization_rate": 0.0,
            "is_over_allocated": False,
        }

    summary = workload_services.get_user_workload_summary(user.id, day_of(start), day_of(end))
    total_capacity = period_capacity(span_days(start, end))
    allocated = summary["total_allocated_hours"]
    utilization = allocated / total_capacity if total_capacity > 0 else 0.0

    return {
        "user_id": str(user.id),
        "user_name": user.name,
        "total_capacity": total_capacity,
        "allocated_hours": allocated,
        "available_hours": max(0.0, total_capacity - allocated),
        "utilization_rate": utilization,
        "is_over_allocated": utilization > OVER_ALLOCATION_THRESHOLD,
    }


def recommendation_score(utilization: float) -> float:
    availability = max(0.0, 1 - utilization)
    balance = 1.0 if utilization < 0.8 else max(0.0, 1 - (utilization - 0.8) * 5)
    return (availability * 0.6 + balance * 0.4) * 100


def suggestion_reason(utilization: float) -> str:
    if utilization < 0.5:
        return "Low current workload, good availability"
    if utilization < 0.8:
        return "Moderate workload, good fit"
    if utilization < 1.0:
        return "High workload but still available"
    return "Over-allocated, may cause delays"


def _neutral_suggestions(candidate_ids) -> List[Dict[str, Any]]:
    suggestions = []
    for user_id in candidate_ids:
        try:
            user = get_user(user_id)
        except NotFound:
            logger.warning(f"Failed to get user info for {user_id}")
            continue
        suggestions.append({
            "user_id": str(user.id),
            "user_name": user.name,
            "current_capacity": 0.0,
            "available_capacity": float(WEEKLY_CAPACITY_HOURS),
            "utilization_rate": 0.0,
            "recommendation_score": NEUTRAL_SCORE,
            "reason": INCOMPLETE_SCHEDULE_REASON,
        })
    return sorted(suggestions, key=lambda s: s["user_name"].lower())


def get_assignment_suggestions(task_id, requester_id, candidate_ids) -> List[Dict[str, Any]]:
    task = get_task(task_id, requester_id)
    if not task.has_schedule:
        return _neutral_suggestions(candidate_ids)

    suggestions = []
    for user_id in candidate_ids:
        try:
            user = get_user(user_id)
        except NotFound:
            logger.warning(f"Failed to get capacity info for user {user_id}")
            continue

        capacity = get_user_capacity_info(user.id, task.start_date, task.end_date)
        utilization = capacity["utilization_rate"]
        suggestions.append({
            "user_id": str(user.id),
            "user_name": user.name,
            "current_capacity": capacity["allocated_hours"],
            "available_capacity": capacity["available_hours"],
            "utilization_rate": utilization,
            "recommendation_score": recommendation_score(utilization),
            "reason": suggestion_reason(utilization),
        })

    return sorted(suggestions, key=lambda s: s["recommendation_score"], reverse=True)


def get_workload_impact(task_id, assignee_id, requester_id) -> Dict[str, Any]:
    task = get_task(task_id, requester_id)
    if not task.has_schedule:
        return {
            "current_workload": 0.0,
            "new_workload": 0.0,
            "capacity_utilization": 0.0,
            "is_over_allocated": False,
            "affected_dates": [],
        }

    first_day = day_of(task.start_date)
    last_day = day_of(task.end_date)
    summary = workload_services.get_user_workload_summary(assignee_id, first_day, last_day)

    days = span_days(task.start_date, task.end_date)
    capacity = period_capacity(days)
    current = summary["total_allocated_hours"]
    new = current + float(task.estimated_hours)
    utilization = new / capacity if capacity > 0 else 0.0

    return {
        "current_workload": current,
        "new_workload": new,
        "capacity_utilization": utilization,
        "is_over_allocated": utilization > OVER_ALLOCATION_THRESHOLD,
        "affected_dates": [(first_day + timedelta(days=i)).isoformat() for i in range(max(days, 0))],
    }
