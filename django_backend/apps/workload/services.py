"""
Workload records and their aggregation.

Hours are stored as decimals with two places; every aggregate produced here
is a float. Date ranges are inclusive on both ends.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.common.db import get_or_none
from apps.common.errors import NotFound, ValidationFailed
from apps.projects.models import Project
from apps.users.services import get_user
from apps.workload.models import WorkloadEntry

logger = logging.getLogger(__name__)

DEFAULT_ALLOCATED_HOURS = 8
WEEKLY_CAPACITY_HOURS = 40
DISTRIBUTION_WINDOW_DAYS = 30

UNKNOWN_USER = "Unknown User"
UNKNOWN_PROJECT = "Unknown Project"

ENTRY_FIELDS = ("user_id", "project_id", "task_id", "date", "allocated_hours", "actual_hours")


def as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ValidationFailed(f"Invalid date: {value}")
    return parsed


def _hours(value) -> float:
    return float(value) if value is not None else 0.0


def _entries_between(start, end, **lookup):
    return WorkloadEntry.objects.filter(
        date__gte=as_date(start),
        date__lte=as_date(end),
        **lookup
    ).order_by("date", "created_at")


def _user_name(user_id) -> str:
    try:
        return get_user(user_id).name
    except NotFound:
        logger.warning(f"User {user_id} not found while summarizing workload")
        return UNKNOWN_USER


def _project_name(project_id) -> str:
    project = get_or_none(Project, pk=project_id)
    if project is None:
        logger.warning(f"Project {project_id} not found while summarizing workload")
        return UNKNOWN_PROJECT
    return project.name


def _project_breakdown(entries) -> List[Dict[str, Any]]:
    """Per-project allocated/actual totals in order of first appearance"""
    projects = OrderedDict()
    for entry in entries:
        key = str(entry.project_id)
        if key not in projects:
            projects[key] = {
                "project_id": key,
                "project_name": _project_name(entry.project_id),
                "allocated_hours": 0.0,
                "actual_hours": 0.0,
            }
        projects[key]["allocated_hours"] += _hours(entry.allocated_hours)
        projects[key]["actual_hours"] += _hours(entry.actual_hours)
    return list(projects.values())


def _summary(user_id, user_name, projects) -> Dict[str, Any]:
    return {
        "user_id": str(user_id),
        "user_name": user_name,
        "total_allocated_hours": sum((p["allocated_hours"] for p in projects), 0.0),
        "total_actual_hours": sum((p["actual_hours"] for p in projects), 0.0),
        "projects": projects,
    }


def get_user_workload_summary(user_id, start, end) -> Dict[str, Any]:
    try:
        user = get_user(user_id)
    except NotFound:
        return _summary(user_id, UNKNOWN_USER, [])

    entries = _entries_between(start, end, user_id=user.id)
    return _summary(user.id, user.name, _project_breakdown(entries))


def _summaries_by_user(entries) -> List[Dict[str, Any]]:
    by_user = OrderedDict()
    for entry in entries:
        by_user.setdefault(str(entry.user_id), []).append(entry)

    return [
        _summary(user_id, _user_name(user_id), _project_breakdown(user_entries))
        for user_id, user_entries in by_user.items()
    ]


def get_team_workload(project_id, start, end) -> List[Dict[str, Any]]:
    """One summary per user with entries on the project in the range"""
    return _summaries_by_user(_entries_between(start, end, project_id=project_id))


def get_all_projects_team_workload(start, end) -> List[Dict[str, Any]]:
    return _summaries_by_user(_entries_between(start, end))


def _daily_totals(entries) -> Dict[str, Dict[str, float]]:
    daily = {}
    for entry in entries:
        per_user = daily.setdefault(str(entry.user_id), {})
        day = entry.date.isoformat()
        per_user[day] = per_user.get(day, 0.0) + _hours(entry.allocated_hours)
    return daily


def get_team_daily_workload(project_id, start, end) -> Dict[str, Dict[str, float]]:
    return _daily_totals(_entries_between(start, end, project_id=project_id))


def get_all_projects_daily_workload(start, end) -> Dict[str, Dict[str, float]]:
    return _daily_totals(_entries_between(start, end))


def allocate_workload(data: Dict[str, Any]) -> WorkloadEntry:
    """
    Upsert a workload entry.

    An ``id`` naming an existing entry overwrites that entry; otherwise a new
    entry is created. Hours default to a full working day and the date to
    today.
    """
    values = {
        "user_id": data["user_id"],
        "project_id": data["project_id"],
        "task_id": data["task_id"],
        "date": as_date(data.get("date") or timezone.localdate()),
        "allocated_hours": data.get("allocated_hours") or DEFAULT_ALLOCATED_HOURS,
        "actual_hours": data.get("actual_hours"),
    }

    entry = get_or_none(WorkloadEntry, pk=data["id"]) if data.get("id") else None
    if entry is None:
        entry = WorkloadEntry.objects.create(**values)
        logger.info(f"Allocated {entry.allocated_hours}h to {entry.user_id} on {entry.date} (task {entry.task_id})")
        return entry

    for field, value in values.items():
        setattr(entry, field, value)
    entry.save()
    logger.info(f"Reallocated workload entry {entry.id}")
    return entry


def get_workload_distribution(user_id) -> Dict[str, Any]:
    """Last 30 days of allocation as a share of one 40 hour week, per project"""
    end = timezone.localdate()
    start = end - timedelta(days=DISTRIBUTION_WINDOW_DAYS)
    summary = get_user_workload_summary(user_id, start, end)

    allocated = summary["total_allocated_hours"]
    return {
        "user_id": str(user_id),
        "total_capacity": WEEKLY_CAPACITY_HOURS,
        "allocated": allocated,
        "available": max(0, WEEKLY_CAPACITY_HOURS - allocated),
        "projects": [
            {
                "project_id": project["project_id"],
                "name": project["project_name"],
                "percentage": project["allocated_hours"] / WEEKLY_CAPACITY_HOURS * 100,
                "hours": project["allocated_hours"],
            }
            for project in summary["projects"]
        ],
    }


def get_workload_entries(user_id, start, end) -> List[WorkloadEntry]:
    return list(_entries_between(start, end, user_id=user_id))


def get_task_workload_entries(task_id, start, end) -> List[WorkloadEntry]:
    return list(_entries_between(start, end, task_id=task_id))


def get_task_entries(task_id) -> List[WorkloadEntry]:
    return list(WorkloadEntry.objects.filter(task_id=task_id).order_by("date"))


def _require_entry(entry_id) -> WorkloadEntry:
    entry = get_or_none(WorkloadEntry, pk=entry_id)
    if entry is None:
        raise NotFound("Workload entry not found")
    return entry


def get_workload_entry(entry_id) -> WorkloadEntry:
    return _require_entry(entry_id)


def update_workload_actual_hours(entry_id, actual_hours) -> WorkloadEntry:
    entry = _require_entry(entry_id)
    entry.actual_hours = actual_hours
    entry.save(update_fields=["actual_hours", "updated_at"])
    return entry


def update_workload_entry(entry_id, patch: Dict[str, Any]) -> WorkloadEntry:
    entry = _require_entry(entry_id)
    for field in ENTRY_FIELDS:
        if field not in patch:
            continue
        value = patch[field]
        if field == "date":
            if not value:
                continue
            value = as_date(value)
        setattr(entry, field, value)
    entry.save()
    return entry


def delete_workload_entry(entry_id) -> None:
    _require_entry(entry_id).delete()
    logger.info(f"Deleted workload entry {entry_id}")
