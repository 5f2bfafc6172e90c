"""
Timeline (Gantt) view of project tasks and dependency-aware rescheduling.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List

from django.db import DatabaseError
from django.utils import timezone

from apps.common.errors import NotFound, ServiceError, ValidationFailed
from apps.tasks.models import Task, TaskStatus
from apps.tasks.services import find_task, list_project_tasks, update_task
from apps.users.services import get_user

logger = logging.getLogger(__name__)

TASK_PROGRESS = {
    TaskStatus.TODO: 0,
    TaskStatus.IN_PROGRESS: 50,
    TaskStatus.IN_REVIEW: 80,
    TaskStatus.DONE: 100,
    TaskStatus.BLOCKED: 25,
}

UNASSIGNED = "Unassigned"
UNKNOWN_USER = "Unknown User"

DEFAULT_DURATION = timedelta(weeks=1)


def task_progress(task: Task) -> int:
    return TASK_PROGRESS[TaskStatus(task.status)]


def _assignee_name(task: Task) -> str:
    if task.assignee_id is None:
        return UNASSIGNED
    try:
        return get_user(task.assignee_id).name
    except NotFound:
        logger.warning(f"Assignee {task.assignee_id} not found for task {task.id}")
        return UNKNOWN_USER


def _gantt_item(task: Task) -> Dict[str, Any]:
    now = timezone.now()
    return {
        "id": str(task.id),
        "name": task.title,
        "start": task.start_date or now,
        "end": task.end_date or now + DEFAULT_DURATION,
        "progress": task_progress(task),
        "dependencies": list(task.dependencies or []),
        "assignee": _assignee_name(task),
        "project_id": str(task.project_id),
    }


def get_project_gantt_data(project_id, requester_id) -> List[Dict[str, Any]]:
    return [_gantt_item(task) for task in list_project_tasks(project_id, requester_id)]


def get_multi_project_gantt_data(project_ids, requester_id) -> List[Dict[str, Any]]:
    items = []
    for project_id in project_ids:
        try:
            items.extend(get_project_gantt_data(project_id, requester_id))
        except (ServiceError, DatabaseError):
            logger.exception(f"Error getting Gantt data for project {project_id}")
    return items


def dependencies_allow_start(task_id, new_start) -> bool:
    """
    True when no dependency of the task ends after ``new_start``.

    Dependencies that no longer exist count as satisfied. Anything else that
    goes wrong, including a missing task, counts as a violation.
    """
    if timezone.is_naive(new_start):
        new_start = timezone.make_aware(new_start)

    try:
        task = find_task(task_id)
        if task is None:
            logger.warning(f"Cannot validate dependencies of missing task {task_id}")
            return False

        for dep_id in task.dependencies or []:
            dependency = find_task(dep_id)
            if dependency is None:
                continue
            if dependency.end_date and dependency.end_date > new_start:
                return False
        return True
    except DatabaseError:
        logger.exception(f"Error validating dependencies of task {task_id}")
        return False


def update_task_timeline(task_id, start, end, requester_id) -> Task:
    if not dependencies_allow_start(task_id, start):
        raise ValidationFailed("Timeline update would violate task dependencies")

    return update_task(task_id, {"start_date": start, "end_date": end}, requester_id)
