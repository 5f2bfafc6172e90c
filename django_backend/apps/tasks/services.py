"""
Task store. Tasks are always reached through their project: every scoped
operation resolves the owning project with ``projects.services.get_project``,
which raises NotFound/AccessDenied for the requester.
"""
import logging
from typing import Any, Dict

from apps.common.db import get_or_none
from apps.common.errors import NotFound
from apps.projects.services import get_project
from apps.tasks.models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

# Applied whenever present in a patch, so an explicit None clears them.
NULLABLE_FIELDS = (
    "description",
    "assignee_id",
    "start_date",
    "end_date",
    "estimated_hours",
    "actual_hours",
)

# Applied only when truthy.
REQUIRED_FIELDS = ("title", "status", "priority")


def find_task(task_id):
    """Unscoped lookup for internal validation paths"""
    return get_or_none(Task, pk=task_id)


def _require_task(task_id) -> Task:
    task = find_task(task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


def project_tasks_queryset(project_id, requester_id):
    """Unevaluated queryset of a project's tasks, for filtering and ordering"""
    project = get_project(project_id, requester_id)
    return Task.objects.filter(project_id=project.id)


def list_project_tasks(project_id, requester_id):
    return list(project_tasks_queryset(project_id, requester_id))


def create_task(data: Dict[str, Any], requester_id) -> Task:
    project = get_project(data["project_id"], requester_id)

    task = Task.objects.create(
        title=data["title"],
        description=data.get("description"),
        project_id=project.id,
        assignee_id=data.get("assignee_id"),
        status=data.get("status") or TaskStatus.TODO,
        priority=data.get("priority") or TaskPriority.MEDIUM,
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
        estimated_hours=data.get("estimated_hours"),
        actual_hours=data.get("actual_hours"),
        dependencies=[str(dep) for dep in data.get("dependencies") or []],
    )
    logger.info(f"Task {task.id} created in project {project.id} by {requester_id}")
    return task


def get_task(task_id, requester_id) -> Task:
    task = _require_task(task_id)
    get_project(task.project_id, requester_id)
    return task


def update_task(task_id, patch: Dict[str, Any], requester_id) -> Task:
    task = get_task(task_id, requester_id)

    for field in REQUIRED_FIELDS:
        if patch.get(field):
            setattr(task, field, patch[field])
    for field in NULLABLE_FIELDS:
        if field in patch:
            setattr(task, field, patch[field])
    if patch.get("dependencies") is not None:
        task.dependencies = [str(dep) for dep in patch["dependencies"]]

    task.save()
    return task


def delete_task(task_id, requester_id) -> None:
    task = get_task(task_id, requester_id)
    task.delete()
    logger.info(f"Task {task_id} deleted by {requester_id}")


def list_assigned_tasks(user_id):
    return list(Task.objects.filter(assignee_id=user_id))
