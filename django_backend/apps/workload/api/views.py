from django.db import transaction
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.errors import ValidationFailed
from apps.projects import services as project_services
from apps.tasks.api.serializers import TaskSerializer
from apps.tasks.producer import publish_task_assigned
from apps.tasks.services import get_task
from apps.workload import allocation, services
from apps.workload.celery_tasks import notify_over_allocation
from .serializers import (
    AllocateSerializer,
    AssignSerializer,
    CapacitySerializer,
    DateRangeSerializer,
    EntryUpdateSerializer,
    ImpactSerializer,
    SuggestionQuerySerializer,
    SuggestionSerializer,
    UserQuerySerializer,
    WorkloadEntrySerializer,
    WorkloadSummarySerializer,
)

# Import Kafka event publishers
from ..producer import (
    publish_workload_allocated,
    publish_workload_deleted,
    publish_workload_updated,
)

UUID_PATTERN = "[0-9a-fA-F-]+"


def _date_range(request):
    serializer = DateRangeSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data["start_date"], serializer.validated_data["end_date"]


def _query_ids(request):
    serializer = UserQuerySerializer(data={
        key: request.query_params[key]
        for key in ("user_id", "assignee_id", "project_id")
        if request.query_params.get(key)
    })
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _target_user(request):
    """The user named by ``?user_id``, defaulting to the caller"""
    return _query_ids(request).get("user_id") or request.user.id


def _schedule_over_allocation_check(user_id, entries):
    if not entries:
        return
    start = min(entry.date for entry in entries).isoformat()
    end = max(entry.date for entry in entries).isoformat()
    transaction.on_commit(lambda: notify_over_allocation.delay(str(user_id), start, end))


class WorkloadViewSet(viewsets.ViewSet):
    """
    Workload summaries and individual entries. Date ranges are given as
    ``start_date``/``end_date`` query parameters (inclusive ISO dates).
    """
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = UUID_PATTERN

    @action(detail=False, methods=["get"])
    def summary(self, request):
        start, end = _date_range(request)
        user_id = _target_user(request)
        summary = services.get_user_workload_summary(user_id, start, end)
        return Response(WorkloadSummarySerializer(summary).data)

    @action(detail=False, methods=["get"])
    def team(self, request):
        start, end = _date_range(request)
        project_id = _query_ids(request).get("project_id")
        if project_id:
            project = project_services.get_project(project_id, request.user.id)
            summaries = services.get_team_workload(project.id, start, end)
        else:
            summaries = services.get_all_projects_team_workload(start, end)
        return Response(WorkloadSummarySerializer(summaries, many=True).data)

    @action(detail=False, methods=["get"], url_path="team/daily")
    def team_daily(self, request):
        start, end = _date_range(request)
        project_id = _query_ids(request).get("project_id")
        if project_id:
            project = project_services.get_project(project_id, request.user.id)
            return Response(services.get_team_daily_workload(project.id, start, end))
        return Response(services.get_all_projects_daily_workload(start, end))

    @action(detail=False, methods=["post"])
    def allocate(self, request):
        serializer = AllocateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = services.allocate_workload(serializer.validated_data)
        publish_workload_allocated(request.user.id, [entry])
        _schedule_over_allocation_check(entry.user_id, [entry])
        return Response(WorkloadEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def distribution(self, request):
        user_id = _target_user(request)
        return Response(services.get_workload_distribution(user_id))

    @action(detail=False, methods=["get"])
    def entries(self, request):
        start, end = _date_range(request)
        user_id = _target_user(request)
        entries = services.get_workload_entries(user_id, start, end)
        return Response(WorkloadEntrySerializer(entries, many=True).data)

    @action(detail=False, methods=["get"], url_path=rf"task/(?P<task_id>{UUID_PATTERN})")
    def task_entries(self, request, task_id=None):
        task = get_task(task_id, request.user.id)
        if request.query_params.get("start_date") or request.query_params.get("end_date"):
            start, end = _date_range(request)
            entries = services.get_task_workload_entries(task.id, start, end)
        else:
            entries = services.get_task_entries(task.id)
        return Response(WorkloadEntrySerializer(entries, many=True).data)

    @action(detail=False, methods=["get"])
    def capacity(self, request):
        start, end = _date_range(request)
        user_id = _target_user(request)
        return Response(CapacitySerializer(allocation.get_user_capacity_info(user_id, start, end)).data)

    def retrieve(self, request, pk=None):
        return Response(WorkloadEntrySerializer(services.get_workload_entry(pk)).data)

    def partial_update(self, request, pk=None):
        serializer = EntryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        patch = serializer.validated_data

        if set(patch) == {"actual_hours"}:
            entry = services.update_workload_actual_hours(pk, patch["actual_hours"])
        else:
            entry = services.update_workload_entry(pk, patch)
        publish_workload_updated(request.user.id, entry)
        return Response(WorkloadEntrySerializer(entry).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        entry = services.get_workload_entry(pk)
        services.delete_workload_entry(entry.id)
        publish_workload_deleted(request.user.id, entry.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class TaskAllocationViewSet(viewsets.ViewSet):
    """Assignment of a task with automatic workload allocation, and its what-if views"""
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = UUID_PATTERN

    def _candidates(self, request, task):
        serializer = SuggestionQuerySerializer(data={"candidate_ids": request.query_params.getlist("candidate_ids")})
        serializer.is_valid(raise_exception=True)
        candidate_ids = serializer.validated_data.get("candidate_ids")
        if candidate_ids:
            return candidate_ids

        # Default pool: the project's owner and direct members.
        project = project_services.get_project(task.project_id, request.user.id)
        pool = [project.owner_id]
        pool.extend(member.user_id for member in project_services.list_project_members(project.id))
        return list(dict.fromkeys(pool))

    @action(detail=True, methods=["post"])
    def assign(self, request, pk=None):
        serializer = AssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = allocation.assign_task_with_workload(
            pk,
            data["assignee_id"],
            request.user.id,
            allocation.DistributionStrategy(data["strategy"]),
            data.get("custom_distribution"),
            data["auto_allocate"],
        )
        task, entries = result["task"], result["workload_entries"]

        publish_task_assigned(request.user.id, task.id, task.title, task.assignee_id, len(entries))
        if entries:
            publish_workload_allocated(request.user.id, entries)
            _schedule_over_allocation_check(task.assignee_id, entries)

        return Response({
            "task": TaskSerializer(task).data,
            "workload_entries": WorkloadEntrySerializer(entries, many=True).data,
        })

    @action(detail=True, methods=["get"])
    def suggestions(self, request, pk=None):
        task = get_task(pk, request.user.id)
        suggestions = allocation.get_assignment_suggestions(task.id, request.user.id, self._candidates(request, task))
        return Response(SuggestionSerializer(suggestions, many=True).data)

    @action(detail=True, methods=["get"])
    def impact(self, request, pk=None):
        assignee_id = _query_ids(request).get("assignee_id")
        if not assignee_id:
            raise ValidationFailed("assignee_id query parameter is required")
        impact = allocation.get_workload_impact(pk, assignee_id, request.user.id)
        return Response(ImpactSerializer(impact).data)
