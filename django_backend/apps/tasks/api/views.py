from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.errors import ValidationFailed
from apps.tasks import comments as comment_services
from apps.tasks import gantt, services
from apps.tasks.models import Task
from .filters import TaskFilter
from .serializers import (
    CommentContentSerializer,
    GanttItemSerializer,
    TaskCommentSerializer,
    TaskSerializer,
    TaskWriteSerializer,
    TimelineSerializer,
)

# Import Kafka event publishers
from ..producer import (
    publish_comment_added,
    publish_comment_deleted,
    publish_comment_updated,
    publish_task_created,
    publish_task_deleted,
    publish_task_rescheduled,
    publish_task_status_changed,
    publish_task_updated,
)

UUID_PATTERN = "[0-9a-fA-F-]+"


def _changes_for_event(data):
    return {key: str(value) if value is not None else None for key, value in data.items()}


class TaskViewSet(viewsets.GenericViewSet):
    """
    Tasks of projects the caller can access. Listing is always scoped to a
    single project given as ``?project_id``; ``mine`` lists the caller's
    assignments across projects.
    """
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = TaskFilter
    search_fields = ["title", "description"]
    ordering_fields = ["start_date", "end_date", "priority", "created_at", "updated_at"]
    ordering = ["-created_at"]
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        if self.action == "mine":
            return Task.objects.filter(assignee_id=self.request.user.id)

        project_id = self.request.query_params.get("project_id")
        if not project_id:
            raise ValidationFailed("project_id query parameter is required")
        return services.project_tasks_queryset(project_id, self.request.user.id)

    def list(self, request):
        tasks = self.filter_queryset(self.get_queryset())
        return Response(TaskSerializer(tasks, many=True).data)

    @action(detail=False, methods=["get"])
    def mine(self, request):
        tasks = self.filter_queryset(self.get_queryset())
        return Response(TaskSerializer(tasks, many=True).data)

    def create(self, request):
        serializer = TaskWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        task = services.create_task(serializer.validated_data, request.user.id)
        publish_task_created(request.user.id, task.id, task.title, task.project_id, task.priority)
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(TaskSerializer(services.get_task(pk, request.user.id)).data)

    def update(self, request, pk=None):
        serializer = TaskWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        patch = dict(serializer.validated_data)
        # A task never moves between projects.
        patch.pop("project_id", None)

        old_status = services.get_task(pk, request.user.id).status
        task = services.update_task(pk, patch, request.user.id)

        if old_status != task.status:
            publish_task_status_changed(request.user.id, task.id, task.title, old_status, task.status)
        publish_task_updated(request.user.id, task.id, task.title, _changes_for_event(patch))
        return Response(TaskSerializer(task).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        task = services.get_task(pk, request.user.id)
        services.delete_task(task.id, request.user.id)
        publish_task_deleted(request.user.id, task.id, task.title)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get", "post"])
    def comments(self, request, pk=None):
        if request.method == "GET":
            page = comment_services.list_task_comments_truncated(pk, request.user.id)
            return Response({
                "comments": TaskCommentSerializer(page["comments"], many=True).data,
                "has_more": page["has_more"],
            })

        serializer = CommentContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = comment_services.create_comment(pk, serializer.validated_data["content"], request.user.id)
        publish_comment_added(request.user.id, comment.task_id, comment.id)
        return Response(TaskCommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class CommentViewSet(viewsets.ViewSet):
    """A single comment; only its author may edit or delete it"""
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = UUID_PATTERN

    def retrieve(self, request, pk=None):
        comment = comment_services.get_comment(pk, request.user.id)
        return Response(TaskCommentSerializer(comment_services.with_author(comment)).data)

    def update(self, request, pk=None):
        serializer = CommentContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = comment_services.update_comment(pk, serializer.validated_data["content"], request.user.id)
        publish_comment_updated(request.user.id, comment.task_id, comment.id)
        return Response(TaskCommentSerializer(comment).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        comment = comment_services.get_comment(pk, request.user.id)
        comment_services.delete_comment(comment.id, request.user.id)
        publish_comment_deleted(request.user.id, comment.task_id, comment.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProjectGanttAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, project_id):
        items = gantt.get_project_gantt_data(project_id, request.user.id)
        return Response(GanttItemSerializer(items, many=True).data)


class MultiProjectGanttAPIView(APIView):
    """Gantt items of several projects; ``?project_ids`` is comma separated"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        raw = request.query_params.get("project_ids", "")
        project_ids = [pid.strip() for pid in raw.split(",") if pid.strip()]
        if not project_ids:
            raise ValidationFailed("project_ids query parameter is required")
        items = gantt.get_multi_project_gantt_data(project_ids, request.user.id)
        return Response(GanttItemSerializer(items, many=True).data)


class TaskTimelineAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, task_id):
        serializer = TimelineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        start = serializer.validated_data["start_date"]
        end = serializer.validated_data["end_date"]

        task = gantt.update_task_timeline(task_id, start, end, request.user.id)
        publish_task_rescheduled(request.user.id, task.id, task.title, start.isoformat(), end.isoformat())
        return Response(TaskSerializer(task).data)
