from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    CommentViewSet,
    MultiProjectGanttAPIView,
    ProjectGanttAPIView,
    TaskTimelineAPIView,
    TaskViewSet,
)

router = DefaultRouter()
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"comments", CommentViewSet, basename="comments")

urlpatterns = [
    path("", include(router.urls)),
    path("gantt/projects/", MultiProjectGanttAPIView.as_view(), name="gantt-multi-project"),
    path("gantt/projects/<uuid:project_id>/", ProjectGanttAPIView.as_view(), name="gantt-project"),
    path("gantt/tasks/<uuid:task_id>/timeline/", TaskTimelineAPIView.as_view(), name="gantt-task-timeline"),
]
