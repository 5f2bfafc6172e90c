from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import TaskAllocationViewSet, WorkloadViewSet

router = DefaultRouter()
router.register(r"workload", WorkloadViewSet, basename="workload")
router.register(r"allocations/tasks", TaskAllocationViewSet, basename="task-allocations")

urlpatterns = [
    path("", include(router.urls)),
]
