from .events import (
    WorkloadEventType,
    publish_workload_event,
    publish_workload_allocated,
    publish_workload_updated,
    publish_workload_deleted,
)

__all__ = [
    "WorkloadEventType",
    "publish_workload_event",
    "publish_workload_allocated",
    "publish_workload_updated",
    "publish_workload_deleted",
]
