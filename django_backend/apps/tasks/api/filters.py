import django_filters

from apps.tasks.models import Task, TaskPriority, TaskStatus


class TaskFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=TaskStatus.choices)
    priority = django_filters.MultipleChoiceFilter(choices=TaskPriority.choices)
    assignee = django_filters.UUIDFilter(field_name="assignee_id")
    starts_after = django_filters.IsoDateTimeFilter(field_name="start_date", lookup_expr="gte")
    ends_before = django_filters.IsoDateTimeFilter(field_name="end_date", lookup_expr="lte")

    class Meta:
        model = Task
        fields = ["status", "priority", "assignee"]
