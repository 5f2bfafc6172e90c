from rest_framework import serializers

from apps.workload.allocation import DistributionStrategy
from apps.workload.models import WorkloadEntry


class WorkloadEntrySerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    project_id = serializers.UUIDField(read_only=True)
    task_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = WorkloadEntry
        fields = [
            "id",
            "user_id",
            "project_id",
            "task_id",
            "date",
            "allocated_hours",
            "actual_hours",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AllocateSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    user_id = serializers.UUIDField()
    project_id = serializers.UUIDField()
    task_id = serializers.UUIDField()
    date = serializers.DateField(required=False)
    allocated_hours = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False)
    actual_hours = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=0, allow_null=True, required=False
    )


class EntryUpdateSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    project_id = serializers.UUIDField(required=False)
    task_id = serializers.UUIDField(required=False)
    date = serializers.DateField(required=False)
    allocated_hours = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0, required=False)
    actual_hours = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=0, allow_null=True, required=False
    )


class DateRangeSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class AssignSerializer(serializers.Serializer):
    assignee_id = serializers.UUIDField()
    strategy = serializers.ChoiceField(
        choices=[strategy.value for strategy in DistributionStrategy],
        default=DistributionStrategy.EVEN.value,
    )
    custom_distribution = serializers.ListField(
        child=serializers.DecimalField(max_digits=6, decimal_places=2, min_value=0),
        required=False,
        allow_empty=True,
    )
    auto_allocate = serializers.BooleanField(default=True)


class SuggestionQuerySerializer(serializers.Serializer):
    candidate_ids = serializers.ListField(child=serializers.UUIDField(), required=False)


class ProjectHoursSerializer(serializers.Serializer):
    project_id = serializers.CharField()
    project_name = serializers.CharField()
    allocated_hours = serializers.FloatField()
    actual_hours = serializers.FloatField()


class WorkloadSummarySerializer(serializers.Serializer):
    user_id = serializers.CharField()
    user_name = serializers.CharField()
    total_allocated_hours = serializers.FloatField()
    total_actual_hours = serializers.FloatField()
    projects = ProjectHoursSerializer(many=True)


class CapacitySerializer(serializers.Serializer):
    user_id = serializers.CharField()
    user_name = serializers.CharField()
    total_capacity = serializers.FloatField()
    allocated_hours = serializers.FloatField()
    available_hours = serializers.FloatField()
    utilization_rate = serializers.FloatField()
    is_over_allocated = serializers.BooleanField()


class SuggestionSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    user_name = serializers.CharField()
    current_capacity = serializers.FloatField()
    available_capacity = serializers.FloatField()
    utilization_rate = serializers.FloatField()
    recommendation_score = serializers.FloatField()
    reason = serializers.CharField()


class ImpactSerializer(serializers.Serializer):
    current_workload = serializers.FloatField()
    new_workload = serializers.FloatField()
    capacity_utilization = serializers.FloatField()
    is_over_allocated = serializers.BooleanField()
    affected_dates = serializers.ListField(child=serializers.CharField())


class UserQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    assignee_id = serializers.UUIDField(required=False)
    project_id = serializers.UUIDField(required=False)
