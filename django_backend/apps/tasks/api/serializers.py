from rest_framework import serializers

from apps.tasks.models import Task, TaskComment, TaskPriority, TaskStatus

COMMENT_MAX_LENGTH = 1000


class TaskSerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    assignee_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "project_id",
            "assignee_id",
            "status",
            "priority",
            "start_date",
            "end_date",
            "estimated_hours",
            "actual_hours",
            "dependencies",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TaskWriteSerializer(serializers.Serializer):
    """
    Input for create and partial update. On update only the keys sent by
    the client reach the service, so an explicit null clears a field.
    """
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_null=True, allow_blank=True, required=False)
    project_id = serializers.UUIDField()
    assignee_id = serializers.UUIDField(allow_null=True, required=False)
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=TaskPriority.choices, required=False)
    start_date = serializers.DateTimeField(allow_null=True, required=False)
    end_date = serializers.DateTimeField(allow_null=True, required=False)
    estimated_hours = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=0, allow_null=True, required=False
    )
    actual_hours = serializers.DecimalField(
        max_digits=6, decimal_places=2, min_value=0, allow_null=True, required=False
    )
    dependencies = serializers.ListField(child=serializers.UUIDField(), required=False)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs


class CommentAuthorSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()


class TaskCommentSerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    author = serializers.SerializerMethodField()

    class Meta:
        model = TaskComment
        fields = ["id", "task_id", "user_id", "content", "author", "created_at", "updated_at"]
        read_only_fields = fields

    def get_author(self, obj):
        author = getattr(obj, "author", None)
        return CommentAuthorSerializer(author).data if author is not None else None


class CommentContentSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False)

    def validate_content(self, value):
        trimmed = value.strip()
        if not trimmed:
            raise serializers.ValidationError("Comment content is required")
        if len(trimmed) > COMMENT_MAX_LENGTH:
            raise serializers.ValidationError(f"Comment content must be less than {COMMENT_MAX_LENGTH} characters")
        return value


class GanttItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    progress = serializers.IntegerField()
    dependencies = serializers.ListField(child=serializers.CharField())
    assignee = serializers.CharField()
    project_id = serializers.CharField()


class TimelineSerializer(serializers.Serializer):
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": "End date must not be before start date."})
        return attrs
