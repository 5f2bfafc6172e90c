import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class WorkloadEntry(models.Model):
    """One user's planned and actual effort on one task for one calendar day"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="workload_entries",
    )
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="workload_entries",
    )
    task = models.ForeignKey(
        "tasks.Task",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="workload_entries",
    )
    date = models.DateField()
    allocated_hours = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(0)]
    )
    actual_hours = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)]
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "date"], name="workload_user_date_idx"),
            models.Index(fields=["project", "date"], name="workload_project_date_idx"),
            models.Index(fields=["task", "date"], name="workload_task_date_idx"),
        ]
        ordering = ["date"]
        verbose_name_plural = "workload entries"

    def __str__(self) -> str:
        return f"{self.user_id} on {self.task_id} at {self.date}: {self.allocated_hours}h"
