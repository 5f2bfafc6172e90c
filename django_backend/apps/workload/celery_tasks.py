from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils import timezone

from apps.workload.allocation import get_user_capacity_info
from apps.workload.models import WorkloadEntry
from apps.workload.services import as_date

User = get_user_model()

SWEEP_WINDOW_DAYS = 7


def _notify(capacity, start, end):
    user_email = capacity.get("email")
    if not user_email:
        return 0
    subject = "[Workload] Over-allocation warning"
    body = (
        f"Hello {capacity['user_name']},\n\n"
        f"You have {capacity['allocated_hours']:.1f}h allocated between {start} and {end}, "
        f"against a capacity of {capacity['total_capacity']:.1f}h "
        f"({capacity['utilization_rate'] * 100:.0f}% utilization).\n\n"
        f"Review your plan: {settings.FRONTEND_URL}/workload\n"
    )
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [user_email], fail_silently=True)
    return 1


def _capacity_with_email(user_id, start, end):
    capacity = get_user_capacity_info(user_id, start, end)
    user = User.objects.filter(pk=user_id).first()
    capacity["email"] = user.email if user else None
    return capacity


@shared_task
def notify_over_allocation(user_id, start, end):
    """
    Email the user when their allocation between start and end (ISO dates)
    exceeds the over-allocation threshold. Returns the number of emails sent.
    """
    start, end = as_date(start), as_date(end)
    capacity = _capacity_with_email(user_id, start, end)
    if not capacity["is_over_allocated"]:
        return 0
    return _notify(capacity, start, end)


@shared_task
def check_over_allocation():
    """
    Daily sweep over the coming week: every user with planned work who is
    over-allocated gets a warning. Returns the number of over-allocated users.
    """
    start = timezone.localdate()
    end = start + timedelta(days=SWEEP_WINDOW_DAYS - 1)

    user_ids = (
        WorkloadEntry.objects.filter(date__gte=start, date__lte=end)
        .order_by()
        .values_list("user_id", flat=True)
        .distinct()
    )

    over_allocated = 0
    for user_id in user_ids:
        capacity = _capacity_with_email(user_id, start, end)
        if capacity["is_over_allocated"]:
            over_allocated += 1
            _notify(capacity, start, end)

    return over_allocated
