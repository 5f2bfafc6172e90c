"""
User directory: lookup, creation and profile maintenance of directory users.

Users are keyed internally by a generated UUID and externally by the identity
provider's subject. Creation is idempotent per subject: the unique constraint
on ``external_subject`` acts as the conditional insert, and a conflicting
insert falls back to reading the row that won.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.common.db import get_or_none
from apps.common.errors import NotFound

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_USER_NAME = "New User"


def get_user(user_id) -> User:
    user = get_or_none(User, pk=user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_user_by_external_subject(external_subject: str):
    return User.objects.filter(external_subject=external_subject).first()


def create_user(external_subject: str, email: str, name: str) -> User:
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=external_subject,
                email=email,
                password=None,
                name=name,
                external_subject=external_subject,
            )
    except IntegrityError:
        existing = get_user_by_external_subject(external_subject)
        if existing is None:
            raise
        logger.info(f"User for subject {external_subject} already exists, returning {existing.id}")
        return existing

    logger.info(f"Created user {user.id} for subject {external_subject}")
    return user


def update_user(user_id, name: str = None, email: str = None) -> User:
    user = get_user(user_id)
    if name:
        user.name = name
    if email:
        user.email = email
    user.save()
    return user


def search_users(query: str):
    if not query:
        return []
    return list(
        User.objects.filter(Q(name__icontains=query) | Q(email__icontains=query)).order_by("name")
    )


def list_users():
    return list(User.objects.order_by("name"))


def get_or_create_by_external_subject(external_subject: str, email: str = None, name: str = None) -> User:
    user = get_user_by_external_subject(external_subject)
    if user is not None:
        return user
    return create_user(
        external_subject,
        email or f"user-{external_subject[:8]}@example.com",
        name or DEFAULT_USER_NAME,
    )


def sync_user(external_subject: str, email: str = None, name: str = None) -> User:
    """Create the user or refresh the name/email claimed by the identity provider"""
    user = get_user_by_external_subject(external_subject)
    if user is None:
        return get_or_create_by_external_subject(external_subject, email, name)

    if (email and user.email != email) or (name and user.name != name):
        user = update_user(user.id, name=name, email=email)
    return user
