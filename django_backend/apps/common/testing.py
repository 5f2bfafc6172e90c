"""Helpers shared by the test suites of every app"""
from datetime import timedelta

import jwt
from django.conf import settings
from django.utils import timezone

from apps.common.events import EventPublisherFactory
from apps.users import services as user_services


def make_user(slug: str, name: str = None, email: str = None):
    return user_services.create_user(
        f"sub-{slug}",
        email or f"{slug}@example.com",
        name or slug.title(),
    )


def make_access_token(user=None, lifetime=timedelta(hours=1), **claims) -> str:
    """Sign an access token the way the identity provider would in tests"""
    payload = {
        "iss": settings.OIDC_ISSUER_URL,
        "client_id": settings.OIDC_CLIENT_ID,
        "token_use": "access",
        "exp": timezone.now() + lifetime,
    }
    if user is not None:
        payload.update({"sub": user.external_subject, "email": user.email, "name": user.name})
    payload.update(claims)
    return jwt.encode(payload, settings.OIDC_SHARED_SECRET, algorithm=settings.OIDC_ALGORITHM)


def published_events(topic: str):
    return EventPublisherFactory.get_publisher().get_events(topic)


def clear_published_events():
    EventPublisherFactory.get_publisher().clear_events()
