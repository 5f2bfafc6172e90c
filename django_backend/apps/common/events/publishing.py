import logging
from enum import Enum
from typing import Dict, Any, Optional

from .base import EventPayload, EventPublisherFactory

logger = logging.getLogger(__name__)


def publish_domain_event(
    topic: str,
    event_type: Enum,
    user_id,
    data: Dict[str, Any],
    key: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish a domain event through the configured publisher.

    Publishing is fire-and-forget: a broken broker is logged and reported
    through the return value, it never fails the calling request.

    Args:
        topic: Destination topic
        event_type: Enum member whose value is the event name
        user_id: ID of the user performing the action
        data: Event-specific data
        key: Partition key, defaults to the acting user
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    payload = EventPayload(
        event_type=event_type.value,
        user_id=user_id,
        data=data,
        metadata=metadata
    )

    try:
        publisher = EventPublisherFactory.get_publisher()
        success = publisher.publish(
            topic=topic,
            event=payload,
            key=str(key or user_id)
        )
    except Exception:
        logger.exception(f"Error publishing event {event_type.value} to {topic}")
        return False

    if not success:
        logger.error(f"Failed to publish event: {event_type.value}")
    return success
