import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

PUBLISHER_CLASSES = {
    'kafka': 'apps.common.events.kafka_publisher.KafkaEventPublisher',
    'memory': 'apps.common.events.memory_publisher.MemoryEventPublisher',
}


class EventPayload:
    """
    Envelope shared by every domain event.

    ``event_id`` lets consumers drop redeliveries; ``source`` names the
    emitting service so several backends can share a topic.
    """

    def __init__(self, event_type: str, user_id: Optional[str], timestamp: datetime = None,
                 data: Dict[str, Any] = None, metadata: Dict[str, Any] = None):
        self.event_id = str(uuid.uuid4())
        self.event_type = event_type
        self.user_id = str(user_id) if user_id is not None else None
        self.timestamp = timestamp or timezone.now()
        self.data = data or {}
        self.metadata = {'source': getattr(settings, 'EVENT_SOURCE', 'workload-planner'), **(metadata or {})}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type,
            'user_id': self.user_id,
            'timestamp': self.timestamp.isoformat(),
            'data': self.data,
            'metadata': self.metadata
        }


class EventPublisher(ABC):

    @abstractmethod
    def publish(self, topic: str, event: EventPayload, key: str = None) -> bool:
        """Publish one event, returning True once the transport accepted it"""

    @abstractmethod
    def close(self):
        """Release the transport"""


class EventPublisherFactory:
    """Process-wide publisher selected by ``EVENT_PUBLISHER_TYPE``"""

    _publisher = None

    @classmethod
    def get_publisher(cls) -> EventPublisher:
        if cls._publisher is None:
            publisher_type = getattr(settings, 'EVENT_PUBLISHER_TYPE', 'kafka')
            if publisher_type not in PUBLISHER_CLASSES:
                raise ValueError(f"Unknown event publisher type: {publisher_type}")
            cls._publisher = import_string(PUBLISHER_CLASSES[publisher_type])()

        return cls._publisher

    @classmethod
    def reset_publisher(cls):
        if cls._publisher:
            cls._publisher.close()
            cls._publisher = None
