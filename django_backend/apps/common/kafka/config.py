import json
import logging

from django.conf import settings
from kafka import KafkaProducer
from kafka.errors import KafkaError

logger = logging.getLogger(__name__)


USER_ACTIVITIES_TOPIC = "user-activities"
PROJECT_EVENTS_TOPIC = "project-events"
TASK_EVENTS_TOPIC = "task-events"
WORKLOAD_EVENTS_TOPIC = "workload-events"


class KafkaConnection:
    _producer = None

    @classmethod
    def get_producer(cls):
        if cls._producer is None:
            try:
                cls._producer = KafkaProducer(
                    bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS.split(","),
                    value_serializer=lambda x: json.dumps(x, default=str).encode("utf-8"),
                    key_serializer=lambda x: x.encode("utf-8") if x else None,
                    retries=3,
                    retry_backoff_ms=300,
                    request_timeout_ms=30000,
                    acks="all",
                )
                logger.info("Kafka producer initialized successfully")
            except KafkaError as e:
                logger.error(f"Failed to initialize Kafka producer: {e}")
                cls._producer = None
        return cls._producer

    @classmethod
    def close_producer(cls):
        if cls._producer:
            cls._producer.close()
            cls._producer = None
