from __future__ import annotations

import json
import logging
from typing import Any

import pika
from pika.exceptions import AMQPError

from tutoring_scheduler.core.config import settings

logger = logging.getLogger(__name__)


def publish_booking_event(event_type: str, event_data: dict[str, Any]) -> bool:
    """
    Publish a booking lifecycle event to RabbitMQ.

    Called after the change is committed. Delivery is best-effort: a broker
    outage is logged and never fails the booking operation.

    Args:
        event_type: Type of event (e.g., "booking_created", "recurring_batch_created")
        event_data: Dictionary with event-specific data

    Returns:
        True if published successfully, False otherwise
    """
    if not settings.BOOKING_EVENTS_ENABLED:
        return False

    try:
        params = pika.URLParameters(settings.RABBITMQ_URL)
        connection = pika.BlockingConnection(params)
        try:
            channel = connection.channel()

            # Declare queue (idempotent)
            channel.queue_declare(queue=settings.BOOKING_EVENTS_QUEUE, durable=True)

            message = {
                "event_type": event_type,
                "event_data": event_data,
            }

            channel.basic_publish(
                exchange="",
                routing_key=settings.BOOKING_EVENTS_QUEUE,
                body=json.dumps(message, default=str),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # persistent
                    content_type="application/json",
                ),
            )
        finally:
            connection.close()
        return True
    except (AMQPError, OSError) as e:
        logger.warning("Failed to publish %s event to RabbitMQ: %s", event_type, e)
        return False
