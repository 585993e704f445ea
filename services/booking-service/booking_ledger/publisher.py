"""
Booking domain events on the shared topic exchange.

Events are best effort: a broker outage is logged and the request that
triggered the event still succeeds.
"""
from typing import Optional

import aio_pika

from .config import RABBIT_URL
from .events import booking_data, build_event, to_json
from .log import get_logger, log_with_context
from .models import Booking

logger = get_logger(__name__)

EXCHANGE_NAME = "domain_events"


class EventPublisher:
    def __init__(self, url: Optional[str] = RABBIT_URL, exchange_name: str = EXCHANGE_NAME):
        self.url = url
        self.exchange_name = exchange_name
        self.enabled = bool(url)
        self._connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
        self._exchange: Optional[aio_pika.abc.AbstractExchange] = None

    @property
    def connected(self) -> bool:
        return self._exchange is not None and self._connection is not None and not self._connection.is_closed

    async def connect(self) -> None:
        if not self.enabled or self.connected:
            return

        try:
            self._connection = await aio_pika.connect_robust(self.url)
            channel = await self._connection.channel()
            self._exchange = await channel.declare_exchange(
                self.exchange_name,
                aio_pika.ExchangeType.TOPIC,
                durable=True,
            )
        except Exception:
            self._connection = None
            self._exchange = None
            raise

    async def publish_event(self, event_type: str, data: dict) -> Optional[dict]:
        """Publish an event routed by its type.

        Returns the envelope that was sent, or None when events are disabled
        or the broker could not be reached.
        """
        if not self.enabled:
            return None

        event = build_event(event_type, data)
        try:
            await self.connect()
            await self._exchange.publish(
                aio_pika.Message(
                    body=to_json(event).encode("utf-8"),
                    content_type="application/json",
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                    message_id=event["event_id"],
                ),
                routing_key=event_type,
            )
        except Exception as e:
            log_with_context(
                logger,
                "warning",
                "Event dropped",
                event_type=event_type,
                event_id=event["event_id"],
                error=str(e),
            )
            return None

        return event

    async def booking_event(self, event_type: str, booking: Booking) -> Optional[dict]:
        return await self.publish_event(event_type, booking_data(booking))

    async def close(self) -> None:
        try:
            if self._connection and not self._connection.is_closed:
                await self._connection.close()
        finally:
            self._connection = None
            self._exchange = None


publisher = EventPublisher()
