"""Frame-level broker session on top of a blocking pika channel."""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.frame import Body, Frame, Header, Heartbeat, Method

from amqp_consume.contracts import IBrokerSession, IRabbitMQConnection
from amqp_consume.errors import BrokerRPCError

# 7 byte frame header plus the frame-end octet
FRAME_OVERHEAD = 8


class PikaBrokerSession(IBrokerSession):
    """Exposes a pika blocking channel as an ordered stream of protocol frames.

    pika hands complete messages to a callback. Each one is expanded back into
    the ``Basic.Deliver`` method frame, the content header frame and the body
    frames a wire-level client would read, so the consume loop can drain
    deliveries frame by frame.
    """

    def __init__(
        self,
        connection: IRabbitMQConnection,
        *,
        frame_max: Optional[int] = None,
        poll_interval: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        frame_max = frame_max or connection.frame_max
        if frame_max <= FRAME_OVERHEAD:
            raise ValueError(f"frame_max must be larger than {FRAME_OVERHEAD}")
        self.logger = logger or logging.getLogger(__name__)
        self.connection = connection
        self.fragment_size = frame_max - FRAME_OVERHEAD
        self.poll_interval = poll_interval
        self._channel: Optional[BlockingChannel] = None
        self._frames: Deque[Frame] = deque()

    @property
    def channel(self) -> BlockingChannel:
        if self._channel is None:
            raise RuntimeError("Broker session is not open.")
        return self._channel

    @contextmanager
    def _rpc(self, name: str) -> Iterator[None]:
        try:
            yield
        except pika.exceptions.AMQPError as exc:
            self.logger.debug("%s failed: %r", name, exc)
            raise BrokerRPCError(name, repr(exc)) from exc

    def open(self) -> None:
        with self._rpc("connection.open"):
            self._channel = self.connection.connect()

    def close(self) -> None:
        self._frames.clear()
        self._channel = None
        self.connection.close()

    def queue_declare(
        self,
        queue: str,
        *,
        durable: bool,
        exclusive: bool,
        auto_delete: bool,
    ) -> str:
        with self._rpc("queue.declare"):
            result = self.channel.queue_declare(
                queue=queue,
                durable=durable,
                exclusive=exclusive,
                auto_delete=auto_delete,
            )
        return str(result.method.queue)

    def queue_bind(self, queue: str, exchange: str, routing_key: str) -> None:
        with self._rpc("queue.bind"):
            self.channel.queue_bind(queue=queue, exchange=exchange, routing_key=routing_key)

    def basic_qos(self, prefetch_count: int) -> None:
        with self._rpc("basic.qos"):
            self.channel.basic_qos(prefetch_size=0, prefetch_count=prefetch_count)

    def basic_consume(self, queue: str, *, no_ack: bool) -> str:
        with self._rpc("basic.consume"):
            consumer_tag = self.channel.basic_consume(
                queue=queue,
                on_message_callback=self._on_deliver,
                auto_ack=no_ack,
                exclusive=False,
            )
        self.logger.debug("Consuming from %s as %s", queue, consumer_tag)
        return str(consumer_tag)

    def wait_frame(self) -> Frame:
        if not self._frames:
            with self._rpc("waiting for frame"):
                self.connection.process_data_events(time_limit=self.poll_interval)
        if not self._frames:
            # event processing returned without a delivery
            return Heartbeat()
        return self._frames.popleft()

    def basic_ack(self, delivery_tag: int) -> None:
        with self._rpc("basic.ack"):
            self.channel.basic_ack(delivery_tag=delivery_tag, multiple=False)

    def release_buffers(self) -> None:
        # content frames still queued belong to the delivery just processed
        dropped = 0
        while self._frames and not isinstance(self._frames[0], Method):
            self._frames.popleft()
            dropped += 1
        if dropped:
            self.logger.debug("Released %s leftover content frame(s)", dropped)

    def _on_deliver(
        self,
        channel: BlockingChannel,
        method: pika.spec.Basic.Deliver,
        properties: pika.spec.BasicProperties,
        body: bytes,
    ) -> None:
        channel_number = channel.channel_number
        self._frames.append(Method(channel_number, method))
        self._frames.append(Header(channel_number, len(body), properties))
        for offset in range(0, len(body), self.fragment_size):
            self._frames.append(Body(channel_number, body[offset : offset + self.fragment_size]))
