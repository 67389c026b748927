"""Defines the contract for the broker session used by the consume loop."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Optional, Type

from pika.frame import Frame


class IBrokerSession(ABC):
    """A single opened connection and channel with a request/reply interface.

    Every RPC failure is reported as ``BrokerRPCError``.
    """

    @abstractmethod
    def open(self) -> None:
        """Open the underlying connection and channel."""

    @abstractmethod
    def close(self) -> None:
        """Close the channel and connection."""

    @abstractmethod
    def queue_declare(
        self,
        queue: str,
        *,
        durable: bool,
        exclusive: bool,
        auto_delete: bool,
    ) -> str:
        """Declare ``queue`` and return the name the broker confirmed."""

    @abstractmethod
    def queue_bind(self, queue: str, exchange: str, routing_key: str) -> None:
        """Bind ``queue`` to ``exchange`` with ``routing_key``."""

    @abstractmethod
    def basic_qos(self, prefetch_count: int) -> None:
        """Limit the number of unacknowledged deliveries in flight."""

    @abstractmethod
    def basic_consume(self, queue: str, *, no_ack: bool) -> str:
        """Start consuming from ``queue`` and return the consumer tag."""

    @abstractmethod
    def wait_frame(self) -> Frame:
        """Block until the next protocol frame is available and return it."""

    @abstractmethod
    def basic_ack(self, delivery_tag: int) -> None:
        """Acknowledge a single delivery."""

    @abstractmethod
    def release_buffers(self) -> None:
        """Drop whatever is still buffered for the delivery just processed.

        Frames of deliveries that have not been started yet are kept.
        """

    def __enter__(self) -> IBrokerSession:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
