"""Broker session adapters."""

from .pika_broker_session import PikaBrokerSession

__all__ = ["PikaBrokerSession"]
