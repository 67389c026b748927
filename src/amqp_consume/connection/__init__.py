"""RabbitMQ connection management."""

from .rabbitmq_connection import RabbitMQConnection

__all__ = ["RabbitMQConnection"]
