"""Contract interfaces for amqp-consume."""

from .broker_session_interface import IBrokerSession
from .pipeline_runner_interface import IPipeline, IPipelineRunner, PipelineResult
from .rabbitmq_connection_interface import IRabbitMQConnection

__all__ = [
    "IBrokerSession",
    "IPipeline",
    "IPipelineRunner",
    "IRabbitMQConnection",
    "PipelineResult",
]
