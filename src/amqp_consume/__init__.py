"""Consume RabbitMQ messages by piping each one into a command."""

__version__ = "0.1.0"

from .connection import RabbitMQConnection  # noqa: E402
from .consumer import (  # noqa: E402
    ConsumeOptions,
    Consumer,
    ConsumerDependencies,
    DeliveryLoop,
)
from .contracts import IBrokerSession, IPipelineRunner, IRabbitMQConnection  # noqa: E402
from .errors import (  # noqa: E402
    BrokerRPCError,
    ConfigurationError,
    ConsumeError,
    UnexpectedFrameError,
)
from .pipeline import SubprocessPipelineRunner  # noqa: E402
from .resolver import QueueResolver, QueueSpec, ResolvedQueue  # noqa: E402
from .session import PikaBrokerSession  # noqa: E402

__all__ = [
    "BrokerRPCError",
    "ConfigurationError",
    "ConsumeError",
    "ConsumeOptions",
    "Consumer",
    "ConsumerDependencies",
    "DeliveryLoop",
    "IBrokerSession",
    "IPipelineRunner",
    "IRabbitMQConnection",
    "PikaBrokerSession",
    "QueueResolver",
    "QueueSpec",
    "RabbitMQConnection",
    "ResolvedQueue",
    "SubprocessPipelineRunner",
    "UnexpectedFrameError",
    "__version__",
]
