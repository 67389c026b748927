"""Queue consumer that pipes each delivery into a command."""

from .consume_options import MAX_PREFETCH_COUNT, ConsumeOptions
from .consumer import Consumer
from .consumer_config import DEFAULT_RABBITMQ_URL, ConsumerDependencies
from .delivery_loop import ConsumeState, DeliveryEvent, DeliveryLoop, classify_frame

__all__ = [
    "ConsumeOptions",
    "ConsumeState",
    "Consumer",
    "ConsumerDependencies",
    "DEFAULT_RABBITMQ_URL",
    "DeliveryEvent",
    "DeliveryLoop",
    "MAX_PREFETCH_COUNT",
    "classify_frame",
]
