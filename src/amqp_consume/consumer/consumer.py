"""Consumes a queue by running a command for every delivered message."""

from __future__ import annotations

import logging
from typing import Optional

from amqp_consume.contracts import IBrokerSession, IPipelineRunner
from amqp_consume.resolver import QueueResolver, QueueSpec

from .consume_options import ConsumeOptions
from .consumer_config import ConsumerDependencies
from .delivery_loop import DeliveryLoop


class Consumer:
    """Resolves the queue, runs the delivery loop and closes the session."""

    def __init__(
        self,
        *,
        session: IBrokerSession,
        queue_spec: QueueSpec,
        options: ConsumeOptions,
        pipeline_runner: IPipelineRunner,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.session = session
        self.queue_spec = queue_spec
        self.options = options
        self.pipeline_runner = pipeline_runner
        self.loop: Optional[DeliveryLoop] = None

    @classmethod
    def from_url(
        cls,
        rabbitmq_url: Optional[str] = None,
        *,
        queue_spec: QueueSpec,
        options: ConsumeOptions,
        dependencies: Optional[ConsumerDependencies] = None,
    ) -> "Consumer":
        deps = dependencies or ConsumerDependencies()

        return cls(
            session=deps.make_session(deps.make_connection(rabbitmq_url)),
            queue_spec=queue_spec,
            options=options,
            pipeline_runner=deps.make_pipeline_runner(),
        )

    @property
    def consumed_count(self) -> int:
        return self.loop.consumed_count if self.loop else 0

    def start(self) -> int:
        """Consume until the configured limit and return the number of deliveries."""
        self.options.validate()
        self.queue_spec.validate()

        self.session.open()
        try:
            queue = QueueResolver(self.session).resolve(self.queue_spec)
            loop = self.loop = DeliveryLoop(
                session=self.session,
                queue=queue,
                options=self.options,
                pipeline_runner=self.pipeline_runner,
            )
            consumed = loop.run()
        except KeyboardInterrupt:
            self.logger.info("Stopping consumer...")
            raise
        finally:
            self.session.close()

        self.logger.info("Consumed %s message(s) from %s", consumed, queue.name)
        return consumed
