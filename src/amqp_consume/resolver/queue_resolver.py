"""Makes sure the queue to consume from exists."""

from __future__ import annotations

import logging
from typing import Optional

from amqp_consume.contracts import IBrokerSession
from amqp_consume.escaping import escape_bytes

from .queue_spec import QueueSpec, ResolvedQueue


class QueueResolver:
    """Declares and binds the consume queue when asked to.

    A named queue with no exchange and no declare flag is assumed to exist
    and is used without any broker call.
    """

    def __init__(self, session: IBrokerSession, logger: Optional[logging.Logger] = None) -> None:
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, spec: QueueSpec) -> ResolvedQueue:
        spec.validate()

        name = spec.name or ""
        if not spec.needs_declare:
            return ResolvedQueue(name=name)

        declared = self.session.queue_declare(
            name,
            durable=False,
            exclusive=False,
            auto_delete=True,
        )
        resolved = ResolvedQueue(name=name)
        if not spec.name:
            resolved = ResolvedQueue(name=declared, server_assigned=True)
            self.logger.warning(
                "Server provided queue name: %s", escape_bytes(resolved.queue_bytes)
            )

        if spec.exchange:
            self.session.queue_bind(resolved.name, spec.exchange, spec.routing_key or "")
            self.logger.info(
                "Bound queue %s to exchange %s with routing key %r",
                resolved.name,
                spec.exchange,
                spec.routing_key or "",
            )

        return resolved
