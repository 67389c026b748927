"""The consume loop: deliveries in, one command run and ack decision out."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import pika
from pika.frame import Body, Frame, Header, Method

from amqp_consume.contracts import IBrokerSession, IPipeline, IPipelineRunner, PipelineResult
from amqp_consume.errors import UnexpectedFrameError
from amqp_consume.resolver import ResolvedQueue

from .consume_options import ConsumeOptions


class ConsumeState(enum.Enum):
    """States of the delivery loop."""

    IDLE = "idle"
    SUBSCRIBED = "subscribed"
    WAITING_FRAME = "waiting_frame"
    PROCESSING_DELIVERY = "processing_delivery"
    DONE = "done"


@dataclass(frozen=True)
class DeliveryEvent:
    """A delivery whose content header has been read."""

    delivery_tag: int
    body_length: int
    redelivered: bool = False
    routing_key: str = ""


def classify_frame(frame: Frame) -> ConsumeState:
    """Return the state to enter after ``frame`` arrived while waiting.

    Only a ``Basic.Deliver`` method frame starts a delivery; every other frame
    keeps the loop waiting.
    """
    if isinstance(frame, Method) and isinstance(frame.method, pika.spec.Basic.Deliver):
        return ConsumeState.PROCESSING_DELIVERY
    return ConsumeState.WAITING_FRAME


class DeliveryLoop:
    """Feeds each delivery to a fresh pipeline and acks the ones it handled.

    The loop is strictly sequential: a delivery's body is fully drained from
    the session and its pipeline torn down before the next frame is awaited.
    """

    def __init__(
        self,
        *,
        session: IBrokerSession,
        queue: ResolvedQueue,
        options: ConsumeOptions,
        pipeline_runner: IPipelineRunner,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.session = session
        self.queue = queue
        self.options = options
        self.pipeline_runner = pipeline_runner
        self.state = ConsumeState.IDLE
        self.consumed_count = 0
        self.consumer_tag: Optional[str] = None
        self._deliver: Optional[pika.spec.Basic.Deliver] = None
        self._transitions: Dict[ConsumeState, Callable[[], ConsumeState]] = {
            ConsumeState.IDLE: self._subscribe,
            ConsumeState.SUBSCRIBED: self._next_or_done,
            ConsumeState.WAITING_FRAME: self._wait_frame,
            ConsumeState.PROCESSING_DELIVERY: self._process_delivery,
        }

    def run(self) -> int:
        """Consume until the message limit is reached and return the count."""
        while self.state is not ConsumeState.DONE:
            self.step()
        return self.consumed_count

    def step(self) -> ConsumeState:
        """Perform a single transition and return the new state."""
        if self.state is ConsumeState.DONE:
            return self.state
        self.state = self._transitions[self.state]()
        return self.state

    @property
    def limit_reached(self) -> bool:
        limit = self.options.limit
        return limit is not None and self.consumed_count >= limit

    def _subscribe(self) -> ConsumeState:
        prefetch_count = self.options.prefetch_count
        if prefetch_count is not None:
            self.session.basic_qos(prefetch_count)
            self.logger.debug("Prefetch limited to %s", prefetch_count)

        self.consumer_tag = self.session.basic_consume(self.queue.name, no_ack=self.options.no_ack)
        self.logger.info(
            "Started consuming from %s (no_ack=%s, limit=%s)",
            self.queue.name,
            self.options.no_ack,
            self.options.limit,
        )
        return ConsumeState.SUBSCRIBED

    def _next_or_done(self) -> ConsumeState:
        if self.limit_reached:
            return ConsumeState.DONE
        return ConsumeState.WAITING_FRAME

    def _wait_frame(self) -> ConsumeState:
        frame = self.session.wait_frame()
        next_state = classify_frame(frame)
        if next_state is ConsumeState.PROCESSING_DELIVERY:
            self._deliver = frame.method
        else:
            self.logger.debug("Skipping frame %r", frame)
        return next_state

    def _process_delivery(self) -> ConsumeState:
        deliver = self._deliver
        self._deliver = None
        if deliver is None:
            raise RuntimeError("No delivery is pending.")

        with self.pipeline_runner.start(self.options.command) as pipeline:
            event = self._copy_body(deliver, pipeline)
            result = pipeline.finish()

        self._settle(event, result)
        self.session.release_buffers()
        self.consumed_count += 1
        return self._next_or_done()

    def _copy_body(self, deliver: pika.spec.Basic.Deliver, pipeline: IPipeline) -> DeliveryEvent:
        header = self.session.wait_frame()
        if not isinstance(header, Header):
            raise UnexpectedFrameError(
                "reading content header", f"expected header frame, got {header!r}"
            )

        event = DeliveryEvent(
            delivery_tag=int(deliver.delivery_tag),
            body_length=int(header.body_size),
            redelivered=bool(deliver.redelivered),
            routing_key=deliver.routing_key or "",
        )
        self.logger.debug(
            "Delivery %s: %s byte(s) from %r",
            event.delivery_tag,
            event.body_length,
            event.routing_key,
        )

        remaining = event.body_length
        while remaining > 0:
            frame = self.session.wait_frame()
            if not isinstance(frame, Body):
                raise UnexpectedFrameError(
                    "reading message body", f"expected body frame, got {frame!r}"
                )
            if len(frame.fragment) > remaining:
                raise UnexpectedFrameError(
                    "reading message body",
                    f"body frame of {len(frame.fragment)} byte(s) exceeds the "
                    f"{remaining} byte(s) left",
                )
            pipeline.write(frame.fragment)
            remaining -= len(frame.fragment)

        pipeline.close_input()
        return event

    def _settle(self, event: DeliveryEvent, result: PipelineResult) -> None:
        if not result.exited_cleanly:
            self.logger.warning(
                "Command failed for delivery %s (returncode=%s); not acknowledged",
                event.delivery_tag,
                result.returncode,
            )
            return

        if self.options.no_ack:
            self.logger.info("Processed delivery %s", event.delivery_tag)
            return

        self.session.basic_ack(event.delivery_tag)
        self.logger.info("Acknowledged delivery %s", event.delivery_tag)
