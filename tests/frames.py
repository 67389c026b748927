"""Broker frame builders for scenario tests."""

import pika
from pika.frame import Body, Header, Method


def delivery(tag, body, fragment_size=3):
    """Return the frames a broker sends for one delivered message."""
    method = pika.spec.Basic.Deliver(consumer_tag="ctag", delivery_tag=tag, routing_key="jobs")
    frames = [Method(1, method), Header(1, len(body), pika.BasicProperties())]
    for offset in range(0, len(body), fragment_size):
        frames.append(Body(1, body[offset : offset + fragment_size]))
    return frames
