"""Tests for PikaBrokerSession."""

from unittest.mock import Mock

import pika
import pytest
from pika.frame import Body, Header, Heartbeat, Method

from amqp_consume.contracts import IRabbitMQConnection
from amqp_consume.errors import BrokerRPCError
from amqp_consume.session import PikaBrokerSession


@pytest.fixture
def mock_channel():
    channel = Mock()
    channel.channel_number = 1
    channel.basic_consume.return_value = "ctag-1"
    return channel


@pytest.fixture
def mock_connection(mock_channel):
    connection = Mock(spec=IRabbitMQConnection)
    connection.connect.return_value = mock_channel
    connection.frame_max = 131072
    return connection


@pytest.fixture
def session(mock_connection):
    session = PikaBrokerSession(mock_connection, frame_max=12)
    session.open()
    return session


def deliver_on_next_poll(mock_connection, mock_channel, *messages):
    """Make the next process_data_events call dispatch ``messages``."""

    def dispatch(time_limit=None):
        callback = mock_channel.basic_consume.call_args.kwargs["on_message_callback"]
        for tag, body in messages:
            callback(
                mock_channel,
                pika.spec.Basic.Deliver(consumer_tag="ctag-1", delivery_tag=tag),
                pika.BasicProperties(),
                body,
            )

    mock_connection.process_data_events.side_effect = dispatch


def test_channel_requires_open(mock_connection):
    session = PikaBrokerSession(mock_connection)

    with pytest.raises(RuntimeError):
        session.channel


def test_rejects_tiny_frame_max(mock_connection):
    with pytest.raises(ValueError):
        PikaBrokerSession(mock_connection, frame_max=8)


def test_open_wraps_connection_errors(mock_connection):
    mock_connection.connect.side_effect = pika.exceptions.AMQPConnectionError("refused")
    session = PikaBrokerSession(mock_connection)

    with pytest.raises(BrokerRPCError) as exc_info:
        session.open()

    assert exc_info.value.rpc == "connection.open"


def test_queue_declare_returns_broker_name(session, mock_channel):
    mock_channel.queue_declare.return_value.method.queue = "amq.gen-abc"

    name = session.queue_declare("", durable=False, exclusive=False, auto_delete=True)

    assert name == "amq.gen-abc"
    mock_channel.queue_declare.assert_called_once_with(
        queue="", durable=False, exclusive=False, auto_delete=True
    )


def test_queue_declare_failure_names_rpc(session, mock_channel):
    mock_channel.queue_declare.side_effect = pika.exceptions.ChannelClosedByBroker(
        404, "NOT_FOUND"
    )

    with pytest.raises(BrokerRPCError, match="queue.declare") as exc_info:
        session.queue_declare("jobs", durable=False, exclusive=False, auto_delete=True)

    assert "NOT_FOUND" in str(exc_info.value)


def test_queue_bind(session, mock_channel):
    session.queue_bind("jobs", "events", "")

    mock_channel.queue_bind.assert_called_once_with(queue="jobs", exchange="events", routing_key="")


def test_basic_qos(session, mock_channel):
    session.basic_qos(5)

    mock_channel.basic_qos.assert_called_once_with(prefetch_size=0, prefetch_count=5)


def test_basic_consume_passes_ack_mode(session, mock_channel):
    tag = session.basic_consume("jobs", no_ack=True)

    assert tag == "ctag-1"
    kwargs = mock_channel.basic_consume.call_args.kwargs
    assert kwargs["queue"] == "jobs"
    assert kwargs["auto_ack"] is True
    assert kwargs["exclusive"] is False


def test_wait_frame_expands_delivery_into_frames(session, mock_connection, mock_channel):
    session.basic_consume("jobs", no_ack=False)
    deliver_on_next_poll(mock_connection, mock_channel, (7, b"0123456789"))

    method = session.wait_frame()
    header = session.wait_frame()
    first = session.wait_frame()
    second = session.wait_frame()

    assert isinstance(method, Method)
    assert method.method.delivery_tag == 7
    assert isinstance(header, Header)
    assert header.body_size == 10
    assert isinstance(first, Body) and first.fragment == b"0123"
    assert isinstance(second, Body) and second.fragment == b"4567"
    assert mock_connection.process_data_events.call_count == 1


def test_empty_body_has_no_body_frames(session, mock_connection, mock_channel):
    session.basic_consume("jobs", no_ack=False)
    deliver_on_next_poll(mock_connection, mock_channel, (1, b""), (2, b"x"))

    frames = [session.wait_frame() for _ in range(5)]

    assert [type(frame) for frame in frames] == [Method, Header, Method, Header, Body]
    assert frames[1].body_size == 0


def test_wait_frame_without_delivery_returns_heartbeat(session, mock_connection):
    frame = session.wait_frame()

    assert isinstance(frame, Heartbeat)
    mock_connection.process_data_events.assert_called_once_with(time_limit=None)


def test_wait_frame_failure_is_broker_error(session, mock_connection):
    mock_connection.process_data_events.side_effect = pika.exceptions.StreamLostError("lost")

    with pytest.raises(BrokerRPCError, match="waiting for frame"):
        session.wait_frame()


def test_basic_ack(session, mock_channel):
    session.basic_ack(42)

    mock_channel.basic_ack.assert_called_once_with(delivery_tag=42, multiple=False)


def test_basic_ack_failure_names_rpc(session, mock_channel):
    mock_channel.basic_ack.side_effect = pika.exceptions.ChannelWrongStateError("closed")

    with pytest.raises(BrokerRPCError) as exc_info:
        session.basic_ack(1)

    assert exc_info.value.rpc == "basic.ack"


def test_release_buffers_keeps_next_delivery(session, mock_connection, mock_channel):
    session.basic_consume("jobs", no_ack=False)
    deliver_on_next_poll(mock_connection, mock_channel, (3, b"abc"), (4, b"d"))
    for _ in range(3):
        session.wait_frame()

    session.release_buffers()

    frame = session.wait_frame()
    assert isinstance(frame, Method)
    assert frame.method.delivery_tag == 4
    mock_connection.process_data_events.assert_called_once()


def test_release_buffers_drops_leftover_content_frames(session, mock_connection, mock_channel):
    session.basic_consume("jobs", no_ack=False)
    deliver_on_next_poll(mock_connection, mock_channel, (3, b"x" * 30), (4, b""))
    session.wait_frame()
    session.wait_frame()

    session.release_buffers()

    frame = session.wait_frame()
    assert isinstance(frame, Method)
    assert frame.method.delivery_tag == 4


def test_release_buffers_when_drained_polls_again(session, mock_connection, mock_channel):
    session.basic_consume("jobs", no_ack=False)
    deliver_on_next_poll(mock_connection, mock_channel, (3, b"abc"))
    for _ in range(3):
        session.wait_frame()
    mock_connection.process_data_events.side_effect = None

    session.release_buffers()

    assert isinstance(session.wait_frame(), Heartbeat)
    assert mock_connection.process_data_events.call_count == 2


def test_close_closes_connection(session, mock_connection):
    session.close()

    mock_connection.close.assert_called_once()
    with pytest.raises(RuntimeError):
        session.channel
