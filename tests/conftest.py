"""Shared fixtures for consumer scenario tests."""

from unittest.mock import Mock

import pytest

from amqp_consume.consumer import ConsumerDependencies
from amqp_consume.contracts import IBrokerSession, IRabbitMQConnection
from amqp_consume.pipeline import SubprocessPipelineRunner


@pytest.fixture
def broker_session():
    session = Mock(spec=IBrokerSession)
    session.queue_declare.return_value = "amq.gen-scenario"
    session.basic_consume.return_value = "ctag"
    return session


@pytest.fixture
def dependencies(broker_session):
    connection = Mock(spec=IRabbitMQConnection)
    return ConsumerDependencies(
        make_connection=Mock(return_value=connection),
        make_session=Mock(return_value=broker_session),
        make_pipeline_runner=SubprocessPipelineRunner,
    )
