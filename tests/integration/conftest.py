"""Fixtures for RabbitMQ integration tests."""

import subprocess
import time
import uuid

import pika
import pytest

RABBITMQ_PORT = 5673  # Non-default port to avoid conflicts


@pytest.fixture(scope="session")
def rabbitmq_container():
    """Start RabbitMQ Docker container for test session."""
    container_name = "pushline-rabbitmq-test"

    subprocess.run(["docker", "rm", "-f", container_name], capture_output=True)

    subprocess.run(
        [
            "docker",
            "run",
            "-d",
            "--name",
            container_name,
            "-p",
            f"{RABBITMQ_PORT}:5672",
            "rabbitmq:3-management",
        ],
        check=True,
        capture_output=True,
    )

    # Wait for RabbitMQ to be ready
    time.sleep(10)

    yield

    subprocess.run(["docker", "stop", container_name], capture_output=True)
    subprocess.run(["docker", "rm", container_name], capture_output=True)


@pytest.fixture(scope="session")
def rabbitmq_connection(rabbitmq_container) -> pika.BlockingConnection:
    """Provide RabbitMQ connection."""
    return pika.BlockingConnection(pika.ConnectionParameters(host="localhost", port=RABBITMQ_PORT))


def _temporary_queue(connection: pika.BlockingConnection, prefix: str):
    queue_name = f"{prefix}-{uuid.uuid4()}"
    channel = connection.channel()
    channel.queue_declare(queue=queue_name, durable=True)
    yield queue_name
    channel.queue_delete(queue=queue_name)


@pytest.fixture
def submission_queue(rabbitmq_connection) -> str:
    """Queue carrying push requests, deleted after the test."""
    yield from _temporary_queue(rabbitmq_connection, "push-requests")


@pytest.fixture
def dead_letter_queue(rabbitmq_connection) -> str:
    """Queue receiving dead-lettered pushes, deleted after the test."""
    yield from _temporary_queue(rabbitmq_connection, "push-dead-letter")
