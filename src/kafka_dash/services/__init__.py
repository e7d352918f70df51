"""Services for kafka-dash."""

from kafka_dash.services.broker_client import (
    DEFAULT_TIMEOUT,
    BrokerClient,
    BrokerClosedError,
    BrokerConnectionError,
    BrokerError,
    KafkaBrokerClient,
    Subscription,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "BrokerClient",
    "BrokerClosedError",
    "BrokerConnectionError",
    "BrokerError",
    "KafkaBrokerClient",
    "Subscription",
]
