"""Prometheus metrics shared by the relay components."""

from prometheus_client import Counter, Gauge, start_http_server

from .logging_config import get_logger

logger = get_logger(__name__)

ACTIVE_CONNECTIONS = Gauge(
    "voice_relay_active_connections",
    "Number of connected devices",
)
BYTES_RX = Counter(
    "voice_relay_rx_audio_bytes_total",
    "Total audio bytes received from devices",
)
BYTES_TX = Counter(
    "voice_relay_tx_audio_bytes_total",
    "Total reply audio bytes sent to devices",
)
UTTERANCES = Counter(
    "voice_relay_utterances_total",
    "Utterances answered, by intent",
    ["intent"],
)
SERVICE_FAILURES = Counter(
    "voice_relay_service_failures_total",
    "External service failures, by service",
    ["service"],
)


def start_metrics_server(port: int) -> bool:
    """Expose /metrics on ``port``; 0 leaves the endpoint disabled."""
    if not port:
        return False
    start_http_server(port)
    logger.info("Prometheus metrics endpoint started", port=port)
    return True
