"""
OSC Output

Fire-and-forget UDP sender. A lost packet is not retried and never raises.
"""

import logging

from pythonosc import udp_client

from .errors import OscSocketError
from .model import EncodedValue

logger = logging.getLogger(__name__)


class OscSender:
    """Sends (address, value) pairs to one OSC destination."""

    def __init__(self, host: str = "127.0.0.1", port: int = 9000):
        self.host = host
        self.port = port
        self.failures = 0
        try:
            self._client = udp_client.SimpleUDPClient(host, port)
        except (OSError, ValueError) as e:
            raise OscSocketError(f"Cannot create OSC socket for {host}:{port}: {e}") from e
        logger.info(f"OSC target: {host}:{port}")

    def send(self, address: str, value: EncodedValue) -> bool:
        """
        Send one message.

        Returns:
            True if the datagram was handed to the OS, False otherwise
        """
        try:
            self._client.send_message(address, value)
            return True
        except (OSError, ValueError) as e:
            self.failures += 1
            logger.debug(f"OSC send failed: {address} {value}: {e}")
            return False
