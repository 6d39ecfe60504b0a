"""
Authentication Manager Module - Ticket Check-In System

Admin views are gated by a single shared PIN. The configured PIN is kept in a
reversible base64 form and the entered PIN is encoded the same way before
comparison. The encoding only keeps the PIN out of plain sight in config; it
is not a security measure, and there is no lockout or rate limiting.
"""

import base64
import binascii
import logging

DEFAULT_ADMIN_PIN_ENCODED = 'MjA1MA=='


def encode_pin(pin: str) -> str:
    return base64.b64encode(pin.encode('utf-8')).decode('ascii')


def decode_pin(encoded: str) -> str:
    return base64.b64decode(encoded.encode('ascii'), validate=True).decode('utf-8')


class AuthManager:
    """Shared-PIN gate for the admin dashboard."""

    def __init__(self, encoded_pin: str = DEFAULT_ADMIN_PIN_ENCODED):
        """
        Args:
            encoded_pin (str): Base64 form of the admin PIN
        """
        self.logger = logging.getLogger(__name__)
        try:
            decode_pin(encoded_pin)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise ValueError(f"Admin PIN is not valid base64: {e}") from e
        self.encoded_pin = encoded_pin

    def check_pin(self, entered_pin: str) -> bool:
        """
        Compare an entered PIN against the configured one.

        Args:
            entered_pin (str): PIN typed by the user

        Returns:
            bool: True when the PIN matches
        """
        if entered_pin is None:
            return False
        matched = encode_pin(entered_pin) == self.encoded_pin
        if not matched:
            self.logger.warning("Failed admin PIN attempt")
        return matched
