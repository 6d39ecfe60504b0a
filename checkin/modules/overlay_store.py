"""
Attendance Overlay Module - Ticket Check-In System

The overlay is a ``ticket id -> attended`` mapping persisted as JSON text
under a fixed key. It is merged into the record store right after every
dataset load, so attendance survives a reload of the (read-only) source
dataset. Every write replaces the whole mapping.
"""

import json
import logging
from typing import Dict

from checkin.modules.errors import OverlayError
from checkin.modules.storage_manager import StorageManager

DEFAULT_OVERLAY_KEY = 'ticketAttendance'


class OverlayStore:
    """Reads and writes the persisted attendance overlay."""

    def __init__(self, storage: StorageManager, key: str = DEFAULT_OVERLAY_KEY):
        self.storage = storage
        self.key = key
        self.logger = logging.getLogger(__name__)

    def load(self) -> Dict[str, bool]:
        """
        Read the overlay.

        Absent, unreadable or malformed payloads are treated as an empty
        overlay. Corruption is logged and never raised.

        Returns:
            Dict[str, bool]: Persisted attendance by ticket id
        """
        try:
            payload = self.storage.get_item(self.key)
        except Exception as e:
            self.logger.error(f"Failed to read attendance overlay: {str(e)}")
            return {}

        if payload is None:
            return {}

        try:
            return self._decode(payload)
        except (ValueError, OverlayError) as e:
            self.logger.warning(f"Ignoring corrupt attendance overlay under '{self.key}': {str(e)}")
            return {}

    def _decode(self, payload: str) -> Dict[str, bool]:
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise OverlayError(f"expected a JSON object, got {type(data).__name__}")

        overlay = {}
        for ticket_id, attended in data.items():
            if not isinstance(attended, bool):
                raise OverlayError(f"attendance for ticket {ticket_id} is not a boolean")
            overlay[ticket_id] = attended
        return overlay

    def save(self, overlay: Dict[str, bool]) -> bool:
        """
        Replace the persisted overlay.

        Returns:
            bool: Success status
        """
        try:
            self.storage.set_item(self.key, json.dumps(overlay))
            self.logger.debug(f"Attendance overlay saved ({len(overlay)} tickets)")
            return True
        except Exception as e:
            self.logger.error(f"Failed to save attendance overlay: {str(e)}")
            return False

    def clear(self) -> bool:
        try:
            removed = self.storage.remove_item(self.key)
            if removed:
                self.logger.info("Attendance overlay cleared")
            return True
        except Exception as e:
            self.logger.error(f"Failed to clear attendance overlay: {str(e)}")
            return False
