"""
Audit Log Module - Ticket Check-In System

Append-only record of user- and system-triggered actions. The log lives for
the lifetime of the process and is only used for inspection and export.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class AuditAction(str, Enum):
    """Fixed set of audit action tags."""
    LOAD = 'load'
    VERIFY = 'verify'
    GENERATE_QR = 'generate-qr'
    SAVE_QR = 'save-qr'
    EXPORT = 'export'
    RESET = 'reset'
    ADMIN_LOGIN = 'admin-login'
    ADMIN_LOGIN_FAILED = 'admin-login-failed'
    SEARCH = 'search'
    SCAN = 'scan'
    NAVIGATION = 'navigation'
    ATTENDANCE_EDIT = 'attendance-edit'


@dataclass(frozen=True)
class AuditEntry:
    """Data class for one audit log entry."""
    timestamp: str
    action: AuditAction
    message: str
    ticket_id: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        data = asdict(self)
        data['action'] = self.action.value
        return data


class AuditLog:
    """Ordered, append-only sequence of audit entries."""

    def __init__(self):
        self._entries: List[AuditEntry] = []
        self.logger = logging.getLogger(__name__)

    def record(self, action: AuditAction, message: str,
               ticket_id: Optional[str] = None,
               name: Optional[str] = None) -> AuditEntry:
        """
        Append an entry stamped with the current local time.

        Args:
            action (AuditAction): Action tag
            message (str): Human-readable description
            ticket_id (str): Subject ticket id, if any
            name (str): Subject attendee name, if any

        Returns:
            AuditEntry: The appended entry
        """
        entry = AuditEntry(
            timestamp=datetime.now().isoformat(timespec='seconds'),
            action=AuditAction(action),
            message=message,
            ticket_id=ticket_id,
            name=name
        )
        self._entries.append(entry)
        self.logger.debug(f"Audit [{entry.action.value}] {message}")
        return entry

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)

    def filter(self, action: AuditAction) -> List[AuditEntry]:
        return [entry for entry in self._entries if entry.action == action]

    def recent(self, limit: int = 20) -> List[AuditEntry]:
        """Most recent entries, newest first."""
        return list(reversed(self._entries[-limit:])) if limit > 0 else []

    def __len__(self):
        return len(self._entries)
