"""
Verification Manager Module - Ticket Check-In System

This module implements the ticket verification state machine. A ticket is
either unverified (``attended`` false) or verified (``attended`` true), and
verification only moves it forward. The single way back is the explicit
admin attendance override, which writes the field directly.

Every verification attempt is audited, and every successful mutation is
followed by a full rewrite of the persisted attendance overlay.

Features:
- Verification by ticket id and attendee name
- Scanned QR payload processing
- Manual verification input checks
- Admin attendance override
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from checkin.modules.audit_log import AuditAction, AuditLog
from checkin.modules.errors import PayloadFormatError
from checkin.modules.overlay_store import OverlayStore
from checkin.modules.qr_generator import decode_payload
from checkin.modules.record_store import RecordStore, TicketRecord


class Outcome(str, Enum):
    """Result tags for verification and override attempts."""
    ACCEPTED = 'Accepted'
    ALREADY_USED = 'AlreadyUsed'
    NOT_FOUND = 'NotFound'
    INVALID_FORMAT = 'InvalidFormat'
    UPDATED = 'Updated'


# Inline display state per outcome, matching the result styles of the pages
DISPLAY_STATES = {
    Outcome.ACCEPTED: 'valid',
    Outcome.ALREADY_USED: 'used',
    Outcome.NOT_FOUND: 'invalid',
    Outcome.INVALID_FORMAT: 'invalid',
    Outcome.UPDATED: 'valid'
}

RESULT_MESSAGES = {
    Outcome.ACCEPTED: 'Valid ticket! Attendee marked as attended.',
    Outcome.ALREADY_USED: 'Ticket already used!',
    Outcome.NOT_FOUND: 'Ticket not found in the database!',
    Outcome.INVALID_FORMAT: 'Invalid QR format!'
}

AUDIT_MESSAGES = {
    Outcome.ACCEPTED: 'Ticket verified successfully.',
    Outcome.ALREADY_USED: 'Ticket already used.',
    Outcome.NOT_FOUND: 'Ticket not found.'
}

MANUAL_INPUT_MESSAGE = 'Please fill in both fields for manual verification!'


@dataclass
class VerificationResult:
    """Outcome of one verification or override attempt."""
    outcome: Outcome
    message: str
    ticket_id: Optional[str] = None
    name: Optional[str] = None
    record: Optional[TicketRecord] = field(default=None, compare=False)

    @property
    def success(self) -> bool:
        return self.outcome in (Outcome.ACCEPTED, Outcome.UPDATED)

    @property
    def display_state(self) -> str:
        return DISPLAY_STATES[self.outcome]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'outcome': self.outcome.value,
            'state': self.display_state,
            'message': self.message,
            'ticketId': self.ticket_id,
            'name': self.name,
            'record': self.record.to_dict() if self.record else None
        }


class VerificationManager:
    """
    Verification state machine over a record store.
    The store, audit log and overlay are owned by the caller and passed in.
    """

    def __init__(self, store: RecordStore, audit_log: AuditLog,
                 overlay: Optional[OverlayStore] = None):
        """
        Args:
            store (RecordStore): Ticket records to verify against
            audit_log (AuditLog): Log receiving one entry per attempt
            overlay (OverlayStore): Persisted attendance, or None to skip
        """
        self.store = store
        self.audit_log = audit_log
        self.overlay = overlay
        self.logger = logging.getLogger(__name__)

    def verify(self, ticket_id: str, name: str) -> VerificationResult:
        """
        Verify a claimed ticket identity.

        Args:
            ticket_id (str): Claimed ticket id
            name (str): Claimed attendee name

        Returns:
            VerificationResult: Accepted, AlreadyUsed or NotFound
        """
        record = self.store.find(ticket_id, name)

        if record is None:
            outcome = Outcome.NOT_FOUND
        elif record.verifiable:
            record.set_attended(True)
            outcome = Outcome.ACCEPTED
        else:
            outcome = Outcome.ALREADY_USED

        self.audit_log.record(AuditAction.VERIFY, AUDIT_MESSAGES[outcome],
                              ticket_id=ticket_id, name=name)
        self.persist()

        if outcome == Outcome.ACCEPTED:
            self.logger.info(f"Ticket {ticket_id} verified for {name}")
        else:
            self.logger.info(f"Verification of ticket {ticket_id}: {outcome.value}")

        return VerificationResult(outcome, RESULT_MESSAGES[outcome],
                                  ticket_id=ticket_id, name=name, record=record)

    def verify_manual(self, ticket_id: str, name: str) -> VerificationResult:
        """
        Verify manually entered values after trimming whitespace.

        Blank fields are rejected before the store is consulted.
        """
        ticket_id = (ticket_id or '').strip()
        name = (name or '').strip()
        if not ticket_id or not name:
            return VerificationResult(Outcome.INVALID_FORMAT, MANUAL_INPUT_MESSAGE,
                                      ticket_id=ticket_id or None, name=name or None)
        return self.verify(ticket_id, name)

    def process_scan(self, decoded_text: str) -> VerificationResult:
        """
        Verify the text decoded from a scanned QR code.

        Malformed payloads yield InvalidFormat and never reach ``verify``.

        Args:
            decoded_text (str): Raw text from the scanner

        Returns:
            VerificationResult: Outcome of the scan
        """
        try:
            ticket_id, name = decode_payload(decoded_text)
        except PayloadFormatError as e:
            self.logger.info(f"Rejected scanned payload: {str(e)}")
            self.audit_log.record(AuditAction.SCAN, f"Invalid QR format: {str(e)}")
            return VerificationResult(Outcome.INVALID_FORMAT,
                                      RESULT_MESSAGES[Outcome.INVALID_FORMAT])

        return self.verify(ticket_id, name)

    def override_attendance(self, ticket_id: str, attended: bool) -> VerificationResult:
        """
        Directly set a ticket's attendance by id, bypassing verification.

        Args:
            ticket_id (str): Ticket id
            attended (bool): New attendance value

        Returns:
            VerificationResult: Updated or NotFound
        """
        attended = bool(attended)
        updated = self.store.set_attended(ticket_id, attended)
        record = self.store.get_by_id(ticket_id)
        label = 'attended' if attended else 'not attended'

        if updated:
            message = f"Attendance set to {label}."
            outcome = Outcome.UPDATED
            self.persist()
            self.logger.info(f"Admin set ticket {ticket_id} to {label}")
        else:
            message = f"Ticket {ticket_id} not found; attendance unchanged."
            outcome = Outcome.NOT_FOUND
            self.logger.warning(f"Admin override for unknown ticket {ticket_id}")

        self.audit_log.record(AuditAction.ATTENDANCE_EDIT, message,
                              ticket_id=ticket_id,
                              name=record.name if record else None)
        return VerificationResult(outcome, message, ticket_id=ticket_id,
                                  name=record.name if record else None,
                                  record=record)

    def persist(self) -> bool:
        """Rewrite the attendance overlay from every record."""
        if self.overlay is None:
            return True
        return self.overlay.save(self.store.attendance_overlay())
