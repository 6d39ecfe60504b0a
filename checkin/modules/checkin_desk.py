"""
Check-In Desk Module - Ticket Check-In System

The check-in desk is the single owner of the record store, audit log,
attendance overlay, QR generator and admin gate. Request handlers hold one
desk and go through its operations; they never touch the store directly.

Operations run one at a time under a re-entrant lock, so each request sees
the store as left by the previous one.

Features:
- Dataset load and reset with overlay reconciliation
- Manual and scanned ticket verification
- Raw scan inspection for the admin view
- QR code generation and download
- Admin PIN login, ticket search and attendance override
- Ticket, audit log, Excel and QR sheet exports
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from checkin.modules.audit_log import AuditAction, AuditLog
from checkin.modules.auth_manager import AuthManager
from checkin.modules.dataset_loader import DatasetLoader
from checkin.modules.errors import PayloadFormatError
from checkin.modules.overlay_store import OverlayStore
from checkin.modules.qr_generator import QRGenerator, decode_payload
from checkin.modules.record_store import RecordStore
from checkin.modules.report_generator import EXPORT_FILENAMES, ReportGenerator
from checkin.modules.verification_manager import VerificationManager, VerificationResult


class CheckinDesk:
    """
    Coordinates every check-in operation over one record store.
    """

    def __init__(self, loader: DatasetLoader, auth_manager: AuthManager,
                 overlay: Optional[OverlayStore] = None,
                 qr_generator: Optional[QRGenerator] = None,
                 report_generator: Optional[ReportGenerator] = None):
        """
        Initialize the desk. The store starts empty until ``load_database``.

        Args:
            loader (DatasetLoader): Source of the ticket dataset
            auth_manager (AuthManager): Admin PIN gate
            overlay (OverlayStore): Persisted attendance, or None to disable
            qr_generator (QRGenerator): QR code generator
            report_generator (ReportGenerator): Export builder
        """
        self.loader = loader
        self.auth_manager = auth_manager
        self.overlay = overlay
        self.qr_generator = qr_generator or QRGenerator()
        self.report_generator = report_generator or ReportGenerator()
        self.audit_log = AuditLog()
        self.store = RecordStore()
        self.last_generated: Optional[Dict[str, Any]] = None
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()

    def _verifier(self) -> VerificationManager:
        return VerificationManager(self.store, self.audit_log, self.overlay)

    def load_database(self) -> Dict[str, int]:
        """
        Replace the store with a fresh parse of the source dataset and merge
        the persisted attendance overlay over it.

        Returns:
            Dict[str, int]: Ticket counts after the load
        """
        with self._lock:
            text = self.loader.load()
            store = RecordStore.parse(text)
            if self.overlay is not None:
                store.merge(self.overlay.load())
            self.store = store

            stats = store.get_stats()
            self.audit_log.record(
                AuditAction.LOAD,
                f"Loaded {stats['total']} tickets ({stats['attended']} attended)."
            )
            self.logger.info(f"Ticket database loaded: {stats['total']} tickets")
            return stats

    def reset_database(self, clear_overlay: bool = False) -> Dict[str, int]:
        """
        Reload the source dataset, discarding in-memory edits.

        Args:
            clear_overlay (bool): Also forget persisted attendance

        Returns:
            Dict[str, int]: Ticket counts after the reload
        """
        with self._lock:
            if clear_overlay and self.overlay is not None:
                self.overlay.clear()
            self.audit_log.record(
                AuditAction.RESET,
                'Database reloaded and attendance cleared.' if clear_overlay
                else 'Database reloaded from source.'
            )
            return self.load_database()

    def get_ticket_list(self) -> Dict[str, Any]:
        with self._lock:
            stats = self.store.get_stats()
            return {
                'tickets': [record.to_dict() for record in self.store],
                'stats': stats,
                'counter': f"Total Tickets: {stats['total']}, Attendees: {stats['attended']}"
            }

    def verify_manual(self, ticket_id: str, name: str) -> VerificationResult:
        with self._lock:
            return self._verifier().verify_manual(ticket_id, name)

    def process_scan(self, decoded_text: str) -> VerificationResult:
        with self._lock:
            return self._verifier().process_scan(decoded_text)

    def inspect_scan(self, decoded_text: str) -> Dict[str, Any]:
        """
        Show what a scanned QR code contains without verifying it.

        Returns:
            Dict[str, Any]: Raw text and, if it parses, the extracted fields
        """
        with self._lock:
            result = {'raw': decoded_text, 'parsed': False,
                      'ticketId': None, 'name': None}
            try:
                ticket_id, name = decode_payload(decoded_text)
                result.update(parsed=True, ticketId=ticket_id, name=name)
            except PayloadFormatError as e:
                result['error'] = str(e)

            self.audit_log.record(AuditAction.SCAN, 'Scanned in Admin',
                                  ticket_id=decoded_text)
            return result

    def generate_qr(self, ticket_id: str, name: str) -> Dict[str, Any]:
        """
        Generate a ticket QR code and remember it for download.

        Returns:
            Dict[str, Any]: Generation result from the QR generator
        """
        with self._lock:
            ticket_id = (ticket_id or '').strip()
            name = (name or '').strip()
            if not ticket_id or not name:
                return {'success': False, 'error': 'Please fill in both fields!'}

            result = self.qr_generator.generate_ticket_qr_code(ticket_id, name)
            if result['success']:
                self.last_generated = result
                self.audit_log.record(AuditAction.GENERATE_QR, 'QR code generated.',
                                      ticket_id=ticket_id, name=name)
            return result

    def save_qr(self, output_dir: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Hand out the last generated QR code, optionally writing it to disk.

        Returns:
            Dict[str, Any]: The last generation result, or None if nothing
                has been generated yet
        """
        with self._lock:
            if self.last_generated is None:
                return None

            result = dict(self.last_generated)
            if output_dir:
                result['path'] = self.qr_generator.save_qr_code_image(
                    result['image_base64'], result['filename'], output_dir)
            self.audit_log.record(AuditAction.SAVE_QR, f"QR code saved as {result['filename']}.",
                                  ticket_id=result['ticket_id'], name=result['name'])
            return result

    def admin_login(self, entered_pin: str) -> bool:
        """
        Check the admin PIN. On success the dashboard data is reloaded from
        the source dataset.
        """
        with self._lock:
            if not self.auth_manager.check_pin(entered_pin):
                self.audit_log.record(AuditAction.ADMIN_LOGIN_FAILED, 'Incorrect PIN entered.')
                return False

            self.audit_log.record(AuditAction.ADMIN_LOGIN, 'Admin dashboard unlocked.')
            self.load_database()
            return True

    def search_tickets(self, query: str) -> List[Dict[str, Any]]:
        with self._lock:
            matches = self.store.search(query)
            self.audit_log.record(AuditAction.SEARCH,
                                  f"Search '{query or ''}' matched {len(matches)} ticket(s).")
            return [record.to_dict() for record in matches]

    def override_attendance(self, ticket_id: str, attended: bool) -> VerificationResult:
        with self._lock:
            return self._verifier().override_attendance(ticket_id, attended)

    def record_navigation(self, page: str) -> None:
        self.audit_log.record(AuditAction.NAVIGATION, f"Opened {page} page.")

    def export_tickets_csv(self) -> str:
        with self._lock:
            self.audit_log.record(AuditAction.EXPORT, f"Exported {EXPORT_FILENAMES['tickets']}.")
            return self.report_generator.tickets_csv(self.store)

    def export_audit_log_csv(self) -> str:
        with self._lock:
            entries = self.audit_log.entries
            self.audit_log.record(AuditAction.EXPORT, f"Exported {EXPORT_FILENAMES['audit']}.")
            return self.report_generator.audit_log_csv(entries)

    def export_excel(self) -> bytes:
        with self._lock:
            self.audit_log.record(AuditAction.EXPORT, f"Exported {EXPORT_FILENAMES['excel']}.")
            return self.report_generator.excel_report(self.store, self.audit_log.entries)

    def export_qr_sheet(self) -> Optional[bytes]:
        with self._lock:
            tickets = [(record.ticket_id, record.name) for record in self.store]
            pdf = self.qr_generator.create_bulk_qr_pdf(tickets)
            if pdf is not None:
                self.audit_log.record(AuditAction.EXPORT, f"Exported {EXPORT_FILENAMES['qr_sheet']}.")
            return pdf
