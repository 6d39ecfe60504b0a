"""
Report Generator Module - Ticket Check-In System

This module produces the downloadable exports of the check-in system:
the ticket database in its own CSV text form, the audit log as CSV, and an
Excel workbook combining tickets, audit log and summary figures.

Features:
- Ticket database CSV export
- Audit log CSV export
- Excel workbook export
"""

import io
import logging
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd

from checkin.modules.audit_log import AuditEntry
from checkin.modules.record_store import RecordStore

AUDIT_COLUMNS = ['Timestamp', 'Action', 'Ticket ID', 'Name', 'Message']
TICKET_COLUMNS = ['Ticket ID', 'Name', 'Attended', 'Email']

EXPORT_FILENAMES = {
    'tickets': 'ticket_database.csv',
    'audit': 'audit_log.csv',
    'excel': 'checkin_report.xlsx',
    'qr_sheet': 'ticket_qr_codes.pdf'
}


class ReportGenerator:
    """Builds export artifacts from the record store and audit log."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def tickets_csv(self, store: RecordStore) -> str:
        """
        Ticket database export. This is exactly the store's serialized form,
        so the file can be used as a dataset source again.
        """
        return store.serialize()

    def _audit_frame(self, entries: List[AuditEntry]) -> pd.DataFrame:
        rows = [{
            'Timestamp': entry.timestamp,
            'Action': entry.action.value,
            'Ticket ID': entry.ticket_id or '',
            'Name': entry.name or '',
            'Message': entry.message
        } for entry in entries]
        return pd.DataFrame(rows, columns=AUDIT_COLUMNS)

    def _ticket_frame(self, store: RecordStore) -> pd.DataFrame:
        rows = [{
            'Ticket ID': record.ticket_id,
            'Name': record.name,
            'Attended': 'Yes' if record.attended else 'No',
            'Email': record.email or ''
        } for record in store]
        return pd.DataFrame(rows, columns=TICKET_COLUMNS)

    def audit_log_csv(self, entries: List[AuditEntry]) -> str:
        """
        Audit log export with columns
        ``Timestamp,Action,Ticket ID,Name,Message``.
        """
        buffer = io.StringIO()
        self._audit_frame(entries).to_csv(buffer, index=False, lineterminator='\n')
        return buffer.getvalue()

    def excel_report(self, store: RecordStore, entries: List[AuditEntry]) -> bytes:
        """
        Excel workbook with ``Tickets``, ``Audit Log`` and ``Summary`` sheets.

        Returns:
            bytes: xlsx file content
        """
        stats = store.get_stats()
        summary: List[Dict[str, Any]] = [
            {'Metric': 'Total Tickets', 'Value': stats['total']},
            {'Metric': 'Attendees', 'Value': stats['attended']},
            {'Metric': 'Not Yet Arrived', 'Value': stats['remaining']},
            {'Metric': 'Audit Entries', 'Value': len(entries)},
            {'Metric': 'Generated On', 'Value': datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
        ]

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            self._ticket_frame(store).to_excel(writer, sheet_name='Tickets', index=False)
            self._audit_frame(entries).to_excel(writer, sheet_name='Audit Log', index=False)
            pd.DataFrame(summary).to_excel(writer, sheet_name='Summary', index=False)

        self.logger.info(f"Excel report generated with {stats['total']} tickets")
        return buffer.getvalue()
