import io
import unittest

import pandas as pd

from checkin.modules.audit_log import AuditAction, AuditLog
from checkin.modules.record_store import RecordStore
from checkin.modules.report_generator import AUDIT_COLUMNS, ReportGenerator

DATASET = "Ticket ID,Name,Attended,Email\nA1,Alice,false,alice@example.com\nA2,Bob,true\n"


class TestReportGenerator(unittest.TestCase):

    def setUp(self):
        self.generator = ReportGenerator()
        self.store = RecordStore.parse(DATASET)
        self.audit_log = AuditLog()
        self.audit_log.record(AuditAction.LOAD, 'Loaded 2 tickets (1 attended).')
        self.audit_log.record(AuditAction.VERIFY, 'Ticket verified successfully.',
                              ticket_id='A1', name='Alice')

    def test_tickets_csv_is_serialized_store(self):
        self.assertEqual(self.generator.tickets_csv(self.store), DATASET)

    def test_audit_log_csv(self):
        text = self.generator.audit_log_csv(self.audit_log.entries)
        lines = text.splitlines()
        self.assertEqual(lines[0], 'Timestamp,Action,Ticket ID,Name,Message')
        self.assertEqual(len(lines), 3)

        frame = pd.read_csv(io.StringIO(text), keep_default_na=False)
        self.assertEqual(list(frame.columns), AUDIT_COLUMNS)
        self.assertEqual(list(frame['Action']), ['load', 'verify'])
        self.assertEqual(frame.loc[1, 'Ticket ID'], 'A1')
        self.assertEqual(frame.loc[0, 'Ticket ID'], '')

    def test_empty_audit_log_csv_has_header(self):
        self.assertEqual(self.generator.audit_log_csv([]).strip(),
                         'Timestamp,Action,Ticket ID,Name,Message')

    def test_excel_report(self):
        content = self.generator.excel_report(self.store, self.audit_log.entries)
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None)
        self.assertEqual(set(sheets), {'Tickets', 'Audit Log', 'Summary'})
        self.assertEqual(list(sheets['Tickets']['Attended']), ['No', 'Yes'])
        self.assertEqual(len(sheets['Audit Log']), 2)


if __name__ == '__main__':
    unittest.main()
