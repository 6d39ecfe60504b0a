import unittest

from checkin.modules.record_store import EMPTY_DATASET, RecordStore, TicketRecord

DATASET = "Ticket ID,Name,Attended\nA1,Alice,false\nA2,Bob,true\n"
DATASET_WITH_EMAIL = (
    "Ticket ID,Name,Attended,Email\n"
    "T1,Dana Scully,false,dana@fbi.gov\n"
    "T2,Fox Mulder,true,fox@fbi.gov\n"
)


class TestRecordStoreParse(unittest.TestCase):

    def test_parse_reads_rows_in_source_order(self):
        store = RecordStore.parse(DATASET)
        self.assertEqual(store.header, 'Ticket ID,Name,Attended')
        self.assertEqual(
            store.records,
            [TicketRecord('A1', 'Alice', False), TicketRecord('A2', 'Bob', True)]
        )

    def test_parse_keeps_optional_email(self):
        store = RecordStore.parse(DATASET_WITH_EMAIL)
        self.assertEqual(store.records[0].email, 'dana@fbi.gov')
        self.assertTrue(store.records[1].attended)

    def test_only_literal_true_is_attended(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\nA1,Alice,TRUE\nA2,Bob,yes\nA3,Cy,\n")
        self.assertEqual([r.attended for r in store], [False, False, False])

    def test_short_rows_are_padded(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\nA1\n")
        self.assertEqual(store.records, [TicketRecord('A1', '', False)])

    def test_empty_and_header_only_text_give_empty_store(self):
        self.assertEqual(len(RecordStore.parse('')), 0)
        self.assertEqual(len(RecordStore.parse(None)), 0)
        self.assertEqual(len(RecordStore.parse(EMPTY_DATASET)), 0)

    def test_crlf_and_blank_lines(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\r\nA1,Alice,true\r\n\r\nA2,Bob,false\r\n")
        self.assertEqual(
            store.records,
            [TicketRecord('A1', 'Alice', True), TicketRecord('A2', 'Bob', False)]
        )


class TestRecordStoreSerialize(unittest.TestCase):

    def test_serialize_reproduces_dataset(self):
        self.assertEqual(RecordStore.parse(DATASET).serialize(), DATASET)
        self.assertEqual(RecordStore.parse(DATASET_WITH_EMAIL).serialize(), DATASET_WITH_EMAIL)

    def test_mixed_email_columns_round_trip(self):
        text = "Ticket ID,Name,Attended,Email\nA1,Alice,false\nA2,Bob,true,bob@x.org\n"
        store = RecordStore.parse(text)
        self.assertEqual(store.serialize(), text)
        self.assertEqual(RecordStore.parse(store.serialize()).records, store.records)

    def test_serialize_after_mutation(self):
        store = RecordStore.parse(DATASET)
        store.records[0].attended = True
        self.assertIn('A1,Alice,true\n', store.serialize())

    def test_non_literal_attended_cells_are_kept_verbatim(self):
        text = "Ticket ID,Name,Attended\nA1,Alice,yes\nA2,Bob\nA3,Cy,false\n"
        store = RecordStore.parse(text)
        self.assertEqual(store.serialize(), text)
        self.assertEqual([r.verifiable for r in store], [False, False, True])

    def test_set_attended_rewrites_non_literal_cell(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\nA1,Alice,yes\n")
        self.assertTrue(store.set_attended('A1', False))
        self.assertEqual(store.serialize(), "Ticket ID,Name,Attended\nA1,Alice,false\n")
        self.assertTrue(store.records[0].verifiable)

    def test_empty_store_serializes_to_header(self):
        self.assertEqual(RecordStore().serialize(), EMPTY_DATASET)


class TestRecordStoreMerge(unittest.TestCase):

    def test_merge_overwrites_only_listed_tickets(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\nA1,Alice,false\nA2,Bob,true\nA3,Cy,false\n")
        merged = store.merge({'A1': True, 'A2': False, 'Z9': True})
        self.assertEqual(merged, 2)
        self.assertEqual([r.attended for r in store], [True, False, False])
        self.assertEqual([r.name for r in store], ['Alice', 'Bob', 'Cy'])

    def test_merge_keeps_rows_already_holding_overlay_value(self):
        text = "Ticket ID,Name,Attended\nA1,Alice,yes\n"
        store = RecordStore.parse(text)
        store.merge({'A1': False})
        self.assertEqual(store.serialize(), text)
        self.assertFalse(store.records[0].verifiable)

    def test_attendance_overlay_covers_every_record(self):
        store = RecordStore.parse(DATASET)
        self.assertEqual(store.attendance_overlay(), {'A1': False, 'A2': True})


class TestRecordStoreLookup(unittest.TestCase):

    def setUp(self):
        self.store = RecordStore.parse(DATASET_WITH_EMAIL)

    def test_find_requires_exact_id_and_name(self):
        self.assertIsNotNone(self.store.find('T1', 'Dana Scully'))
        self.assertIsNone(self.store.find('T1', 'dana scully'))
        self.assertIsNone(self.store.find('T1', 'Fox Mulder'))

    def test_find_returns_first_duplicate(self):
        store = RecordStore.parse("Ticket ID,Name,Attended\nA1,Al,true\nA1,Al,false\n")
        self.assertTrue(store.find('A1', 'Al').attended)

    def test_empty_search_returns_everything_in_order(self):
        self.assertEqual(self.store.search(''), self.store.records)

    def test_search_is_case_insensitive_over_all_fields(self):
        self.assertEqual([r.ticket_id for r in self.store.search('MULDER')], ['T2'])
        self.assertEqual([r.ticket_id for r in self.store.search('t1')], ['T1'])
        self.assertEqual([r.ticket_id for r in self.store.search('FBI.GOV')], ['T1', 'T2'])
        self.assertEqual(self.store.search('skinner'), [])

    def test_set_attended_by_id(self):
        self.assertTrue(self.store.set_attended('T2', False))
        self.assertFalse(self.store.get_by_id('T2').attended)
        self.assertFalse(self.store.set_attended('nope', True))

    def test_stats(self):
        self.assertEqual(self.store.get_stats(), {'total': 2, 'attended': 1, 'remaining': 1})


if __name__ == '__main__':
    unittest.main()
