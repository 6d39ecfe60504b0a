import json
import os
import tempfile
import unittest

from app import create_app

DATASET = "Ticket ID,Name,Attended,Email\nA1,Alice,false,alice@example.com\nA2,Bob,true,bob@example.com\n"


class AppTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        dataset_path = os.path.join(self.tmp.name, 'tickets.csv')
        with open(dataset_path, 'w', encoding='utf-8') as f:
            f.write(DATASET)

        self.app = create_app('testing', DATASET_SOURCE=dataset_path)
        self.client = self.app.test_client()

    def tearDown(self):
        self.tmp.cleanup()

    def login(self, pin='2050'):
        return self.client.post('/admin/login', data={'pin': pin})


class TestMainPage(AppTestCase):

    def test_index_lists_tickets(self):
        resp = self.client.get('/')
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b'Total Tickets: 2, Attendees: 1', resp.data)
        self.assertIn(b'Alice', resp.data)

    def test_ticket_api(self):
        data = self.client.get('/api/tickets').get_json()
        self.assertEqual(data['stats']['total'], 2)
        self.assertEqual(data['tickets'][1]['attendedLabel'], 'Yes')

    def test_manual_verify(self):
        resp = self.client.post('/api/verify', json={'ticketId': 'A1', 'name': 'Alice'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['outcome'], 'Accepted')

        resp = self.client.post('/api/verify', json={'ticketId': 'A1', 'name': 'Alice'})
        self.assertEqual(resp.get_json()['outcome'], 'AlreadyUsed')
        self.assertEqual(resp.get_json()['state'], 'used')

        resp = self.client.post('/api/verify', json={'ticketId': 'A1'})
        self.assertEqual(resp.status_code, 400)

    def test_scan(self):
        payload = json.dumps({'ticketId': 'A9', 'name': 'Nobody'})
        resp = self.client.post('/api/scan', json={'qr_code': payload})
        self.assertEqual(resp.get_json()['outcome'], 'NotFound')

        resp = self.client.post('/api/scan', json={'qr_code': 'not a ticket'})
        self.assertEqual(resp.get_json()['outcome'], 'InvalidFormat')

        resp = self.client.post('/api/scan', json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['outcome'], 'InvalidFormat')

    def test_empty_scan_is_invalid_format(self):
        resp = self.client.post('/api/scan', json={'qr_code': ''})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['outcome'], 'InvalidFormat')
        self.assertEqual(resp.get_json()['state'], 'invalid')

    def test_non_string_fields_are_rejected(self):
        resp = self.client.post('/api/verify', json={'ticketId': 123, 'name': 'Alice'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['outcome'], 'InvalidFormat')

        resp = self.client.post('/api/qr', json={'ticketId': 123, 'name': 'Alice'})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post('/api/scan', json={'qr_code': 42})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['outcome'], 'InvalidFormat')

    def test_generate_and_download_qr(self):
        self.assertEqual(self.client.get('/api/qr/download').status_code, 404)

        resp = self.client.post('/api/qr', json={'ticketId': 'A1', 'name': 'Alice'})
        self.assertTrue(resp.get_json()['success'])

        resp = self.client.get('/api/qr/download')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, 'image/png')
        self.assertIn('Alice_A1_QR.png', resp.headers['Content-Disposition'])

        resp = self.client.post('/api/qr', json={'ticketId': '', 'name': 'Alice'})
        self.assertEqual(resp.status_code, 400)

    def test_exports(self):
        self.client.post('/api/verify', json={'ticketId': 'A1', 'name': 'Alice'})
        resp = self.client.get('/export/tickets.csv')
        self.assertIn('ticket_database.csv', resp.headers['Content-Disposition'])
        self.assertIn(b'A1,Alice,true,alice@example.com', resp.data)

        resp = self.client.get('/export/audit_log.csv')
        self.assertTrue(resp.data.startswith(b'Timestamp,Action,Ticket ID,Name,Message'))

        self.assertEqual(self.client.get('/export/report.xlsx').status_code, 200)
        self.assertTrue(self.client.get('/export/qr_codes.pdf').data.startswith(b'%PDF'))

    def test_reset_keeps_overlay_unless_cleared(self):
        self.client.post('/api/verify', json={'ticketId': 'A1', 'name': 'Alice'})
        stats = self.client.post('/api/reset', json={}).get_json()['stats']
        self.assertEqual(stats['attended'], 2)

        stats = self.client.post('/api/reset', json={'clear_overlay': True}).get_json()['stats']
        self.assertEqual(stats['attended'], 1)


class TestAdmin(AppTestCase):

    def test_admin_requires_pin(self):
        resp = self.client.get('/admin')
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(self.client.get('/api/admin/search?q=a').status_code, 403)

    def test_wrong_pin(self):
        resp = self.login('1234')
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b'Incorrect PIN!', resp.data)
        self.assertEqual(self.client.get('/admin').status_code, 302)

    def test_admin_flow(self):
        resp = self.login()
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(self.client.get('/admin').status_code, 200)

        tickets = self.client.get('/api/admin/search?q=BOB').get_json()['tickets']
        self.assertEqual([t['ticketId'] for t in tickets], ['A2'])

        tickets = self.client.get('/api/admin/search?q=example.com').get_json()['tickets']
        self.assertEqual(len(tickets), 2)

        info = self.client.post('/api/admin/scan', json={'qr_code': 'raw text'}).get_json()
        self.assertFalse(info['parsed'])
        self.assertEqual(info['raw'], 'raw text')

    def test_attendance_override(self):
        self.login()
        resp = self.client.post('/api/admin/attendance', json={'ticketId': 'A2', 'attended': False})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['outcome'], 'Updated')

        resp = self.client.post('/api/verify', json={'ticketId': 'A2', 'name': 'Bob'})
        self.assertEqual(resp.get_json()['outcome'], 'Accepted')

        resp = self.client.post('/api/admin/attendance', json={'ticketId': 'Z1', 'attended': True})
        self.assertEqual(resp.status_code, 404)

        resp = self.client.post('/api/admin/attendance', json={'ticketId': 'A2'})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post('/api/admin/attendance', json={'ticketId': 7, 'attended': True})
        self.assertEqual(resp.status_code, 400)

    def test_logout(self):
        self.login()
        self.client.get('/admin/logout')
        self.assertEqual(self.client.get('/admin').status_code, 302)


if __name__ == '__main__':
    unittest.main()
