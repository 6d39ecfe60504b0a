"""
Flask Ticket Check-In System - Main Application

This module serves as the main entry point for the ticket check-in system.
It builds the Flask application, wires the check-in desk from configuration
and maps pages and JSON endpoints onto desk operations.

Features:
- Ticket list with attendance counter
- QR code generation and download
- QR scan and manual ticket verification
- PIN-gated admin dashboard with search, raw scan view and attendance edits
- CSV, Excel and printable QR sheet exports
"""

import base64
import io
import logging
from functools import wraps

from flask import (Flask, Response, current_app, flash, jsonify, redirect,
                   render_template, request, send_file, session, url_for)

from config import LOG_FORMAT, get_config
from checkin.modules.auth_manager import AuthManager
from checkin.modules.checkin_desk import CheckinDesk
from checkin.modules.dataset_loader import DatasetLoader
from checkin.modules.overlay_store import OverlayStore
from checkin.modules.qr_generator import QRGenerator
from checkin.modules.report_generator import EXPORT_FILENAMES
from checkin.modules.storage_manager import StorageManager
from checkin.modules.verification_manager import Outcome

logger = logging.getLogger(__name__)


def build_desk(settings) -> CheckinDesk:
    """Create the check-in desk from a Flask config mapping."""
    overlay = None
    if settings['PERSIST_ATTENDANCE']:
        storage = StorageManager(settings['STORAGE_PATH'])
        overlay = OverlayStore(storage, settings['OVERLAY_KEY'])

    return CheckinDesk(
        loader=DatasetLoader(settings['DATASET_SOURCE'], timeout=settings['DATASET_TIMEOUT']),
        auth_manager=AuthManager(settings['ADMIN_PIN_ENCODED']),
        overlay=overlay,
        qr_generator=QRGenerator(
            box_size=settings['QR_CODE_SIZE'],
            border=settings['QR_CODE_BORDER'],
            fill_color=settings['QR_FILL_COLOR'],
            back_color=settings['QR_BACK_COLOR']
        )
    )


def get_desk() -> CheckinDesk:
    return current_app.extensions['checkin_desk']


def admin_required(f):
    """Decorator to require an unlocked admin session"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('is_admin'):
            if request.path.startswith('/api/'):
                return jsonify({
                    'success': False,
                    'message': 'Admin PIN required'
                }), 403
            flash('Please enter the admin PIN.', 'error')
            return redirect(url_for('admin_login'))
        return f(*args, **kwargs)
    return decorated_function


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text_field(data: dict, key: str) -> str:
    """Request field as text; missing or non-string values read as empty."""
    value = data.get(key)
    return value if isinstance(value, str) else ''


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ['true', 'yes', 'on', '1']


def _download(content, mimetype: str, filename: str) -> Response:
    return Response(
        content,
        mimetype=mimetype,
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


def create_app(config_name=None, **overrides):
    """
    Application factory.

    Args:
        config_name (str): Key into the configuration dictionary
        **overrides: Config values replacing the class defaults

    Returns:
        Flask: Configured application with a loaded check-in desk
    """
    config_class = get_config(config_name)

    app = Flask(__name__,
                template_folder='checkin/templates')
    app.config.from_object(config_class)
    app.config.update(overrides)
    config_class.init_app(app)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format=LOG_FORMAT
    )

    desk = build_desk(app.config)
    desk.load_database()
    app.extensions['checkin_desk'] = desk

    register_routes(app)
    return app


def register_routes(app):

    @app.route('/')
    def index():
        """Main page: ticket list, QR generator, scanner and manual verification"""
        desk = get_desk()
        try:
            desk.record_navigation('main')
            return render_template('index.html', data=desk.get_ticket_list())

        except Exception as e:
            logger.error(f"Error in index route: {str(e)}")
            flash('An error occurred while loading the page.', 'error')
            return render_template('index.html', data={'tickets': [], 'stats': {}, 'counter': ''})

    @app.route('/api/tickets')
    def ticket_list():
        return jsonify(get_desk().get_ticket_list())

    @app.route('/api/verify', methods=['POST'])
    def verify_ticket():
        """Manual verification by ticket id and attendee name"""
        try:
            data = _json_body()
            result = get_desk().verify_manual(_text_field(data, 'ticketId'), _text_field(data, 'name'))
            status = 400 if result.outcome == Outcome.INVALID_FORMAT else 200
            return jsonify(result.to_dict()), status

        except Exception as e:
            logger.error(f"Manual verification error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while verifying the ticket'
            }), 500

    @app.route('/api/scan', methods=['POST'])
    def process_scan():
        """Verify the decoded text of a scanned QR code"""
        try:
            data = _json_body()
            result = get_desk().process_scan(_text_field(data, 'qr_code'))
            status = 400 if result.outcome == Outcome.INVALID_FORMAT else 200
            return jsonify(result.to_dict()), status

        except Exception as e:
            logger.error(f"Scan processing error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while processing the scan'
            }), 500

    @app.route('/api/qr', methods=['POST'])
    def generate_qr():
        try:
            data = _json_body()
            result = get_desk().generate_qr(_text_field(data, 'ticketId'), _text_field(data, 'name'))

            if not result['success']:
                return jsonify({
                    'success': False,
                    'message': result['error']
                }), 400

            return jsonify({
                'success': True,
                'image_base64': result['image_base64'],
                'filename': result['filename'],
                'qr_data': result['qr_data']
            })

        except Exception as e:
            logger.error(f"QR generation error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while generating the QR code'
            }), 500

    @app.route('/api/qr/download')
    def download_qr():
        result = get_desk().save_qr()
        if result is None:
            return jsonify({
                'success': False,
                'message': 'No QR code generated yet!'
            }), 404

        return send_file(
            io.BytesIO(base64.b64decode(result['image_base64'])),
            mimetype='image/png',
            as_attachment=True,
            download_name=result['filename']
        )

    @app.route('/api/reset', methods=['POST'])
    def reset_database():
        """Reload the source dataset, discarding unsaved changes"""
        try:
            data = _json_body()
            stats = get_desk().reset_database(_parse_bool(data.get('clear_overlay', False)))
            return jsonify({'success': True, 'stats': stats})

        except Exception as e:
            logger.error(f"Reset error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while reloading the database'
            }), 500

    @app.route('/export/tickets.csv')
    def export_tickets():
        return _download(get_desk().export_tickets_csv(), 'text/csv', EXPORT_FILENAMES['tickets'])

    @app.route('/export/audit_log.csv')
    def export_audit_log():
        return _download(get_desk().export_audit_log_csv(), 'text/csv', EXPORT_FILENAMES['audit'])

    @app.route('/export/report.xlsx')
    def export_excel():
        try:
            content = get_desk().export_excel()
        except Exception as e:
            logger.error(f"Excel export error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while generating the report'
            }), 500
        return _download(
            content,
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            EXPORT_FILENAMES['excel']
        )

    @app.route('/export/qr_codes.pdf')
    def export_qr_sheet():
        content = get_desk().export_qr_sheet()
        if content is None:
            return jsonify({
                'success': False,
                'message': 'An error occurred while generating the QR code sheet'
            }), 500
        return _download(content, 'application/pdf', EXPORT_FILENAMES['qr_sheet'])

    @app.route('/admin/login', methods=['GET', 'POST'])
    def admin_login():
        """Admin PIN page"""
        error = None
        if request.method == 'POST':
            pin = request.form.get('pin', '')
            if get_desk().admin_login(pin):
                session['is_admin'] = True
                logger.info("Admin dashboard unlocked")
                return redirect(url_for('admin_dashboard'))
            error = 'Incorrect PIN!'

        return render_template('admin_login.html', error=error)

    @app.route('/admin/logout')
    def admin_logout():
        session.pop('is_admin', None)
        flash('Admin session closed.', 'success')
        return redirect(url_for('index'))

    @app.route('/admin')
    @admin_required
    def admin_dashboard():
        """Admin dashboard with search, raw scan view and attendance edits"""
        desk = get_desk()
        desk.record_navigation('admin')
        return render_template('admin.html', data=desk.get_ticket_list(),
                               recent_activity=desk.audit_log.recent(20))

    @app.route('/api/admin/search')
    @admin_required
    def admin_search():
        query = request.args.get('q', '')
        return jsonify({'success': True, 'tickets': get_desk().search_tickets(query)})

    @app.route('/api/admin/scan', methods=['POST'])
    @admin_required
    def admin_scan():
        data = _json_body()
        return jsonify(get_desk().inspect_scan(_text_field(data, 'qr_code')))

    @app.route('/api/admin/attendance', methods=['POST'])
    @admin_required
    def admin_attendance():
        """Direct attendance edit by ticket id"""
        try:
            data = _json_body()
            ticket_id = _text_field(data, 'ticketId').strip()

            if not ticket_id or 'attended' not in data:
                return jsonify({
                    'success': False,
                    'message': 'Ticket id and attended value are required'
                }), 400

            result = get_desk().override_attendance(ticket_id, _parse_bool(data['attended']))
            status = 200 if result.success else 404
            return jsonify(result.to_dict()), status

        except Exception as e:
            logger.error(f"Attendance edit error: {str(e)}")
            return jsonify({
                'success': False,
                'message': 'An error occurred while updating attendance'
            }), 500


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'], host='0.0.0.0', port=5000)
