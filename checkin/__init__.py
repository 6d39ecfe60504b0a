# Ticket Check-In System - App Package
"""
Main application package for the Ticket Check-In System.
This package contains the check-in modules and the page templates.
"""

__version__ = "1.0.0"
__description__ = "A Flask-based ticket check-in tool with QR code generation and verification"

# Import core components for easy access
from .modules.record_store import RecordStore, TicketRecord
from .modules.verification_manager import VerificationManager, VerificationResult, Outcome
from .modules.audit_log import AuditLog, AuditEntry, AuditAction
from .modules.overlay_store import OverlayStore
from .modules.storage_manager import StorageManager
from .modules.dataset_loader import DatasetLoader
from .modules.qr_generator import QRGenerator
from .modules.auth_manager import AuthManager
from .modules.report_generator import ReportGenerator
from .modules.checkin_desk import CheckinDesk

__all__ = [
    'RecordStore',
    'TicketRecord',
    'VerificationManager',
    'VerificationResult',
    'Outcome',
    'AuditLog',
    'AuditEntry',
    'AuditAction',
    'OverlayStore',
    'StorageManager',
    'DatasetLoader',
    'QRGenerator',
    'AuthManager',
    'ReportGenerator',
    'CheckinDesk'
]
