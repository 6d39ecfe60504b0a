# Ticket Check-In System - Modules Package
"""
Core business logic modules for the Ticket Check-In System.
"""

# Module descriptions
MODULES = {
    'record_store': 'Ticket records parsed from and serialized to dataset text',
    'verification_manager': 'Ticket verification state machine and admin override',
    'overlay_store': 'Persisted attendance overlay',
    'storage_manager': 'SQLite-backed key-value storage',
    'dataset_loader': 'Source dataset fetching with empty fallback',
    'audit_log': 'Append-only audit log',
    'qr_generator': 'QR code generation and payload decoding',
    'auth_manager': 'Shared admin PIN gate',
    'report_generator': 'CSV and Excel exports',
    'checkin_desk': 'Coordinator owning all check-in state'
}

def get_module_info():
    """Get information about available modules"""
    return MODULES
