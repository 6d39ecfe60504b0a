# Ticket Check-In System Configuration

import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).parent.absolute()

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'ticket-checkin-secret-key-2025'

    # Source dataset: a file path or an http(s) URL
    DATASET_SOURCE = os.environ.get('DATASET_SOURCE') or str(BASE_DIR / 'tickets.csv')
    DATASET_TIMEOUT = 10  # seconds, URL sources only

    # Key-value storage holding the attendance overlay
    STORAGE_PATH = os.environ.get('STORAGE_PATH') or str(BASE_DIR / 'database' / 'checkin.db')
    OVERLAY_KEY = 'ticketAttendance'
    PERSIST_ATTENDANCE = os.environ.get('PERSIST_ATTENDANCE', 'true').lower() in ['true', 'on', '1']

    # Admin gate. Base64 of the shared PIN; this is not a secret store.
    ADMIN_PIN_ENCODED = os.environ.get('ADMIN_PIN_ENCODED') or 'MjA1MA=='

    # QR Code Configuration
    QR_CODE_SIZE = 10
    QR_CODE_BORDER = 4
    QR_FILL_COLOR = 'black'
    QR_BACK_COLOR = 'white'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = BASE_DIR / 'logs' / 'checkin.log'
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    DEBUG = os.environ.get('DEBUG', 'False').lower() in ['true', 'on', '1']
    TESTING = False

    @classmethod
    def init_app(cls, app):
        """Initialize application configuration"""
        storage_path = app.config.get('STORAGE_PATH', cls.STORAGE_PATH)
        if storage_path != ':memory:':
            Path(storage_path).parent.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False

    # More verbose logging
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True

    # Keep test runs away from real files
    STORAGE_PATH = ':memory:'
    DATASET_SOURCE = os.environ.get('TEST_DATASET_SOURCE') or str(BASE_DIR / 'tests' / 'data' / 'tickets.csv')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Production logging
    LOG_LEVEL = 'WARNING'

    @classmethod
    def init_app(cls, app):
        super().init_app(app)

        # Setup file logging
        if not app.debug:
            cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                cls.LOG_FILE,
                maxBytes=cls.LOG_MAX_BYTES,
                backupCount=cls.LOG_BACKUP_COUNT
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)

            app.logger.setLevel(logging.INFO)
            app.logger.info('Ticket Check-In System startup')


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """Get configuration based on name or the FLASK_ENV environment variable"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')
    return config.get(config_name, DevelopmentConfig)
