"""
Storage Manager Module - Ticket Check-In System

This module provides the small string key-value store that persists state
between dataset reloads (the server-side counterpart of browser local
storage). It is backed by SQLite, using thread-local connections so the
Flask development server can call it from any worker thread.

Features:
- SQLite connection management
- Idempotent schema creation
- get / set / remove of string values by key
- Transaction support
"""

import sqlite3
import logging
import os
import threading
from contextlib import contextmanager
from typing import List, Optional

MEMORY_DATABASE = ':memory:'


class StorageManager:
    """
    String key-value storage on top of SQLite.
    Values are opaque text; callers own their serialization.
    """

    def __init__(self, db_path: str = MEMORY_DATABASE):
        """
        Initialize the storage manager with the specified database path.

        Args:
            db_path (str): Path to the SQLite database file, or ``:memory:``
        """
        self.db_path = str(db_path)
        self.logger = logging.getLogger(__name__)
        self._local = threading.local()
        self._shared_connection = None

        if self.db_path != MEMORY_DATABASE:
            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

        self.initialize_storage()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=30.0
        )
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def get_connection(self):
        """
        Context manager for database connections.

        An in-memory database exists only for the connection that created it,
        so it is shared across threads; file databases get one connection per
        thread.

        Yields:
            sqlite3.Connection: Database connection object
        """
        if self.db_path == MEMORY_DATABASE:
            if self._shared_connection is None:
                self._shared_connection = self._connect()
            connection = self._shared_connection
        else:
            if not hasattr(self._local, 'connection'):
                self._local.connection = self._connect()
            connection = self._local.connection

        try:
            yield connection
        except Exception as e:
            connection.rollback()
            self.logger.error(f"Storage operation failed: {str(e)}")
            raise

    @contextmanager
    def transaction(self):
        """
        Context manager for transactions with automatic rollback on error.

        Yields:
            sqlite3.Connection: Database connection within transaction
        """
        with self.get_connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(f"Transaction rolled back: {str(e)}")
                raise

    def initialize_storage(self):
        """Create the key-value table. Safe to call repeatedly."""
        try:
            with self.transaction() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS key_value_store (
                        storage_key VARCHAR(100) PRIMARY KEY,
                        storage_value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
            self.logger.info(f"Key-value storage ready at {self.db_path}")

        except Exception as e:
            self.logger.error(f"Failed to initialize storage: {str(e)}")
            raise

    def get_item(self, key: str) -> Optional[str]:
        """
        Get a stored value by key.

        Args:
            key (str): Storage key

        Returns:
            str: Stored value, or None if the key is absent
        """
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT storage_value FROM key_value_store WHERE storage_key = ?",
                (key,)
            ).fetchone()
        return row['storage_value'] if row else None

    def set_item(self, key: str, value: str) -> None:
        """
        Insert or replace a stored value.

        Args:
            key (str): Storage key
            value (str): Text to store
        """
        with self.transaction() as conn:
            conn.execute("""
                INSERT INTO key_value_store (storage_key, storage_value)
                VALUES (?, ?)
                ON CONFLICT(storage_key) DO UPDATE SET
                    storage_value = excluded.storage_value,
                    updated_at = CURRENT_TIMESTAMP
            """, (key, value))

    def remove_item(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            bool: True if a value was removed
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM key_value_store WHERE storage_key = ?",
                (key,)
            )
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT storage_key FROM key_value_store ORDER BY storage_key"
            ).fetchall()
        return [row['storage_key'] for row in rows]

    def close_all_connections(self):
        """Close open connections for cleanup."""
        try:
            if hasattr(self._local, 'connection'):
                self._local.connection.close()
                del self._local.connection
            if self._shared_connection is not None:
                self._shared_connection.close()
                self._shared_connection = None
        except Exception as e:
            self.logger.error(f"Error closing connections: {str(e)}")
