"""
Dataset Loader Module - Ticket Check-In System

Fetches the source ticket dataset as plain text. The source is either a
filesystem path or an ``http(s)://`` URL. Loading never fails from the
caller's point of view: any read or network error is logged and the
header-only dataset is returned instead, so the rest of the system simply
sees zero tickets.
"""

import logging
import os

import requests

from checkin.modules.errors import DatasetLoadError
from checkin.modules.record_store import EMPTY_DATASET


class DatasetLoader:
    """Loads ticket dataset text from a path or URL."""

    def __init__(self, source: str, timeout: float = 10.0):
        """
        Args:
            source (str): File path or http(s) URL of the dataset
            timeout (float): Network timeout in seconds for URL sources
        """
        self.source = str(source)
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(('http://', 'https://'))

    def fetch(self) -> str:
        """
        Read the dataset text.

        Raises:
            DatasetLoadError: If the source cannot be read
        """
        if self.is_remote:
            try:
                response = requests.get(self.source, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise DatasetLoadError(f"Could not fetch {self.source}: {e}") from e
            return self._decode(response)

        if not os.path.isfile(self.source):
            raise DatasetLoadError(f"Dataset file not found: {self.source}")
        try:
            with open(self.source, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DatasetLoadError(f"Could not read {self.source}: {e}") from e

    def _decode(self, response: requests.Response) -> str:
        """
        Decode a response body as UTF-8 unless the server names a charset.
        """
        encoding = 'utf-8'
        if 'charset' in response.headers.get('Content-Type', '').lower():
            encoding = requests.utils.get_encoding_from_headers(response.headers) or encoding
        try:
            return response.content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise DatasetLoadError(f"Could not decode {self.source} as {encoding}: {e}") from e

    def load(self) -> str:
        """
        Read the dataset text, substituting the header-only dataset on failure.

        Returns:
            str: Dataset text
        """
        try:
            text = self.fetch()
            self.logger.info(f"Loaded ticket dataset from {self.source}")
            return text
        except DatasetLoadError as e:
            self.logger.error(f"Error loading ticket dataset: {str(e)}")
            return EMPTY_DATASET
