"""
Exception hierarchy for the ticket check-in system.

These are raised inside the managers and translated into result dictionaries
or safe defaults at the manager boundary. None of them is fatal to the
application.
"""


class CheckinError(Exception):
    """Base class for check-in errors."""


class DatasetLoadError(CheckinError):
    """The source ticket dataset could not be read."""


class OverlayError(CheckinError):
    """The persisted attendance overlay is missing required structure."""


class PayloadFormatError(CheckinError):
    """Decoded QR text is not a ``{ticketId, name}`` JSON object."""
