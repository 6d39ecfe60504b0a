"""
Record Store Module - Ticket Check-In System

This module owns the authoritative list of ticket records. Records are loaded
from the CSV-like text form of the ticket dataset, optionally reconciled with
the persisted attendance overlay, and serialized back to the same text form
after every mutation.

The text format is positional and has no quoting support:

    Ticket ID,Name,Attended[,Email]
    A1,Alice,false
    A2,Bob,true,bob@example.com

Commas inside a name or email corrupt the row. This is a known limitation of
the dataset format and is not worked around here.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_HEADER = 'Ticket ID,Name,Attended'
EMPTY_DATASET = DEFAULT_HEADER + '\n'


@dataclass
class TicketRecord:
    """
    Data class for a single ticket row.

    Rows parsed from dataset text remember their attended cell and their
    source line. Until attendance is changed the row serializes back to its
    source line unchanged, and only a literal ``false`` cell is verifiable.
    Any other cell (``yes``, empty, missing) displays as not attended but
    counts as already used.
    """
    ticket_id: str
    name: str
    attended: bool = False
    email: Optional[str] = None
    attended_cell: Optional[str] = field(default=None, compare=False, repr=False)
    source_line: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def verifiable(self) -> bool:
        """True if verification may mark this ticket as attended."""
        if self.attended:
            return False
        return self.attended_cell is None or self.attended_cell == 'false'

    def set_attended(self, attended: bool):
        """Change attendance; the row is re-rendered from its fields afterwards."""
        self.attended = bool(attended)
        self.attended_cell = None
        self.source_line = None

    def to_line(self) -> str:
        if self.source_line is not None and self.attended == (self.attended_cell == 'true'):
            return self.source_line

        columns = [self.ticket_id, self.name, 'true' if self.attended else 'false']
        if self.email is not None:
            columns.append(self.email)
        return ','.join(columns)

    def to_dict(self) -> Dict[str, object]:
        return {
            'ticketId': self.ticket_id,
            'name': self.name,
            'attended': self.attended,
            'attendedLabel': 'Yes' if self.attended else 'No',
            'email': self.email
        }


class RecordStore:
    """
    Ordered, in-memory collection of ticket records.

    Order is source order. The header line is kept verbatim so that
    serialization reproduces it exactly.
    """

    def __init__(self, records: Optional[List[TicketRecord]] = None,
                 header: str = DEFAULT_HEADER):
        self.header = header
        self.records = list(records) if records else []
        self.logger = logging.getLogger(__name__)

    @classmethod
    def parse(cls, text: Optional[str]) -> 'RecordStore':
        """
        Build a store from dataset text.

        The first non-empty line is the header and is excluded from the
        records. Each remaining line is split on commas positionally:
        ticket id, name, attended (only the literal ``true`` is truthy) and
        an optional email column.

        Args:
            text (str): Dataset text

        Returns:
            RecordStore: Parsed store, empty when the text holds no data rows
        """
        if not text or not text.strip():
            return cls()

        lines = [line.rstrip('\r') for line in text.strip().split('\n')]
        header = lines[0]
        records = []

        for line in lines[1:]:
            if not line.strip():
                continue
            columns = line.split(',')
            while len(columns) < 3:
                columns.append('')
            records.append(TicketRecord(
                ticket_id=columns[0],
                name=columns[1],
                attended=columns[2] == 'true',
                email=columns[3] if len(columns) > 3 else None,
                attended_cell=columns[2],
                source_line=line
            ))

        return cls(records, header=header)

    def serialize(self) -> str:
        """
        Render the store back to dataset text.

        Returns:
            str: Header plus one line per record, newline terminated
        """
        lines = [self.header] + [record.to_line() for record in self.records]
        return '\n'.join(lines) + '\n'

    def merge(self, overlay: Dict[str, bool]) -> int:
        """
        Overwrite ``attended`` for every record whose id is in the overlay.
        Records already holding the overlay value keep their source text.

        Args:
            overlay (Dict[str, bool]): Mapping of ticket id to attendance

        Returns:
            int: Number of records whose value came from the overlay
        """
        merged = 0
        for record in self.records:
            if record.ticket_id in overlay:
                if record.attended != bool(overlay[record.ticket_id]):
                    record.set_attended(overlay[record.ticket_id])
                merged += 1

        if merged:
            self.logger.info(f"Merged attendance overlay into {merged} ticket(s)")
        return merged

    def attendance_overlay(self) -> Dict[str, bool]:
        """Full ``ticket id -> attended`` mapping for every record."""
        return {record.ticket_id: record.attended for record in self.records}

    def find(self, ticket_id: str, name: str) -> Optional[TicketRecord]:
        """First record matching both id and name exactly."""
        for record in self.records:
            if record.ticket_id == ticket_id and record.name == name:
                return record
        return None

    def get_by_id(self, ticket_id: str) -> Optional[TicketRecord]:
        for record in self.records:
            if record.ticket_id == ticket_id:
                return record
        return None

    def search(self, query: str) -> List[TicketRecord]:
        """
        Case-insensitive substring search over id, name and email.

        Args:
            query (str): Search text; empty matches every record

        Returns:
            List[TicketRecord]: Matches in store order
        """
        needle = (query or '').lower()
        if not needle:
            return list(self.records)

        matches = []
        for record in self.records:
            fields = [record.ticket_id, record.name]
            if record.email is not None:
                fields.append(record.email)
            if any(needle in field.lower() for field in fields):
                matches.append(record)
        return matches

    def set_attended(self, ticket_id: str, attended: bool) -> bool:
        """
        Overwrite attendance by id alone. This is the admin escape hatch and
        does not go through verification.

        Returns:
            bool: True if the ticket exists
        """
        record = self.get_by_id(ticket_id)
        if record is None:
            return False
        record.set_attended(attended)
        return True

    def get_stats(self) -> Dict[str, int]:
        attended = sum(1 for record in self.records if record.attended)
        return {
            'total': len(self.records),
            'attended': attended,
            'remaining': len(self.records) - attended
        }

    def __len__(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)
