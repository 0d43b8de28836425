"""ScalePad warranty report normalization and mapping."""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Any, Iterable, List, Optional

from dateutil import parser as date_parser

from collectors.rmm.mapping import lookup_column


NAME_HEADERS = ('Name', 'Device name', 'Hostname', 'Computer name')
SERIAL_HEADERS = ('Serial', 'Serial number', 'Serial #')
EXPIRES_HEADERS = ('Expires', 'Warranty expires', 'Warranty expiration', 'Warranty end date')

# Headers the upload validator looks for in a ScalePad export
SCALEPAD_EXPECTED_COLUMNS = ('Serial', 'Expires', 'Warranty Expires')

EXPIRED_MARKER = 'Expired'


@dataclass(frozen=True)
class WarrantyRecord:
    """One device row from the ScalePad export."""
    name: str = ''
    serial: str = ''
    expires: str = ''


def normalize_warranty_row(row: Dict[str, Any]) -> WarrantyRecord:
    """Map a raw ScalePad row to a WarrantyRecord."""
    return WarrantyRecord(
        name=lookup_column(row, NAME_HEADERS),
        serial=lookup_column(row, SERIAL_HEADERS),
        expires=lookup_column(row, EXPIRES_HEADERS),
    )


def normalize_warranty_rows(rows: Optional[Iterable[Dict[str, Any]]]) -> List[WarrantyRecord]:
    """Normalize every dict row of a ScalePad export."""
    if not rows:
        return []
    return [normalize_warranty_row(row) for row in rows if isinstance(row, dict)]


def parse_expiry(expires: str) -> Optional[date]:
    """
    Parse a warranty expiration string.

    Args:
        expires: Expiration as exported (e.g. '2026-03-31', '03/31/2026')

    Returns:
        date: Parsed date, or None when the text is not a date
    """
    if not expires:
        return None
    try:
        return date_parser.parse(expires).date()
    except (ValueError, OverflowError):
        return None


def is_warranty_expired(expires: str, as_of: date) -> bool:
    """
    Decide whether a warranty has lapsed.

    The export writes the literal 'Expired' for lapsed warranties; dated
    values are compared against the report date.
    """
    if not expires:
        return False
    if expires.strip().lower() == EXPIRED_MARKER.lower():
        return True
    expiry = parse_expiry(expires)
    return expiry is not None and expiry < as_of
