"""Match RMM workstations to ScalePad warranty records."""

from dataclasses import dataclass, replace
from typing import Dict, Any, Iterable, List, Optional

from common.logging import get_logger
from collectors.rmm.mapping import RmmDevice
from collectors.scalepad.mapping import WarrantyRecord
from collectors.assessments.windows_11_readiness import ParsedDiagnostics, parse_output, UNKNOWN

logger = get_logger(__name__)

# Export columns, in the order downstream tooling expects
EXPORT_COLUMNS = (
    'Workstation',
    'Friendly Name',
    'Site',
    'Serial',
    'Windows 11 Status',
    'RAM',
    'CPU',
    'TPM Version',
    'SecureBoot',
    'OS Version',
    'Warranty Expires',
    'In ScalePad',
)


@dataclass(frozen=True)
class ClassifiedRecord:
    """One workstation's final report row."""
    workstation: str
    friendly_name: str
    site: str
    win11_ready: str
    ram: str
    cpu: str
    tpm: str
    secure_boot: str
    os: str
    serial: str = ''
    warranty_expires: str = UNKNOWN
    in_scalepad: bool = False

    def to_row(self) -> Dict[str, str]:
        """Report row keyed by the export column names."""
        return {
            'Workstation': self.workstation,
            'Friendly Name': self.friendly_name,
            'Site': self.site,
            'Serial': self.serial,
            'Windows 11 Status': self.win11_ready,
            'RAM': self.ram,
            'CPU': self.cpu,
            'TPM Version': self.tpm,
            'SecureBoot': self.secure_boot,
            'OS Version': self.os,
            'Warranty Expires': self.warranty_expires,
            'In ScalePad': 'Yes' if self.in_scalepad else 'No',
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ClassifiedRecord':
        """Rebuild a record from a stored report row."""
        def value(column: str, default: str = '') -> str:
            cell = row.get(column)
            return default if cell is None else str(cell)

        return cls(
            workstation=value('Workstation', 'Unknown'),
            friendly_name=value('Friendly Name'),
            site=value('Site'),
            serial=value('Serial'),
            win11_ready=value('Windows 11 Status', UNKNOWN),
            ram=value('RAM', UNKNOWN),
            cpu=value('CPU', UNKNOWN),
            tpm=value('TPM Version', UNKNOWN),
            secure_boot=value('SecureBoot', UNKNOWN),
            os=value('OS Version', UNKNOWN),
            warranty_expires=value('Warranty Expires', UNKNOWN),
            in_scalepad=value('In ScalePad') == 'Yes',
        )


def match_key(name: Optional[str]) -> str:
    """
    Normalize a device name for matching (lowercase, trimmed).

    Args:
        name: Machine name or ScalePad device name (can be None)

    Returns:
        str: Match key, empty for a missing name
    """
    if not name:
        return ''
    return name.strip().lower()


def classify_device(device: RmmDevice) -> ClassifiedRecord:
    """Parse a device's script output into a record without warranty data."""
    diagnostics: ParsedDiagnostics = parse_output(device.output)
    return ClassifiedRecord(
        workstation=device.machine_name or 'Unknown',
        friendly_name=device.friendly_name,
        site=device.site_name,
        win11_ready=diagnostics.win11_ready,
        ram=diagnostics.ram,
        cpu=diagnostics.cpu,
        tpm=diagnostics.tpm,
        secure_boot=diagnostics.secure_boot,
        os=diagnostics.os,
    )


def classify_devices(devices: Iterable[RmmDevice]) -> List[ClassifiedRecord]:
    return [classify_device(device) for device in devices]


def build_warranty_index(warranty: Iterable[WarrantyRecord]) -> Dict[str, WarrantyRecord]:
    """
    Index warranty records by match key, keeping the first record per name.

    Records without a name are not indexed.
    """
    index: Dict[str, WarrantyRecord] = {}
    for record in warranty:
        key = match_key(record.name)
        if key:
            index.setdefault(key, record)
    return index


def join_warranty(records: Iterable[ClassifiedRecord], warranty: Iterable[WarrantyRecord]) -> List[ClassifiedRecord]:
    """
    Attach ScalePad serial and warranty expiry to each classified record.

    Args:
        records: Classified records (warranty fields still at defaults)
        warranty: Normalized ScalePad rows, in export order

    Returns:
        list: New records; unmatched ones keep serial '', expiry 'Unknown'
    """
    index = build_warranty_index(warranty)
    joined = []
    matched = 0

    for record in records:
        # 'Unknown' is the placeholder for a blank machine name, never a real match
        key = match_key(record.workstation) if record.workstation != 'Unknown' else ''
        found = index.get(key) if key else None
        if found is not None:
            matched += 1
            joined.append(replace(
                record,
                serial=found.serial,
                warranty_expires=found.expires or UNKNOWN,
                in_scalepad=True,
            ))
        else:
            joined.append(replace(record, serial='', warranty_expires=UNKNOWN, in_scalepad=False))

    logger.info("Warranty match complete", matched=matched, unmatched=len(joined) - matched)
    return joined
