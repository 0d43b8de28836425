"""
Readiness rollups for win11-readiness-hub

Reduces a set of classified workstation records to the counts, percentages
and breakdowns shown on the dashboard and in exported reports.
"""
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Any

from common.logging import get_logger
from collectors.assessments.windows_11_readiness import (
    PASS, FAIL, UNSUPPORTED,
    SECURE_BOOT_ENABLED, SECURE_BOOT_DISABLED, SECURE_BOOT_NOT_CAPABLE,
)
from collectors.checks.warranty_match import ClassifiedRecord

logger = get_logger(__name__)

UNKNOWN_SITE = 'Unknown'

READINESS_BUCKETS = {
    PASS: 'compatible',
    FAIL: 'not_compatible',
    UNSUPPORTED: 'unsupported',
}

SECURE_BOOT_BUCKETS = {
    SECURE_BOOT_ENABLED: 'capable_enabled',
    SECURE_BOOT_DISABLED: 'capable_disabled',
    SECURE_BOOT_NOT_CAPABLE: 'not_capable',
}


def percentage(count: int, total: int) -> int:
    """
    Whole-number percentage, rounding halves up; 0 for an empty set.

    Args:
        count: Number of matching records
        total: Number of records

    Returns:
        int: Rounded percentage
    """
    if total <= 0:
        return 0
    value = Decimal(count) * 100 / Decimal(total)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def readiness_bucket(verdict: str) -> str:
    """Map a verdict to its summary bucket; Offline and Unknown share one."""
    return READINESS_BUCKETS.get(verdict, 'offline')


def secure_boot_bucket(state: str) -> str:
    return SECURE_BOOT_BUCKETS.get(state, 'offline')


@dataclass
class ReadinessCounts:
    """Four-way verdict split for a set of records."""
    total: int = 0
    compatible: int = 0
    not_compatible: int = 0
    unsupported: int = 0
    offline: int = 0

    def add(self, verdict: str) -> None:
        self.total += 1
        bucket = readiness_bucket(verdict)
        setattr(self, bucket, getattr(self, bucket) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'compatible': self.compatible,
            'notCompatible': self.not_compatible,
            'unsupported': self.unsupported,
            'offline': self.offline,
        }


@dataclass
class ReportSummary(ReadinessCounts):
    """Fleet-wide counts plus rounded percentages."""

    @property
    def compatible_percentage(self) -> int:
        return percentage(self.compatible, self.total)

    @property
    def not_compatible_percentage(self) -> int:
        return percentage(self.not_compatible, self.total)

    @property
    def unsupported_percentage(self) -> int:
        return percentage(self.unsupported, self.total)

    @property
    def offline_percentage(self) -> int:
        return percentage(self.offline, self.total)

    def to_dict(self) -> Dict[str, int]:
        summary = super().to_dict()
        summary.update({
            'compatiblePercentage': self.compatible_percentage,
            'notCompatiblePercentage': self.not_compatible_percentage,
            'unsupportedPercentage': self.unsupported_percentage,
            'offlinePercentage': self.offline_percentage,
        })
        return summary


@dataclass
class SecureBootStats:
    """Secure Boot state counts; Offline and Unknown share one bucket."""
    capable_enabled: int = 0
    capable_disabled: int = 0
    not_capable: int = 0
    offline: int = 0

    def add(self, state: str) -> None:
        bucket = secure_boot_bucket(state)
        setattr(self, bucket, getattr(self, bucket) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            'capableEnabled': self.capable_enabled,
            'capableDisabled': self.capable_disabled,
            'notCapable': self.not_capable,
            'offline': self.offline,
        }


@dataclass
class ReadinessRollup:
    """Everything derived from one record set."""
    summary: ReportSummary = field(default_factory=ReportSummary)
    secure_boot: SecureBootStats = field(default_factory=SecureBootStats)
    sites: Dict[str, ReadinessCounts] = field(default_factory=dict)
    os_counts: Counter = field(default_factory=Counter)
    cpu_counts: Counter = field(default_factory=Counter)
    ram_counts: Counter = field(default_factory=Counter)

    def site_breakdown(self) -> List[Dict[str, Any]]:
        """Per-site rows in first-seen order."""
        return [
            {'site': site, **counts.to_dict()}
            for site, counts in self.sites.items()
        ]


def calculate_rollup(records: Iterable[ClassifiedRecord]) -> ReadinessRollup:
    """
    Reduce classified records to a ReadinessRollup.

    Args:
        records: Classified and warranty-joined records

    Returns:
        ReadinessRollup: Counts, percentages and breakdowns
    """
    rollup = ReadinessRollup()

    for record in records:
        rollup.summary.add(record.win11_ready)
        rollup.secure_boot.add(record.secure_boot)

        site = record.site or UNKNOWN_SITE
        if site not in rollup.sites:
            rollup.sites[site] = ReadinessCounts()
        rollup.sites[site].add(record.win11_ready)

        rollup.os_counts[record.os or 'Unknown'] += 1
        rollup.cpu_counts[record.cpu or 'Unknown'] += 1
        rollup.ram_counts[record.ram or 'Unknown'] += 1

    logger.debug("Readiness rollup calculated", **rollup.summary.to_dict())
    return rollup
