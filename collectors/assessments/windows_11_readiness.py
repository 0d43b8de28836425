"""
Windows 11 Readiness Assessment

Parses the free-text output of the RMM Windows 11 readiness script into
hardware facts and assigns each workstation one readiness verdict.

The script output looks like:

    Memory: System_Memory=16GB :: PASS TPM: TPMVersion=2.0, 0, 1.38 :: PASS
    SecureBoot: Capable :: PASS Secure Boot is enabled :: PASS
    Processor: {Caption=Intel64 Family 6 Model 165 ...} :: PASS
    OsVersion: version=Microsoft Windows 10 Pro :: PASS Status : Supported

Parsing never raises: anything unrecognised is reported as 'Unknown', and a
machine that did not run the script is reported as 'Offline' throughout.
"""

import re
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Optional, Tuple

from common.logging import get_logger
from collectors.assessments.cpu_generation import resolve_generation, format_cpu_label

logger = get_logger(__name__)

# Verdicts
PASS = 'Pass'
FAIL = 'Fail'
UNSUPPORTED = 'Unsupported'
OFFLINE = 'Offline'
UNKNOWN = 'Unknown'

# Secure Boot states
SECURE_BOOT_ENABLED = 'Enabled'
SECURE_BOOT_DISABLED = 'Capable but Disabled'
SECURE_BOOT_NOT_CAPABLE = 'Not Capable'

OFFLINE_MARKER = 'Machine was offline'

MEMORY_PATTERN = re.compile(r'Memory:\s*System_Memory=(\d+)GB\s*::\s*(PASS|FAIL)', re.IGNORECASE)
TPM_PATTERN = re.compile(r'TPM:\s*TPMVersion=([^:]+)\s*::\s*(PASS|FAIL)', re.IGNORECASE)
OS_PATTERN = re.compile(r'OsVersion:\s*version=([^:]+)\s*::\s*(PASS|FAIL)', re.IGNORECASE)
OS_VENDOR_PATTERN = re.compile(r'Microsoft\s+', re.IGNORECASE)
CPU_PATTERN = re.compile(r'Caption=Intel64 Family 6 Model (\d+)', re.IGNORECASE)

SECURE_BOOT_CAPABLE_MARKER = 'SecureBoot: Capable :: PASS'
SECURE_BOOT_DISABLED_MARKER = 'Secure Boot is not enabled :: FAIL'
SECURE_BOOT_ENABLED_MARKER = 'Secure Boot is enabled :: PASS'

PASS_MARKER = ':: PASS'

# Explicit script verdicts, checked in this order
EXPLICIT_STATUS_MARKERS: Tuple[Tuple[str, str], ...] = (
    ('Status : Supported', 'supported'),
    ('Status : Unsupported', 'unsupported'),
    ('Status : Unknown', 'unknown'),
)


@dataclass(frozen=True)
class ParsedDiagnostics:
    """Hardware facts and verdict extracted from one script output."""
    win11_ready: str = UNKNOWN
    ram: str = UNKNOWN
    tpm: str = UNKNOWN
    cpu: str = UNKNOWN
    os: str = UNKNOWN
    secure_boot: str = UNKNOWN

    @classmethod
    def offline(cls) -> 'ParsedDiagnostics':
        return cls(
            win11_ready=OFFLINE,
            ram=OFFLINE,
            tpm=OFFLINE,
            cpu=OFFLINE,
            os=OFFLINE,
            secure_boot=OFFLINE,
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ComponentChecks:
    """Pass/fail flags for the four hardware gates."""
    memory: bool
    tpm: bool
    secure_boot_capable: bool
    processor: bool

    @property
    def all_passed(self) -> bool:
        return self.memory and self.tpm and self.secure_boot_capable and self.processor

    @property
    def hardware_failed(self) -> bool:
        """True when memory, TPM or processor failed (Secure Boot aside)."""
        return not (self.memory and self.tpm and self.processor)


@dataclass(frozen=True)
class VerdictInputs:
    """Everything the verdict rules look at."""
    checks: ComponentChecks
    explicit_status: Optional[str]
    secure_boot: str
    os: str


def is_offline_output(output_text: Optional[str]) -> bool:
    """True when the script did not run: empty output or the offline marker."""
    if not output_text or not isinstance(output_text, str):
        return True
    text = output_text.strip()
    return not text or OFFLINE_MARKER in text


def extract_ram(text: str) -> str:
    """Installed memory, reported even when it fails the minimum."""
    match = MEMORY_PATTERN.search(text)
    if match:
        return f"{match.group(1)}GB"
    return UNKNOWN


def extract_tpm(text: str) -> str:
    """TPM version; the script appends TPM revision levels after a comma, which are dropped."""
    match = TPM_PATTERN.search(text)
    if match:
        return match.group(1).split(',')[0].strip()
    return UNKNOWN


def extract_os(text: str) -> str:
    """OS version with the vendor name removed."""
    match = OS_PATTERN.search(text)
    if match:
        return OS_VENDOR_PATTERN.sub('', match.group(1), count=1).strip()
    return UNKNOWN


def extract_cpu(text: str) -> str:
    """Intel generation label from the processor caption."""
    match = CPU_PATTERN.search(text)
    if match:
        model = int(match.group(1))
        return format_cpu_label(model, resolve_generation(model))
    return UNKNOWN


def resolve_secure_boot(text: str) -> str:
    """
    Resolve the Secure Boot state from the three script markers.

    A capable machine without an explicit enabled/disabled line is
    treated as enabled.
    """
    if SECURE_BOOT_CAPABLE_MARKER not in text:
        return SECURE_BOOT_NOT_CAPABLE
    if SECURE_BOOT_ENABLED_MARKER in text:
        return SECURE_BOOT_ENABLED
    if SECURE_BOOT_DISABLED_MARKER in text:
        return SECURE_BOOT_DISABLED
    return SECURE_BOOT_ENABLED


def evaluate_components(text: str) -> ComponentChecks:
    """
    Evaluate the four hardware gates.

    These are plain substring checks against the whole output: a section
    counts as passed when its label is present and any ':: PASS' appears.
    """
    has_pass = PASS_MARKER in text
    return ComponentChecks(
        memory='Memory:' in text and has_pass,
        tpm='TPM:' in text and has_pass,
        secure_boot_capable=SECURE_BOOT_CAPABLE_MARKER in text,
        processor='Processor:' in text and has_pass,
    )


def find_explicit_status(text: str) -> Optional[str]:
    """
    Find the script's own verdict.

    Args:
        text: Script output

    Returns:
        str: 'supported', 'unsupported', 'unknown', or None
    """
    for marker, status in EXPLICIT_STATUS_MARKERS:
        if marker in text:
            return status
    return None


# Verdict rules, applied in order; the first one that returns a verdict wins

def rule_explicit_supported(inputs: VerdictInputs) -> Optional[str]:
    """The script said Supported: trust it."""
    if inputs.explicit_status == 'supported':
        return PASS
    return None


def rule_explicit_unsupported(inputs: VerdictInputs) -> Optional[str]:
    """The script said Unsupported: capable hardware means something else blocks it."""
    if inputs.explicit_status == 'unsupported':
        return UNSUPPORTED if inputs.checks.all_passed else FAIL
    return None


def rule_explicit_unknown(inputs: VerdictInputs) -> Optional[str]:
    if inputs.explicit_status == 'unknown':
        return OFFLINE
    return None


def rule_already_windows_11(inputs: VerdictInputs) -> Optional[str]:
    if 'Windows 11' in inputs.os and inputs.checks.all_passed:
        return PASS
    return None


def rule_all_components_passed(inputs: VerdictInputs) -> Optional[str]:
    """Hardware is capable; Secure Boot must actually be on to pass."""
    if inputs.checks.all_passed:
        return PASS if inputs.secure_boot == SECURE_BOOT_ENABLED else UNSUPPORTED
    return None


def rule_hardware_failed(inputs: VerdictInputs) -> Optional[str]:
    if inputs.checks.hardware_failed:
        return FAIL
    return None


def rule_secure_boot_only_failed(inputs: VerdictInputs) -> Optional[str]:
    if not inputs.checks.secure_boot_capable:
        return UNSUPPORTED
    return None


VERDICT_RULES: Tuple[Callable[[VerdictInputs], Optional[str]], ...] = (
    rule_explicit_supported,
    rule_explicit_unsupported,
    rule_explicit_unknown,
    rule_already_windows_11,
    rule_all_components_passed,
    rule_hardware_failed,
    rule_secure_boot_only_failed,
)


def determine_verdict(inputs: VerdictInputs) -> str:
    """Apply VERDICT_RULES in priority order; FAIL when none applies."""
    for rule in VERDICT_RULES:
        verdict = rule(inputs)
        if verdict is not None:
            return verdict
    return FAIL


def parse_output(output_text: Optional[str]) -> ParsedDiagnostics:
    """
    Parse one readiness script output into ParsedDiagnostics.

    Args:
        output_text: Raw text of the RMM Output column

    Returns:
        ParsedDiagnostics: Always fully populated
    """
    if is_offline_output(output_text):
        return ParsedDiagnostics.offline()

    text = output_text.strip()

    ram = extract_ram(text)
    tpm = extract_tpm(text)
    os_version = extract_os(text)
    secure_boot = resolve_secure_boot(text)
    cpu = extract_cpu(text)

    inputs = VerdictInputs(
        checks=evaluate_components(text),
        explicit_status=find_explicit_status(text),
        secure_boot=secure_boot,
        os=os_version,
    )
    verdict = determine_verdict(inputs)

    if ram == UNKNOWN and tpm == UNKNOWN and os_version == UNKNOWN and cpu == UNKNOWN:
        logger.debug("No hardware markers recognised in readiness output", verdict=verdict)

    return ParsedDiagnostics(
        win11_ready=verdict,
        ram=ram,
        tpm=tpm,
        cpu=cpu,
        os=os_version,
        secure_boot=secure_boot,
    )
