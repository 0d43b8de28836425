"""
Tests for the Windows 11 readiness output parser
"""
import pytest

from collectors.assessments.windows_11_readiness import (
    ComponentChecks, VerdictInputs, ParsedDiagnostics,
    parse_output, determine_verdict, find_explicit_status, resolve_secure_boot,
    evaluate_components, extract_ram, extract_tpm, extract_os, extract_cpu,
    PASS, FAIL, UNSUPPORTED, OFFLINE, UNKNOWN,
    SECURE_BOOT_ENABLED, SECURE_BOOT_DISABLED, SECURE_BOOT_NOT_CAPABLE,
)

from tests.samples import READY_OUTPUT, SECURE_BOOT_OFF_OUTPUT, OLD_HARDWARE_OUTPUT

ALL_COMPONENTS = (
    "Memory: System_Memory=16GB :: PASS TPM: TPMVersion=2.0, 0, 1.38 :: PASS "
    "SecureBoot: Capable :: PASS Secure Boot is enabled :: PASS "
    "Processor: {Caption=Intel64 Family 6 Model 183} :: PASS "
    "OsVersion: version=Microsoft Windows 10 Pro :: PASS"
)


class TestOfflineDetection:
    """Offline and empty output"""

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t "])
    def test_empty_output_is_offline(self, text):
        """Empty or whitespace-only output reports every field Offline"""
        assert parse_output(text) == ParsedDiagnostics.offline()

    def test_offline_marker_wins_over_other_markers(self):
        """The offline marker short-circuits even well-formed output"""
        result = parse_output("Machine was offline " + READY_OUTPUT)

        assert result.to_dict() == {
            'win11_ready': OFFLINE,
            'ram': OFFLINE,
            'tpm': OFFLINE,
            'cpu': OFFLINE,
            'os': OFFLINE,
            'secure_boot': OFFLINE,
        }

    def test_unrecognised_output_is_unknown(self):
        """Text without any marker never raises and falls back to Unknown"""
        result = parse_output("script error: access denied")

        assert result.ram == UNKNOWN
        assert result.tpm == UNKNOWN
        assert result.cpu == UNKNOWN
        assert result.os == UNKNOWN
        assert result.secure_boot == SECURE_BOOT_NOT_CAPABLE
        assert result.win11_ready == FAIL


class TestFieldExtraction:
    """Hardware fact extraction"""

    def test_ram_reported_even_when_failing(self):
        assert extract_ram("Memory: System_Memory=4GB :: FAIL") == "4GB"

    def test_ram_case_insensitive(self):
        assert extract_ram("memory: system_memory=32gb :: pass") == "32GB"

    def test_ram_missing(self):
        assert extract_ram("Memory: unknown") == UNKNOWN

    def test_tpm_drops_text_after_comma(self):
        assert extract_tpm("TPM: TPMVersion=2.0, 0, 1.38 :: PASS") == "2.0"
        assert extract_tpm("TPM: TPMVersion=2.0,x :: PASS") == "2.0"

    def test_tpm_without_comma(self):
        assert extract_tpm("TPM: TPMVersion=1.2 :: FAIL") == "1.2"

    def test_os_strips_vendor(self):
        assert extract_os("OsVersion: version=Microsoft Windows 11 Pro :: PASS") == "Windows 11 Pro"

    def test_os_without_vendor(self):
        assert extract_os("OsVersion: version=Windows 10 Home :: FAIL") == "Windows 10 Home"

    def test_cpu_label(self):
        assert extract_cpu("Caption=Intel64 Family 6 Model 165 Stepping 2") == "Intel 12th Gen (Model 165)"

    def test_cpu_unknown_generation(self):
        assert extract_cpu("Caption=Intel64 Family 6 Model 15") == "Intel Unknown Gen (Model 15)"

    def test_cpu_non_intel(self):
        assert extract_cpu("Caption=AMD64 Family 25 Model 80") == UNKNOWN


class TestSecureBoot:
    """Secure Boot state resolution"""

    def test_capable_and_enabled(self):
        text = "SecureBoot: Capable :: PASS Secure Boot is enabled :: PASS"
        assert resolve_secure_boot(text) == SECURE_BOOT_ENABLED

    def test_capable_and_disabled(self):
        text = "SecureBoot: Capable :: PASS Secure Boot is not enabled :: FAIL"
        assert resolve_secure_boot(text) == SECURE_BOOT_DISABLED

    def test_enabled_marker_beats_disabled_marker(self):
        text = ("SecureBoot: Capable :: PASS Secure Boot is not enabled :: FAIL "
                "Secure Boot is enabled :: PASS")
        assert resolve_secure_boot(text) == SECURE_BOOT_ENABLED

    def test_capable_without_explicit_state_is_enabled(self):
        assert resolve_secure_boot("SecureBoot: Capable :: PASS") == SECURE_BOOT_ENABLED

    def test_disabled_marker_without_capability(self):
        """Capable but Disabled needs the capable marker"""
        assert resolve_secure_boot("Secure Boot is not enabled :: FAIL") == SECURE_BOOT_NOT_CAPABLE

    def test_not_capable(self):
        assert resolve_secure_boot("SecureBoot: Not Capable :: FAIL") == SECURE_BOOT_NOT_CAPABLE


class TestExplicitStatus:
    """Script's own verdict"""

    def test_status_markers(self):
        assert find_explicit_status("Status : Supported") == 'supported'
        assert find_explicit_status("Status : Unsupported") == 'unsupported'
        assert find_explicit_status("Status : Unknown") == 'unknown'
        assert find_explicit_status("no status here") is None

    def test_status_marker_must_be_in_text(self):
        assert find_explicit_status("Supported") is None
        assert find_explicit_status("Status: Supported") is None


class TestVerdict:
    """Readiness verdict precedence"""

    def test_supported_always_passes(self):
        """Status : Supported wins regardless of component markers"""
        result = parse_output("Memory: System_Memory=2GB :: FAIL Status : Supported")
        assert result.win11_ready == PASS

    def test_unsupported_with_all_components_passed(self):
        result = parse_output(ALL_COMPONENTS + " Status : Unsupported")
        assert result.win11_ready == UNSUPPORTED

    @pytest.mark.parametrize("missing", ["Memory:", "TPM:", "SecureBoot: Capable :: PASS", "Processor:"])
    def test_unsupported_with_missing_component(self, missing):
        text = ALL_COMPONENTS.replace(missing, "") + " Status : Unsupported"
        assert parse_output(text).win11_ready == FAIL

    def test_unknown_status_is_offline(self):
        result = parse_output(ALL_COMPONENTS + " Status : Unknown")
        assert result.win11_ready == OFFLINE
        assert result.ram == "16GB"

    def test_already_on_windows_11(self):
        text = ALL_COMPONENTS.replace("Windows 10 Pro", "Windows 11 Pro").replace(
            "Secure Boot is enabled :: PASS", "Secure Boot is not enabled :: FAIL")
        result = parse_output(text)
        assert result.os == "Windows 11 Pro"
        assert result.win11_ready == PASS

    def test_all_passed_with_secure_boot_enabled(self):
        assert parse_output(ALL_COMPONENTS).win11_ready == PASS

    def test_all_passed_with_secure_boot_disabled(self):
        result = parse_output(SECURE_BOOT_OFF_OUTPUT)
        assert result.secure_boot == SECURE_BOOT_DISABLED
        assert result.win11_ready == UNSUPPORTED

    def test_hardware_failure(self):
        text = "Memory: System_Memory=4GB :: FAIL TPM: TPMVersion=2.0 :: FAIL SecureBoot: Capable :: PASS"
        assert parse_output(text).win11_ready == FAIL

    def test_only_secure_boot_capability_missing(self):
        text = ALL_COMPONENTS.replace("SecureBoot: Capable :: PASS ", "")
        assert parse_output(text).win11_ready == UNSUPPORTED

    def test_determine_verdict_from_inputs(self):
        inputs = VerdictInputs(
            checks=ComponentChecks(memory=True, tpm=True, secure_boot_capable=True, processor=True),
            explicit_status=None,
            secure_boot=SECURE_BOOT_ENABLED,
            os=UNKNOWN,
        )
        assert determine_verdict(inputs) == PASS

        inputs = VerdictInputs(
            checks=ComponentChecks(memory=False, tpm=True, secure_boot_capable=True, processor=True),
            explicit_status=None,
            secure_boot=SECURE_BOOT_ENABLED,
            os=UNKNOWN,
        )
        assert determine_verdict(inputs) == FAIL

    def test_component_checks_are_substring_checks(self):
        """Any ':: PASS' in the output satisfies every labelled gate"""
        checks = evaluate_components(OLD_HARDWARE_OUTPUT)
        assert checks.memory is True
        assert checks.tpm is True
        assert checks.processor is True
        assert checks.secure_boot_capable is False
        assert checks.all_passed is False
        assert checks.hardware_failed is False


class TestEndToEnd:
    """Full parse of realistic script output"""

    def test_supported_workstation(self):
        text = ("Memory: System_Memory=16GB :: PASS TPM: TPMVersion=2.0,x :: PASS "
                "SecureBoot: Capable :: PASS Secure Boot is enabled :: PASS Processor: :: PASS "
                "Status : Supported Caption=Intel64 Family 6 Model 165")
        result = parse_output(text)

        assert result.ram == "16GB"
        assert result.tpm == "2.0"
        assert result.secure_boot == SECURE_BOOT_ENABLED
        assert result.win11_ready == PASS
        assert result.cpu == "Intel 12th Gen (Model 165)"
        assert result.os == UNKNOWN

    def test_ready_fixture_output(self):
        result = parse_output(READY_OUTPUT)

        assert result == ParsedDiagnostics(
            win11_ready=PASS,
            ram="16GB",
            tpm="2.0",
            cpu="Intel 12th Gen (Model 165)",
            os="Windows 10 Pro",
            secure_boot=SECURE_BOOT_ENABLED,
        )

    def test_old_hardware_output(self):
        result = parse_output(OLD_HARDWARE_OUTPUT)

        assert result.win11_ready == FAIL
        assert result.ram == "4GB"
        assert result.tpm == "1.2"
        assert result.cpu == "Intel 3th Gen (Model 58)"
        assert result.secure_boot == SECURE_BOOT_NOT_CAPABLE
