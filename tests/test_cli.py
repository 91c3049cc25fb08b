"""
Tests for the wafprint command-line interface
"""

import json
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from wafprint.cli import app
from wafprint.core.detector import DetectionReport, WAFDetector
from wafprint.core.exceptions import TransportError

runner = CliRunner()


def report(detected=(), phases=None):
    return DetectionReport(
        target="example.com",
        url="https://example.com/",
        detected=list(detected),
        phases=phases or {},
    )


class TestDetectCommand:
    """Test cases for `wafprint detect`."""

    def test_reports_detected_waf(self):
        found = report(["Cloudflare"], {"Cloudflare": "baseline"})
        with patch.object(WAFDetector, "identify", new=AsyncMock(return_value=found)) as identify:
            result = runner.invoke(app, ["detect", "example.com", "-q", "--find-all", "--timeout", "5000"])

        assert result.exit_code == 0
        assert "WAF Detected!" in result.output
        assert "Cloudflare (Cloudflare Inc.)" in result.output
        assert "The site example.com is behind Cloudflare WAF." in result.output

        options = identify.await_args.args[1]
        assert options.find_all is True
        assert options.check_attacks is True
        assert options.timeout == 5000

    def test_reports_no_waf(self):
        with patch.object(WAFDetector, "identify", new=AsyncMock(return_value=report())) as identify:
            result = runner.invoke(app, ["detect", "example.com", "-q", "--no-attack"])

        assert result.exit_code == 0
        assert "No WAF detected on example.com" in result.output
        assert identify.await_args.args[1].check_attacks is False

    def test_transport_error_exits_with_1(self):
        failing = AsyncMock(side_effect=TransportError("Request to https://example.com/ failed"))
        with patch.object(WAFDetector, "identify", new=failing):
            result = runner.invoke(app, ["detect", "example.com", "-q"])

        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_non_positive_timeout_uses_default(self):
        with patch.object(WAFDetector, "identify", new=AsyncMock(return_value=report())) as identify:
            result = runner.invoke(app, ["detect", "example.com", "-q", "--timeout", "0"])

        assert result.exit_code == 0
        assert identify.await_args.args[1].timeout == 10000

    def test_malformed_target_exits_with_1(self):
        result = runner.invoke(app, ["detect", "http://[::1", "-q"])

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "Invalid target" in result.output

    def test_output_writes_json_record(self, tmp_path):
        out = tmp_path / "result.json"
        found = report(["Cloudflare"], {"Cloudflare": "baseline"})
        with patch.object(WAFDetector, "identify", new=AsyncMock(return_value=found)):
            result = runner.invoke(app, ["detect", "example.com", "-q", "--output", str(out)])

        assert result.exit_code == 0
        records = json.loads(out.read_text(encoding="utf-8"))
        assert records[0]["detected"] is True
        assert records[0]["firewalls"] == [
            {"name": "Cloudflare", "manufacturer": "Cloudflare Inc.", "phase": "baseline"}
        ]

    def test_bad_rules_file_exits_with_1(self, tmp_path):
        rules = tmp_path / "rules.json"
        rules.write_text("[]", encoding="utf-8")
        result = runner.invoke(app, ["detect", "example.com", "-q", "--rules", str(rules)])

        assert result.exit_code == 1


class TestCatalogCommands:
    """Test cases for `list-wafs` and `check-rules`."""

    def test_list_wafs(self):
        result = runner.invoke(app, ["list-wafs"])

        assert result.exit_code == 0
        assert "Cloudflare" in result.output
        assert "WAF signatures" in result.output

    def test_check_rules_reports_literal_fallback(self, tmp_path):
        rules = tmp_path / "rules.json"
        rules.write_text(json.dumps({"wafs": [
            {"name": "Broken", "manufacturer": "", "rules": {"content": [{"pattern": "oops("}]}},
            {"name": "Named", "manufacturer": "", "rules": {
                "headers": [{"name": "X-Test-(A|B)", "pattern": ".+"}]
            }},
        ]}), encoding="utf-8")

        result = runner.invoke(app, ["check-rules", "--rules", str(rules)])

        assert result.exit_code == 0
        assert "oops(" in result.output
        assert "X-Test-(A|B)" in result.output

    def test_check_rules_bundled(self):
        result = runner.invoke(app, ["check-rules"])

        assert result.exit_code == 0
        assert "All patterns compile" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "wafprint v" in result.output
