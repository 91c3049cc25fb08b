"""
Tests for ruleset loading
"""

import dataclasses
import json

import pytest

from wafprint.core.catalog import RuleCatalog
from wafprint.core.evaluator import check_waf
from wafprint.core.exceptions import CatalogLoadError
from wafprint.core.model import ResponseSignature
from wafprint.data.rules import DEFAULT_RULES_PATH


RULESET = {
    "wafs": [
        {
            "name": "Cloudflare",
            "manufacturer": "Cloudflare Inc.",
            "rules": {
                "headers": [{"name": "cf-ray", "pattern": ".+?"}],
                "content": [{"pattern": "attention required", "attack_required": True}],
            },
        },
        {
            "name": "Broken",
            "manufacturer": "",
            "rules": {
                "content": [{"pattern": "unbalanced("}],
                "helper_functions": [
                    {"rules": {"status": [{"code": 406}], "reason": [{"pattern": "Not Acceptable"}]}}
                ],
            },
        },
    ]
}


class TestRuleCatalog:
    """Test cases for RuleCatalog loading and validation."""

    @pytest.fixture
    def rules_file(self, tmp_path):
        path = tmp_path / "waf_rules.json"
        path.write_text(json.dumps(RULESET), encoding="utf-8")
        return path

    def test_load_from_file_preserves_order(self, rules_file):
        catalog = RuleCatalog.from_file(rules_file)
        assert catalog.names == ["Cloudflare", "Broken"]
        assert len(catalog) == 2
        assert catalog.source == str(rules_file)

    def test_entry_fields(self, rules_file):
        cloudflare = RuleCatalog.from_file(rules_file).get("Cloudflare")
        assert cloudflare.vendor == "Cloudflare Inc."
        assert cloudflare.rules.headers[0].match_target == "cf-ray"
        assert cloudflare.rules.content[0].attack_required is True
        assert cloudflare.rules.cookies == ()
        assert cloudflare.rules.kinds == ["headers", "content"]
        assert cloudflare.rules.attack_gated_count == 1

    def test_literal_fallback_is_reported(self, rules_file):
        catalog = RuleCatalog.from_file(rules_file)
        assert catalog.literal_patterns() == [("Broken", "content", "unbalanced(")]

    def test_entries_are_immutable(self, rules_file):
        catalog = RuleCatalog.from_file(rules_file)
        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog[0].name = "Other"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogLoadError, match="not found"):
            RuleCatalog.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{ not json", encoding="utf-8")
        with pytest.raises(CatalogLoadError, match="Invalid JSON"):
            RuleCatalog.from_file(path)

    @pytest.mark.parametrize("data", [
        [],
        {"waf": []},
        {"wafs": [{"manufacturer": "x", "rules": {}}]},
        {"wafs": [{"name": "A", "rules": {"headers": [{"pattern": "x"}]}}]},
        {"wafs": [{"name": "A", "rules": {"content": "not a list"}}]},
        {"wafs": [{"name": "A", "rules": {"content": [{"attack_required": True}]}}]},
        {"wafs": [{"name": "A", "rules": {"status": [{"code": "403"}]}}]},
        {"wafs": [{"name": "A", "rules": {"status": [{"code": True}]}}]},
        {"wafs": [{"name": "A", "rules": {"helper_functions": [{}]}}]},
        {"wafs": [{"name": "A", "rules": {"helper_functions": [
            {"rules": {"helper_functions": [{"rules": {}}]}}
        ]}}]},
    ])
    def test_invalid_rulesets_rejected(self, data):
        with pytest.raises(CatalogLoadError):
            RuleCatalog.from_dict(data)

    def test_error_names_the_failing_entry(self):
        data = {"wafs": [{"name": "Good", "rules": {}}, {"name": "Bad", "rules": {"status": [{"code": "x"}]}}]}
        with pytest.raises(CatalogLoadError, match=r"wafs\[1\]: Bad"):
            RuleCatalog.from_dict(data)


class TestBundledRules:
    """Sanity checks on the shipped ruleset."""

    @pytest.fixture(scope="class")
    def catalog(self):
        return RuleCatalog.from_file(DEFAULT_RULES_PATH)

    def test_loads(self, catalog):
        assert len(catalog) >= 120
        assert len(set(catalog.names)) == len(catalog.names)

    def test_every_pattern_is_a_regex(self, catalog):
        assert catalog.literal_patterns() == []

    def test_cloudflare_is_first_match_for_cf_ray(self, catalog):
        sig = ResponseSignature.build(200, "OK", [("cf-ray", "1234")], "")
        first = next(waf.name for waf in catalog if check_waf(sig, waf))
        assert first == "Cloudflare"

    def test_plain_response_matches_nothing(self, catalog):
        sig = ResponseSignature.build(200, "OK", [("Server", "nginx"), ("Content-Type", "text/html")],
                                      "<html><body>Welcome</body></html>")
        assert [waf.name for waf in catalog if check_waf(sig, waf)] == []

    @pytest.mark.parametrize("headers, expected", [
        ([("X-Azure-Ref", "0abc")], "Azure Front Door"),
        ([("Server", "Qrator")], "Qrator"),
        ([("X-Backside-Transport", "OK OK")], "IBM DataPower"),
    ])
    def test_header_only_vendors(self, catalog, headers, expected):
        sig = ResponseSignature.build(200, "OK", headers, "")
        assert [waf.name for waf in catalog if check_waf(sig, waf)] == [expected]
