"""
Report Generation Utilities for wafprint
JSON result records and catalog listings
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from ..core.catalog import RuleCatalog
from ..core.detector import DetectionReport


def build_result_record(report: DetectionReport,
                        catalog: Optional[RuleCatalog] = None) -> Dict[str, Any]:
    """Build a JSON-ready record for one detection call."""
    firewalls = []
    for name in report.detected:
        entry = catalog.get(name) if catalog is not None else None
        firewalls.append({
            "name": name,
            "manufacturer": entry.vendor if entry else None,
            "phase": report.phases.get(name),
        })

    return {
        "target": report.target,
        "url": report.url,
        "detected": report.found,
        "firewalls": firewalls,
        "attack_url": report.attack_url,
        "attack_error": report.attack_error,
        "timestamp": datetime.now().isoformat(),
    }


def summary_line(report: DetectionReport) -> str:
    if report.found:
        return f"The site {report.target} is behind {' and/or '.join(report.detected)} WAF."
    return f"No WAF detected on {report.target}"


class ReportGenerator:
    """Writes detection records and renders catalog tables."""

    def __init__(self, output_dir: str = "."):
        self.output_dir = Path(output_dir)
        self.logger = logging.getLogger(__name__)

    def generate_json_report(self, records: List[Dict[str, Any]],
                             filename: Optional[str] = None) -> str:
        """Write detection records to a JSON file and return its path."""
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"wafprint_{timestamp}.json"

        filepath = Path(filename)
        if not filepath.is_absolute():
            filepath = self.output_dir / filepath
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2)

        self.logger.info(f"JSON report generated: {filepath}")
        return str(filepath)

    @staticmethod
    def catalog_table(catalog: RuleCatalog, tablefmt: str = "simple") -> str:
        """Render catalog entries as a text table."""
        rows = []
        for index, entry in enumerate(catalog, 1):
            rows.append([
                index,
                entry.name,
                entry.vendor,
                ", ".join(entry.rules.kinds),
                entry.rules.attack_gated_count,
            ])
        return tabulate(rows, headers=["#", "WAF", "Manufacturer", "Rule kinds", "Attack-only"],
                        tablefmt=tablefmt)

    @staticmethod
    def fallback_table(catalog: RuleCatalog, tablefmt: str = "simple") -> str:
        rows = [list(item) for item in catalog.literal_patterns()]
        return tabulate(rows, headers=["WAF", "Rule", "Pattern"], tablefmt=tablefmt)

    @staticmethod
    def header_pattern_table(catalog: RuleCatalog, tablefmt: str = "simple") -> str:
        rows = [list(item) for item in catalog.header_name_patterns()]
        return tabulate(rows, headers=["WAF", "Header name pattern"], tablefmt=tablefmt)
