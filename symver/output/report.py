"""
Symver Report Generator
========================

Writes decoded symbol-versioning metadata as a structured JSON document
for machine consumption and downstream tooling.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shared.models import ScanResult

from symver.core.models import VersioningReport


class SymverReportGenerator:
    """Generate JSON reports from a :class:`VersioningReport`.

    Usage::

        generator = SymverReportGenerator()
        generator.generate_json(report, "report.json", scan=scan)
    """

    def build(
        self,
        report: VersioningReport,
        scan: ScanResult | None = None,
    ) -> dict[str, Any]:
        """Return the report document as a plain dictionary."""
        data: dict[str, Any] = {
            "report_type": "symver_versioning",
            "version": "1.0.0",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "binary_info": {
                "path": report.path,
                "size": report.size,
                "bits": report.bits,
                "endian": report.endian,
            },
            "sections": [s.model_dump() for s in report.sections],
            "definitions": [d.model_dump() for d in report.definitions],
            "requirements": [r.model_dump() for r in report.requirements],
            "symbols": {
                "total_count": len(report.symbols),
                "local_count": report.local_count,
                "defined_count": report.defined_count,
                "hidden_count": report.hidden_count,
                "symbol_table_entries": report.symbol_table_entries,
                "items": [s.model_dump() for s in report.symbols],
            },
            "errors": list(report.errors),
        }
        if scan is not None:
            data["findings"] = [f.model_dump(mode="json") for f in scan.findings]
            data["summary"] = scan.summary
        return data

    def generate_json(
        self,
        report: VersioningReport,
        output_path: str,
        scan: ScanResult | None = None,
    ) -> str:
        """Write the JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.build(report, scan), f, indent=2, ensure_ascii=False, default=str)

        return str(path.resolve())
