"""
Toolkit Data Models
====================

Pydantic v2 models shared by the toolkit commands: the severity scale,
individual findings, and the scan result that wraps every analysis run.

References:
    - SARIF v2.1.0 Specification (OASIS, 2020).
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import datetime as _dt
import json as _json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


# ========================== Enumerations ===================================


class Severity(str, Enum):
    """Finding severity level, most severe first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


# ========================== Core Models ====================================


class Finding(BaseModel):
    """A single observation produced by an analysis run.

    Attributes:
        severity:       Qualitative severity rating.
        title:          Short, descriptive finding title.
        description:    Detailed explanation of the finding.
        evidence:       Raw data supporting the finding.
        recommendation: Suggested follow-up.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    severity: Severity = Field(..., description="Severity level of this finding")
    title: str = Field(..., min_length=1, max_length=256, description="Short title")
    description: str = Field(..., min_length=1, description="Detailed explanation")
    evidence: str = Field(default="", description="Supporting evidence or raw data")
    recommendation: str = Field(default="", description="Suggested follow-up")

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> str:
        """Auto-convert non-string evidence (dict, list) to a JSON string."""
        if isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return _json.dumps(v, ensure_ascii=False, default=str)
        return str(v)


class ScanResult(BaseModel):
    """Aggregated result of a single analysis run.

    Attributes:
        tool_name:  Name of the tool that produced the result.
        target:     File that was analysed.
        start_time: UTC timestamp when the run started.
        end_time:   UTC timestamp when the run ended.
        findings:   Individual findings.
        summary:    Human-readable summary text.
        metadata:   Tool-specific payload (e.g. the serialised report).
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
    )

    tool_name: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    start_time: _dt.datetime = Field(default_factory=_utcnow)
    end_time: Optional[_dt.datetime] = None
    findings: list[Finding] = Field(default_factory=list)
    summary: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    # ------------------------------------------------------------------ #
    #  Derived properties
    # ------------------------------------------------------------------ #

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed time in seconds, or ``None`` if *end_time* is unset."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def severity_counts(self) -> dict[str, int]:
        """Count of findings grouped by severity."""
        counts: dict[str, int] = {s.value: 0 for s in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        return counts

    @property
    def finding_count(self) -> int:
        return len(self.findings)

    @property
    def critical_count(self) -> int:
        """Number of CRITICAL severity findings."""
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    # ------------------------------------------------------------------ #
    #  Mutating helpers
    # ------------------------------------------------------------------ #

    def add_finding(self, finding: Finding) -> None:
        """Append a finding to the scan result."""
        self.findings.append(finding)

    def finalize(self, summary: str | None = None) -> ScanResult:
        """Set *end_time* and *summary*; returns ``self`` for chaining.

        If *summary* is ``None`` one is generated from severity counts.
        """
        self.end_time = _utcnow()
        if summary is not None:
            self.summary = summary
        else:
            parts = [f"{sev}: {cnt}" for sev, cnt in self.severity_counts.items() if cnt]
            self.summary = (
                f"Scan complete. Findings: {len(self.findings)} "
                f"({', '.join(parts) if parts else 'none'})"
            )
        return self
